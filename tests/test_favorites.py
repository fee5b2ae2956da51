import json

from pokrovka_timetable.database import get_setting, set_setting
from pokrovka_timetable.services.favorites_service import (
    FAVORITES_KEY,
    load_favorites,
    save_favorites,
    set_favorite,
    toggle_favorite,
)


def test_empty_by_default(db) -> None:
    assert load_favorites(db) == set()


def test_set_and_unset(db) -> None:
    set_favorite(db, 10, True)
    set_favorite(db, 20, True)
    set_favorite(db, 10, False)

    assert load_favorites(db) == {20}


def test_unset_missing_is_noop(db) -> None:
    assert set_favorite(db, 99, False) == set()


def test_toggle_returns_new_state(db) -> None:
    assert toggle_favorite(db, 5) is True
    assert toggle_favorite(db, 5) is False
    assert load_favorites(db) == set()


def test_persisted_as_flat_sorted_json_list(db) -> None:
    save_favorites(db, {30, 10, 20})

    assert json.loads(get_setting(db, FAVORITES_KEY)) == [10, 20, 30]


def test_survives_new_session(session_factory) -> None:
    first = session_factory()
    set_favorite(first, 42, True)
    first.close()

    second = session_factory()
    try:
        assert load_favorites(second) == {42}
    finally:
        second.close()


def test_corrupted_value_is_ignored(db) -> None:
    set_setting(db, FAVORITES_KEY, "{not json")
    assert load_favorites(db) == set()

    set_setting(db, FAVORITES_KEY, '{"a": 1}')
    assert load_favorites(db) == set()
