import json
import logging

from sqlalchemy.orm import Session

from pokrovka_timetable.database import get_setting, set_setting

logger = logging.getLogger(__name__)

FAVORITES_KEY = "FAVORITE_DISCIPLINES"


def load_favorites(db: Session) -> set[int]:
    raw = get_setting(db, FAVORITES_KEY)
    if not raw:
        return set()
    try:
        items = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Испорченное значение %s, начинаю с пустого избранного", FAVORITES_KEY)
        return set()
    if not isinstance(items, list):
        logger.warning("%s не список, начинаю с пустого избранного", FAVORITES_KEY)
        return set()
    return {int(i) for i in items if isinstance(i, (int, str)) and str(i).lstrip("-").isdigit()}


def save_favorites(db: Session, ids) -> None:
    # храним плоским отсортированным списком
    set_setting(db, FAVORITES_KEY, json.dumps(sorted({int(i) for i in ids})))


def set_favorite(db: Session, discipline_oid: int, is_favorite: bool) -> set[int]:
    favorites = load_favorites(db)
    if is_favorite:
        favorites.add(discipline_oid)
    else:
        favorites.discard(discipline_oid)
    save_favorites(db, favorites)
    logger.info("Дисциплина %s: избранное=%s", discipline_oid, is_favorite)
    return favorites


def toggle_favorite(db: Session, discipline_oid: int) -> bool:
    """Переключает отметку и возвращает новое состояние."""
    now_favorite = discipline_oid not in load_favorites(db)
    set_favorite(db, discipline_oid, now_favorite)
    return now_favorite
