from datetime import date

import aiohttp
import pytest

from pokrovka_timetable.config import Settings
from pokrovka_timetable.filters import DateWindow
from pokrovka_timetable.query import LessonQuery
from pokrovka_timetable.supabase_client import SupabaseClient, TimetableFetchError, parse_lessons

ROW = {
    "lesson_oid": 7,
    "discipline_oid": 70,
    "discipline": "Эконометрика",
    "kind_of_work": "Лекция",
    "begin": "2024-09-02T06:30:00+00:00",
    "end": "2024-09-02T07:50:00+00:00",
    "building": "Покровский б-р, д.11",
    "auditorium": "R401",
    "auditorium_amount": 90,
    "lecturer_title": "лишняя колонка",
}


def _settings(**overrides) -> Settings:
    values = {"SUPABASE_URL": "https://proj.supabase.co/", "SUPABASE_KEY": "anon", "RETRY_DELAY": 0}
    values.update(overrides)
    return Settings(**values)


def _query() -> LessonQuery:
    return LessonQuery(window=DateWindow(date(2024, 9, 2)), timezone="Europe/Moscow")


def test_parse_lessons_ignores_extra_columns() -> None:
    lessons = parse_lessons([ROW])

    assert lessons[0].lesson_oid == 7
    assert lessons[0].begin.tzinfo is not None
    assert lessons[0].note is None


def test_parse_lessons_rejects_non_list() -> None:
    with pytest.raises(TimetableFetchError):
        parse_lessons({"message": "JWT expired"})


def test_parse_lessons_rejects_malformed_rows() -> None:
    with pytest.raises(TimetableFetchError):
        parse_lessons([{"lesson_oid": "x"}])


def test_client_requires_credentials() -> None:
    with pytest.raises(ValueError, match="SUPABASE_URL"):
        SupabaseClient(_settings(SUPABASE_URL=""))
    with pytest.raises(ValueError, match="SUPABASE_KEY"):
        SupabaseClient(_settings(SUPABASE_KEY=""))


def test_table_url_and_headers() -> None:
    client = SupabaseClient(_settings(LESSONS_TABLE="lessons"))

    assert client.table_url == "https://proj.supabase.co/rest/v1/lessons"
    assert client.headers["apikey"] == "anon"
    assert client.headers["Authorization"] == "Bearer anon"


async def test_fetch_retries_network_errors(monkeypatch) -> None:
    client = SupabaseClient(_settings(MAX_RETRIES=3))
    calls = []

    async def flaky(params):
        calls.append(params)
        if len(calls) < 3:
            raise aiohttp.ClientConnectionError("connection reset")
        return [ROW]

    monkeypatch.setattr(client, "_get_rows", flaky)

    lessons = await client.fetch_lessons(_query())

    assert len(calls) == 3
    assert [l.lesson_oid for l in lessons] == [7]
    assert calls[0] == _query().to_params()


async def test_fetch_gives_up_after_max_retries(monkeypatch) -> None:
    client = SupabaseClient(_settings(MAX_RETRIES=2))

    async def down(params):
        raise aiohttp.ClientConnectionError("no route to host")

    monkeypatch.setattr(client, "_get_rows", down)

    with pytest.raises(TimetableFetchError, match="unreachable"):
        await client.fetch_lessons(_query())


async def test_fetch_does_not_retry_http_errors(monkeypatch) -> None:
    client = SupabaseClient(_settings(MAX_RETRIES=3))
    calls = []

    async def unauthorized(params):
        calls.append(params)
        raise TimetableFetchError("Supabase answered 401: invalid key")

    monkeypatch.setattr(client, "_get_rows", unauthorized)

    with pytest.raises(TimetableFetchError, match="401"):
        await client.fetch_lessons(_query())
    assert len(calls) == 1
