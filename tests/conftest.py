import os
import tempfile

# окружение должно быть готово до первого импорта настроек
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_KEY"] = "test-key"
os.environ["TIMEZONE"] = "Europe/Moscow"
os.environ["DEFAULT_BUILDING"] = "Покровский"
os.environ["LOG_DIR"] = tempfile.mkdtemp(prefix="timetable-logs-")

from datetime import datetime
from typing import Optional

import pytest
from sqlalchemy.orm import sessionmaker

from pokrovka_timetable.database import init_db, make_engine
from pokrovka_timetable.dto.models import Lesson
from pokrovka_timetable.supabase_client import TimetableFetchError

TZ = "Europe/Moscow"


def make_lesson(**overrides) -> Lesson:
    data = {
        "lesson_oid": 1,
        "discipline_oid": 10,
        "discipline": "Математический анализ (рус)",
        "kind_of_work": "Лекция",
        # 09:30-10:50 по Москве
        "begin": "2024-09-02T06:30:00+00:00",
        "end": "2024-09-02T07:50:00+00:00",
        "building": "Покровский б-р, д.11",
        "auditorium": "R205",
        "auditorium_amount": 120,
    }
    data.update(overrides)
    return Lesson.model_validate(data)


class StubClient:
    """Вместо SupabaseClient: отдает заранее заданные строки и запоминает запросы."""

    def __init__(self, lessons=None, error: Optional[Exception] = None):
        self.lessons = list(lessons or [])
        self.error = error
        self.queries = []

    async def fetch_lessons(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return list(self.lessons)


@pytest.fixture
def week_lessons() -> list[Lesson]:
    return [
        make_lesson(),
        make_lesson(
            lesson_oid=2, discipline_oid=20, discipline="Линейная алгебра (анг)", kind_of_work="Семинар",
            begin="2024-09-02T08:10:00+00:00", end="2024-09-02T09:30:00+00:00",
            auditorium="D501", auditorium_amount=30,
        ),
        make_lesson(
            lesson_oid=3, discipline_oid=30, discipline="Английский язык",
            begin="2024-09-02T10:00:00+00:00", end="2024-09-02T11:20:00+00:00",
            building="Online", auditorium="Online", auditorium_amount=None,
            url1="https://zoom.us/j/1", url1_description="Zoom",
        ),
        make_lesson(
            lesson_oid=4, discipline_oid=10, kind_of_work="Семинар",
            begin="2024-09-03T06:30:00+00:00", end="2024-09-03T07:50:00+00:00",
            building="Малая Пионерская ул., д.12", auditorium="A101", auditorium_amount=40,
            note="Контрольная работа",
        ),
    ]


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def failing_client():
    return StubClient(error=TimetableFetchError("Supabase answered 500: boom"))


@pytest.fixture
def monday() -> datetime:
    import pytz
    return pytz.timezone(TZ).localize(datetime(2024, 9, 2, 8, 0))
