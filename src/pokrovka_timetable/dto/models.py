from datetime import datetime, date as dt_date
from typing import Literal, Optional

import pytz
from pydantic import BaseModel, ConfigDict

ONLINE_MARKER = "online"


class Lesson(BaseModel):
    """Строка таблицы lessons в том виде, в каком ее отдает Supabase."""

    model_config = ConfigDict(extra="ignore")

    lesson_oid: int
    discipline_oid: int
    discipline: Optional[str] = None
    kind_of_work: Optional[str] = None
    begin: datetime
    end: datetime
    building: Optional[str] = None
    auditorium: Optional[str] = None
    auditorium_amount: Optional[int] = None
    url1: Optional[str] = None
    url1_description: Optional[str] = None
    url2: Optional[str] = None
    url2_description: Optional[str] = None
    note: Optional[str] = None

    @property
    def is_online(self) -> bool:
        place = f"{self.auditorium or ''} {self.building or ''}".lower()
        return ONLINE_MARKER in place

    def local_begin(self, timezone_str: str) -> datetime:
        return to_local(self.begin, timezone_str)

    def get_date(self, timezone_str: str) -> dt_date:
        """Дата занятия по началу, в заданном часовом поясе."""
        return self.local_begin(timezone_str).date()

    def links(self) -> list[tuple[str, str]]:
        """Пары (подпись, ссылка) для непустых url1/url2."""
        result = []
        for url, caption in ((self.url1, self.url1_description), (self.url2, self.url2_description)):
            if url and url.strip():
                result.append(((caption or "").strip() or url.strip(), url.strip()))
        return result


def to_local(value: datetime, timezone_str: str) -> datetime:
    tz = pytz.timezone(timezone_str)
    if value.tzinfo is None:
        # PostgREST для timestamp без зоны отдает время в UTC
        value = pytz.utc.localize(value)
    return value.astimezone(tz)


class TimetableRow(BaseModel):
    lesson: Lesson
    discipline: str
    time_range: str
    is_favorite: bool = False


class DateGroup(BaseModel):
    label: str
    date: dt_date
    rows: list[TimetableRow] = []


class TimetableView(BaseModel):
    status: Literal["ok", "empty", "error"]
    groups: list[DateGroup] = []
    message: Optional[str] = None
