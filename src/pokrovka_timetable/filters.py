from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, Optional

import pytz

from pokrovka_timetable.dto.models import Lesson


class OnlineMode(str, Enum):
    ALL = "all"
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass(frozen=True)
class DateWindow:
    """Полуинтервал дней [start_date, start_date + days)."""

    start_date: date
    days: int = 1

    def __post_init__(self):
        if self.days < 1:
            raise ValueError("days must be >= 1")

    @classmethod
    def today(cls, now: datetime) -> "DateWindow":
        return cls(now.date(), 1)

    @classmethod
    def tomorrow(cls, now: datetime) -> "DateWindow":
        return cls(now.date() + timedelta(days=1), 1)

    @classmethod
    def week(cls, now: datetime) -> "DateWindow":
        return cls(now.date(), 7)

    @classmethod
    def named(cls, name: str, now: datetime) -> "DateWindow":
        factories = {"today": cls.today, "tomorrow": cls.tomorrow, "week": cls.week}
        try:
            return factories[name](now)
        except KeyError:
            raise ValueError(f"Unknown window: {name!r}") from None

    @property
    def stop_date(self) -> date:
        return self.start_date + timedelta(days=self.days)

    def bounds(self, timezone_str: str) -> tuple[datetime, datetime]:
        """Начало первого дня и начало дня после последнего, в поясе timezone_str."""
        tz = pytz.timezone(timezone_str)
        start = tz.localize(datetime.combine(self.start_date, time.min))
        stop = tz.localize(datetime.combine(self.stop_date, time.min))
        return start, stop

    def contains(self, moment: datetime, timezone_str: str) -> bool:
        start, stop = self.bounds(timezone_str)
        if moment.tzinfo is None:
            moment = pytz.utc.localize(moment)
        return start <= moment < stop


@dataclass(frozen=True)
class TimetableFilters:
    window: DateWindow
    online: OnlineMode = OnlineMode.OFFLINE
    building: Optional[str] = None
    favorites_only: bool = False

    def matches(self, lesson: Lesson, favorites: Iterable[int], timezone_str: str) -> bool:
        # попадание в окно решаем по концу занятия, как и удаленный запрос
        if not self.window.contains(lesson.end, timezone_str):
            return False

        if self.online is OnlineMode.ONLINE and not lesson.is_online:
            return False
        if self.online is OnlineMode.OFFLINE and lesson.is_online:
            return False

        # у онлайн-занятий здания нет, фильтр по зданию к ним не применяем
        if self.building and not lesson.is_online:
            if self.building.lower() not in (lesson.building or "").lower():
                return False

        if self.favorites_only and lesson.discipline_oid not in set(favorites):
            return False

        return True


def apply_filters(
        lessons: Iterable[Lesson],
        filters: TimetableFilters,
        favorites: Iterable[int],
        timezone_str: str,
) -> list[Lesson]:
    favs = set(favorites)
    return [l for l in lessons if filters.matches(l, favs, timezone_str)]
