from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import pytz

from pokrovka_timetable.filters import DateWindow, OnlineMode, TimetableFilters

ONLINE_PATTERN = "*Online*"


def _utc_iso(value: datetime) -> str:
    return value.astimezone(pytz.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _like(value: str) -> str:
    # в PostgREST '*' внутри like заменяет '%'
    return f"*{value}*"


def _quoted(value: str) -> str:
    # внутри or=(...) запятые разделяют условия, значение берем в кавычки
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


@dataclass(frozen=True)
class LessonQuery:
    """
    Серверная часть фильтрации: окно по концу занятия, здание, онлайн/офлайн
    и сортировка. Избранное на сервер не уходит, оно хранится локально.
    """

    window: DateWindow
    timezone: str
    building: Optional[str] = None
    online: OnlineMode = OnlineMode.OFFLINE

    @classmethod
    def from_filters(cls, filters: TimetableFilters, timezone_str: str) -> "LessonQuery":
        return cls(
            window=filters.window,
            timezone=timezone_str,
            building=filters.building,
            online=filters.online,
        )

    def to_params(self) -> list[tuple[str, str]]:
        start, stop = self.window.bounds(self.timezone)
        params = [
            ("select", "*"),
            ("end", f"gte.{_utc_iso(start)}"),
            ("end", f"lt.{_utc_iso(stop)}"),
            ("order", "begin.asc,auditorium_amount.desc"),
        ]

        if self.online is OnlineMode.OFFLINE:
            params.append(("auditorium", f"not.ilike.{ONLINE_PATTERN}"))
        elif self.online is OnlineMode.ONLINE:
            params.append(("auditorium", f"ilike.{ONLINE_PATTERN}"))

        if self.building:
            if self.online is OnlineMode.ALL:
                params.append(
                    ("or", f"(building.ilike.{_quoted(_like(self.building))},auditorium.ilike.{ONLINE_PATTERN})")
                )
            elif self.online is OnlineMode.OFFLINE:
                params.append(("building", f"ilike.{_like(self.building)}"))

        return params
