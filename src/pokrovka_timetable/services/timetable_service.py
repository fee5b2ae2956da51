import logging
from datetime import date, datetime
from typing import Iterable, Optional

import pytz

from pokrovka_timetable.config import Settings, get_settings
from pokrovka_timetable.dto.models import Lesson, TimetableView
from pokrovka_timetable.filters import DateWindow, OnlineMode, TimetableFilters
from pokrovka_timetable.query import LessonQuery
from pokrovka_timetable.supabase_client import SupabaseClient, TimetableFetchError
from pokrovka_timetable.timetable import build_timetable

logger = logging.getLogger(__name__)

EMPTY_MESSAGE = "Расписание пусто"


def local_now(settings: Optional[Settings] = None) -> datetime:
    settings = settings or get_settings()
    return datetime.now(pytz.timezone(settings.TIMEZONE))


def make_filters(
        window: str = "today",
        start: Optional[date] = None,
        days: int = 1,
        online: OnlineMode = OnlineMode.OFFLINE,
        building: Optional[str] = None,
        favorites_only: bool = False,
        now: Optional[datetime] = None,
        settings: Optional[Settings] = None,
) -> TimetableFilters:
    """
    Собирает фильтры из параметров CLI/API. Явная дата начала важнее
    именованного окна; building=None означает здание по умолчанию,
    пустая строка снимает фильтр по зданию.
    """
    settings = settings or get_settings()
    now = now or local_now(settings)

    if start is not None:
        date_window = DateWindow(start, days)
    else:
        date_window = DateWindow.named(window, now)

    if building is None:
        building = settings.DEFAULT_BUILDING

    return TimetableFilters(
        window=date_window,
        online=OnlineMode(online),
        building=building or None,
        favorites_only=favorites_only,
    )


async def fetch_lessons(
        filters: TimetableFilters,
        client: Optional[SupabaseClient] = None,
        settings: Optional[Settings] = None,
) -> list[Lesson]:
    settings = settings or get_settings()
    client = client or SupabaseClient(settings)
    query = LessonQuery.from_filters(filters, settings.TIMEZONE)
    return await client.fetch_lessons(query)


async def load_timetable(
        filters: TimetableFilters,
        favorites: Iterable[int],
        client: Optional[SupabaseClient] = None,
        settings: Optional[Settings] = None,
) -> TimetableView:
    """Один запрос к Supabase, затем локальная фильтрация и группировка по датам."""
    settings = settings or get_settings()
    favorites = set(favorites)

    try:
        lessons = await fetch_lessons(filters, client, settings)
    except TimetableFetchError as exc:
        logger.error("Ошибка загрузки расписания: %s", exc)
        return TimetableView(status="error", message=str(exc))

    groups = build_timetable(lessons, filters, favorites, settings.TIMEZONE)
    if not groups:
        return TimetableView(status="empty", message=EMPTY_MESSAGE)

    logger.info("Показываю %d дн., занятий: %d", len(groups), sum(len(g.rows) for g in groups))
    return TimetableView(status="ok", groups=groups)
