import asyncio
import logging
from typing import Any, Optional

import aiohttp
from pydantic import ValidationError

from pokrovka_timetable.config import Settings, get_settings
from pokrovka_timetable.dto.models import Lesson
from pokrovka_timetable.query import LessonQuery

logger = logging.getLogger(__name__)


class TimetableFetchError(RuntimeError):
    """Не удалось получить или разобрать ответ Supabase."""


def parse_lessons(payload: Any) -> list[Lesson]:
    if not isinstance(payload, list):
        raise TimetableFetchError(f"Expected a list of rows, got: {type(payload).__name__}")
    try:
        return [Lesson.model_validate(row) for row in payload]
    except ValidationError as exc:
        raise TimetableFetchError(f"Malformed lesson row: {exc.errors()[0]}") from exc


class SupabaseClient:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        if not self.settings.SUPABASE_URL:
            raise ValueError("SUPABASE_URL is not set.")
        if not self.settings.SUPABASE_KEY:
            raise ValueError("SUPABASE_KEY is not set.")

    @property
    def table_url(self) -> str:
        return f"{self.settings.SUPABASE_URL.rstrip('/')}/rest/v1/{self.settings.LESSONS_TABLE}"

    @property
    def headers(self) -> dict:
        key = self.settings.SUPABASE_KEY
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Accept": "application/json",
        }

    async def _get_rows(self, params: list[tuple[str, str]]) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.settings.REQUEST_TIMEOUT)
        async with aiohttp.ClientSession(timeout=timeout, headers=self.headers) as session:
            async with session.get(self.table_url, params=params) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    raise TimetableFetchError(f"Supabase answered {resp.status}: {text[:200]}")
                return await resp.json(content_type=None)

    async def fetch_lessons(self, query: LessonQuery) -> list[Lesson]:
        params = query.to_params()
        retries = max(1, self.settings.MAX_RETRIES)

        for attempt in range(1, retries + 1):
            try:
                payload = await self._get_rows(params)
                break
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                logger.warning("[%d/%d] Supabase недоступен: %s", attempt, retries, exc)
                if attempt == retries:
                    raise TimetableFetchError(f"Supabase is unreachable: {exc}") from exc
                await asyncio.sleep(self.settings.RETRY_DELAY)

        lessons = parse_lessons(payload)
        logger.info("Получено занятий: %d", len(lessons))
        return lessons
