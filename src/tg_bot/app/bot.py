import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties

import aiohttp

from .settings import settings
from .client import close
from .handlers import router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
log = logging.getLogger("tg_bot")


async def wait_for_api(url: str, retries: int = 10, delay: int = 2):
    """Ждет, пока API станет доступен"""
    for i in range(1, retries + 1):
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url) as resp:
                    if resp.status == 200:
                        log.info("API доступен, продолжаем")
                        return
        except aiohttp.ClientError:
            pass
        log.warning(f"[{i}/{retries}] API недоступен, жду {delay}с...")
        await asyncio.sleep(delay)
    raise RuntimeError("API не ответил после нескольких попыток")


async def main() -> None:
    if not settings.BOT_TOKEN:
        raise RuntimeError("BOT_TOKEN is not set.")

    await wait_for_api(f"{str(settings.API_URL).rstrip('/')}/healthz")

    bot = Bot(token=settings.BOT_TOKEN, default=DefaultBotProperties(parse_mode="HTML"))
    dp = Dispatcher()
    dp.include_router(router)

    log.info("Starting bot polling")
    try:
        await dp.start_polling(bot)
    finally:
        await bot.session.close()
        await close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        log.info("Bot остановлен пользователем")
