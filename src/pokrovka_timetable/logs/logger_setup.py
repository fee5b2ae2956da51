import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from pokrovka_timetable.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_initialized = False


def setup_logging():
    global _initialized
    if _initialized:
        return

    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    try:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=log_dir / "timetable.log",
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        if not any(isinstance(h, TimedRotatingFileHandler) for h in logger.handlers):
            logger.addHandler(file_handler)
    except OSError as e:
        logger.warning(f"Файловый лог недоступен: {e}")

    _initialized = True  # пометка, что уже настроен
