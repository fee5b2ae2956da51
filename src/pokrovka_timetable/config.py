from pydantic_settings import BaseSettings
from pydantic import Field
from pathlib import Path
from dotenv import load_dotenv
from functools import lru_cache

BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"

load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Supabase (PostgREST) с таблицей занятий
    SUPABASE_URL: str = Field("")
    SUPABASE_KEY: str = Field("")
    LESSONS_TABLE: str = Field("lessons")

    # Сетевые параметры запроса
    REQUEST_TIMEOUT: float = Field(15.0)
    MAX_RETRIES: int = Field(3)
    RETRY_DELAY: float = Field(2.0)

    # Часовой пояс, в котором показываем время занятий
    TIMEZONE: str = Field("Europe/Moscow")

    # Здание по умолчанию (подстрока, как в like-фильтре)
    DEFAULT_BUILDING: str = Field("Покровский")

    # Локальная база для избранного
    DATABASE_URL: str = Field("sqlite:///./timetable.db")

    # Логирование
    LOG_LEVEL: str = Field("INFO")
    LOG_DIR: str = Field(str(Path.cwd() / "logs"))

    class Config:
        env_file = (ENV_PATH, ".env")
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
