from typing import Optional
from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Настройки бота.

    - API_URL берется из окружения (.env или docker-compose).
    - BOT_TOKEN выдает BotFather.
    - ADMIN_IDS: избранное у API одно на всех, поэтому бот личный.
    """

    # URL API расписания
    API_URL: AnyHttpUrl = "http://127.0.0.1:8000"

    BOT_TOKEN: Optional[str] = None
    ADMIN_IDS: str = ""  # Строка, например: "12345,67890"

    TIMEZONE: str = "Europe/Moscow"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
