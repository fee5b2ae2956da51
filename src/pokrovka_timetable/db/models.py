from datetime import datetime as dt_datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    pass


class Setting(Base):
    """Локальное key-value хранилище (избранное и прочие пользовательские настройки)."""

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    key: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    value: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[dt_datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )
