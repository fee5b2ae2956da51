from __future__ import annotations

from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from pokrovka_timetable.config import get_settings
from pokrovka_timetable.db.models import Base, Setting


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # одна общая in-memory база на все сессии
            kwargs["poolclass"] = StaticPool
        return create_engine(url, future=True, **kwargs)
    return create_engine(url, echo=False, future=True, pool_pre_ping=True)


engine = make_engine(get_settings().DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False)


def init_db(bind: Optional[Engine] = None):
    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Generator[Session, None, None]:
    """
    Зависимость FastAPI: дает открытый Session
    и гарантирует закрытие по завершении запроса.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def set_setting(db: Session, key: str, value: str):
    setting = db.query(Setting).filter_by(key=key).first()
    if setting:
        setting.value = value
    else:
        db.add(Setting(key=key, value=value))
    db.commit()


def get_setting(db: Session, key: str) -> str | None:
    setting = db.query(Setting).filter_by(key=key).first()
    return setting.value if setting else None
