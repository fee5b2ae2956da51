import asyncio
import logging
from datetime import datetime
from typing import Optional

import typer

from pokrovka_timetable.config import get_settings
from pokrovka_timetable.database import SessionLocal, init_db
from pokrovka_timetable.filters import OnlineMode
from pokrovka_timetable.logs.logger_setup import setup_logging
from pokrovka_timetable.render import render_view_text
from pokrovka_timetable.search import find_discipline
from pokrovka_timetable.services.favorites_service import load_favorites, set_favorite
from pokrovka_timetable.services.timetable_service import fetch_lessons, load_timetable, local_now, make_filters
from pokrovka_timetable.supabase_client import SupabaseClient, TimetableFetchError

# Инициализация настроек
settings = get_settings()

# Создаем таблицы если не созданы
init_db()

# Настройка логирования
setup_logging()
logger = logging.getLogger("cli_logger")

# Typer-приложение
app = typer.Typer(no_args_is_help=True)


def get_client() -> SupabaseClient:
    try:
        return SupabaseClient(settings)
    except ValueError as e:
        typer.echo(f"Ошибка конфигурации: {e}")
        raise typer.Exit(code=1)


def _favorites() -> set[int]:
    session = SessionLocal()
    try:
        return load_favorites(session)
    finally:
        session.close()


@app.command()
def show(
        window: str = typer.Option("today", help="today | tomorrow | week"),
        start: Optional[datetime] = typer.Option(None, "--date", formats=["%Y-%m-%d"], help="Первый день окна"),
        days: int = typer.Option(1, min=1, help="Длина окна в днях (вместе с --date)"),
        online: OnlineMode = typer.Option(OnlineMode.OFFLINE, help="all | online | offline"),
        building: Optional[str] = typer.Option(None, help="Подстрока названия здания"),
        all_buildings: bool = typer.Option(False, "--all-buildings", help="Не фильтровать по зданию"),
        favorites_only: bool = typer.Option(False, "--favorites-only", help="Только избранные дисциплины"),
):
    """
    Показывает расписание, сгруппированное по датам.
    """
    logger.info(f"Команда show(window={window}, online={online.value})")
    try:
        filters = make_filters(
            window=window,
            start=start.date() if start else None,
            days=days,
            online=online,
            building="" if all_buildings else building,
            favorites_only=favorites_only,
            settings=settings,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    view = asyncio.run(load_timetable(filters, _favorites(), client=get_client(), settings=settings))
    typer.echo(render_view_text(view))
    if view.status == "error":
        raise typer.Exit(code=1)


@app.command()
def find(name: str, days: int = typer.Option(7, min=1, help="Сколько дней просматривать")):
    """
    Ищет дисциплину по названию среди ближайших занятий.
    """
    match = _find(name, days)
    if match.found:
        typer.echo(f"{match.name} [{match.discipline_oid}]")
        return
    _echo_not_found(match.hints)


def _find(name: str, days: int):
    filters = make_filters(
        start=local_now(settings).date(), days=days, online=OnlineMode.ALL, building="", settings=settings
    )
    try:
        lessons = asyncio.run(fetch_lessons(filters, client=get_client(), settings=settings))
    except TimetableFetchError as e:
        typer.echo(f"Ошибка: {e}")
        raise typer.Exit(code=1)
    return find_discipline(name, lessons)


def _echo_not_found(hints: list[str]):
    if hints:
        typer.echo("Не нашел точного совпадения. Возможно, вы имели в виду:")
        for h in hints:
            typer.echo(f" - {h}")
    else:
        typer.echo("Не нашел такую дисциплину.")
    raise typer.Exit(code=1)


@app.command()
def fav_add(target: str, days: int = typer.Option(7, min=1, help="Окно поиска по названию")):
    """
    Отмечает дисциплину избранной (по ID или по названию).
    """
    if target.isdigit():
        discipline_oid, label = int(target), target
    else:
        match = _find(target, days)
        if not match.found:
            _echo_not_found(match.hints)
        discipline_oid, label = match.discipline_oid, match.name

    session = SessionLocal()
    try:
        set_favorite(session, discipline_oid, True)
    finally:
        session.close()
    typer.echo(f"В избранном: {label}")


@app.command()
def fav_rm(discipline_oid: int):
    """
    Убирает дисциплину из избранного.
    """
    session = SessionLocal()
    try:
        set_favorite(session, discipline_oid, False)
    finally:
        session.close()
    typer.echo(f"Убрано из избранного: {discipline_oid}")


@app.command()
def fav_list():
    """
    Показывает ID избранных дисциплин.
    """
    favorites = _favorites()
    if not favorites:
        typer.echo("Избранное пусто.")
        return
    for discipline_oid in sorted(favorites):
        typer.echo(str(discipline_oid))


@app.command()
def serve(host: str = "127.0.0.1", port: int = 8000):
    """
    Запускает HTTP API (uvicorn).
    """
    import uvicorn

    logger.info(f"Запуск API на {host}:{port}")
    uvicorn.run("pokrovka_timetable.api:app", host=host, port=port)


if __name__ == "__main__":
    app()
