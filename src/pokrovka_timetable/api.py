import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from pokrovka_timetable.config import get_settings
from pokrovka_timetable.database import get_db, init_db
from pokrovka_timetable.dto.models import TimetableView
from pokrovka_timetable.filters import OnlineMode
from pokrovka_timetable.logs.logger_setup import setup_logging
from pokrovka_timetable.search import find_discipline
from pokrovka_timetable.services.favorites_service import load_favorites, set_favorite, toggle_favorite
from pokrovka_timetable.services.timetable_service import fetch_lessons, load_timetable, local_now, make_filters
from pokrovka_timetable.supabase_client import SupabaseClient, TimetableFetchError

settings = get_settings()
setup_logging()
init_db()
logger = logging.getLogger("api_logger")

app = FastAPI(title="Pokrovka timetable")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter()


def get_client() -> SupabaseClient:
    try:
        return SupabaseClient(settings)
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.get("/healthz", include_in_schema=False)
def healthcheck():
    return {"status": "ok"}


# Расписание
@api_router.get("/timetable", response_model=TimetableView)
async def get_timetable(
        window: str = "today",
        start: Optional[date] = Query(None, alias="date"),
        days: int = Query(1, ge=1, le=31),
        online: OnlineMode = OnlineMode.OFFLINE,
        building: Optional[str] = None,
        favorites_only: bool = False,
        db: Session = Depends(get_db),
        client: SupabaseClient = Depends(get_client),
):
    try:
        filters = make_filters(
            window=window,
            start=start,
            days=days,
            online=online,
            building=building,
            favorites_only=favorites_only,
            settings=settings,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    view = await load_timetable(filters, load_favorites(db), client=client, settings=settings)
    if view.status == "error":
        raise HTTPException(status_code=502, detail=view.message)
    return view


# Избранное
@api_router.get("/favorites")
def get_favorites(db: Session = Depends(get_db)) -> list[int]:
    return sorted(load_favorites(db))


@api_router.put("/favorites/{discipline_oid}")
def add_favorite(discipline_oid: int, db: Session = Depends(get_db)):
    set_favorite(db, discipline_oid, True)
    return {"discipline_oid": discipline_oid, "is_favorite": True}


@api_router.delete("/favorites/{discipline_oid}")
def remove_favorite(discipline_oid: int, db: Session = Depends(get_db)):
    set_favorite(db, discipline_oid, False)
    return {"discipline_oid": discipline_oid, "is_favorite": False}


@api_router.post("/favorites/{discipline_oid}/toggle")
def toggle(discipline_oid: int, db: Session = Depends(get_db)):
    return {"discipline_oid": discipline_oid, "is_favorite": toggle_favorite(db, discipline_oid)}


# Поиск дисциплины по названию
@api_router.get("/disciplines/search")
async def search_discipline(
        q: str,
        days: int = Query(7, ge=1, le=31),
        client: SupabaseClient = Depends(get_client),
):
    filters = make_filters(
        start=local_now(settings).date(), days=days, online=OnlineMode.ALL, building="", settings=settings
    )
    try:
        lessons = await fetch_lessons(filters, client=client, settings=settings)
    except TimetableFetchError as e:
        logger.error(f"Поиск дисциплины не удался: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    match = find_discipline(q, lessons)
    return {"discipline_oid": match.discipline_oid, "name": match.name, "hints": match.hints}


app.include_router(api_router, prefix="/api")
