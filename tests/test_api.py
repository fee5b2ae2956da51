import pytest
from conftest import StubClient
from fastapi.testclient import TestClient

from pokrovka_timetable import api
from pokrovka_timetable.database import get_db


@pytest.fixture
def stub(week_lessons):
    return StubClient(week_lessons)


@pytest.fixture
def client(session_factory, stub):
    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    api.app.dependency_overrides[get_db] = override_db
    api.app.dependency_overrides[api.get_client] = lambda: stub
    try:
        yield TestClient(api.app)
    finally:
        api.app.dependency_overrides.clear()


def test_healthz(client) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}


def test_timetable_default_filters(client, stub) -> None:
    resp = client.get("/api/timetable", params={"date": "2024-09-02", "days": 7})

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    # по умолчанию: очно и только Покровский
    rows = [r for g in body["groups"] for r in g["rows"]]
    assert [r["lesson"]["lesson_oid"] for r in rows] == [1, 2]
    assert body["groups"][0]["label"] == "понедельник, 2 сентября 2024 г."
    assert stub.queries[0].building == "Покровский"


def test_timetable_all_buildings_and_modes(client) -> None:
    resp = client.get(
        "/api/timetable",
        params={"date": "2024-09-02", "days": 7, "online": "all", "building": ""},
    )

    rows = [r for g in resp.json()["groups"] for r in g["rows"]]
    assert len(rows) == 4


def test_timetable_favorites_only(client) -> None:
    client.put("/api/favorites/10")

    resp = client.get(
        "/api/timetable",
        params={"date": "2024-09-02", "days": 7, "online": "all", "building": "", "favorites_only": True},
    )

    rows = [r for g in resp.json()["groups"] for r in g["rows"]]
    assert [r["lesson"]["lesson_oid"] for r in rows] == [1, 4]
    assert all(r["is_favorite"] for r in rows)


def test_timetable_empty(client) -> None:
    resp = client.get("/api/timetable", params={"date": "2024-12-31"})

    assert resp.status_code == 200
    assert resp.json()["status"] == "empty"


def test_timetable_unknown_window(client) -> None:
    assert client.get("/api/timetable", params={"window": "month"}).status_code == 422


def test_timetable_upstream_error(client, failing_client) -> None:
    api.app.dependency_overrides[api.get_client] = lambda: failing_client

    resp = client.get("/api/timetable", params={"date": "2024-09-02"})

    assert resp.status_code == 502
    assert "500" in resp.json()["detail"]


def test_favorites_crud(client) -> None:
    assert client.get("/api/favorites").json() == []

    assert client.put("/api/favorites/20").json() == {"discipline_oid": 20, "is_favorite": True}
    client.put("/api/favorites/10")
    assert client.get("/api/favorites").json() == [10, 20]

    client.delete("/api/favorites/20")
    assert client.get("/api/favorites").json() == [10]

    assert client.post("/api/favorites/10/toggle").json()["is_favorite"] is False
    assert client.post("/api/favorites/30/toggle").json()["is_favorite"] is True
    assert client.get("/api/favorites").json() == [30]


def test_discipline_search(client) -> None:
    body = client.get("/api/disciplines/search", params={"q": "линейная алгебра"}).json()

    assert body["discipline_oid"] == 20
    assert body["name"] == "Линейная алгебра"
