"""Tests for /bookings and /services endpoints."""

import threading
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import artistbook.routers.bookings as bookings_router
from artistbook.database import get_db
from artistbook.main import app
from artistbook.models import Base, Bookings
from artistbook.redis_client import get_redis
from tests.conftest import ARTIST_ID, MONDAY, add_booking, utc


@pytest.fixture
def service(client):
    response = client.post("/services/", json={
        "artist_id": ARTIST_ID,
        "name": "Fade + beard",
        "duration": 45,
        "price": 25.0,
        "deposit": 5.0,
    })
    assert response.status_code == 201
    return response.json()


def create_booking(client, **overrides):
    body = {
        "artist_id": ARTIST_ID,
        "client_name": "Ana",
        "start_time": "2026-10-19T10:00:00Z",
    }
    body.update(overrides)
    return client.post("/bookings/", json=body)


class TestServices:
    def test_list_by_artist(self, client, service):
        other = "9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d"
        client.post("/services/", json={
            "artist_id": other, "name": "Tattoo", "duration": 120, "price": 100,
        })
        names = [s["name"] for s in client.get("/services/", params={"artist_id": ARTIST_ID}).json()]
        assert names == ["Fade + beard"]

    def test_soft_delete(self, client, service):
        assert client.delete(f"/services/{service['id']}").status_code == 204
        assert client.get("/services/").json() == []
        assert client.get(f"/services/{service['id']}").json()["is_active"] is False

    def test_update(self, client, service):
        response = client.patch(f"/services/{service['id']}", json={"price": 30})
        assert response.json()["price"] == 30

    def test_invalid_duration_rejected(self, client):
        response = client.post("/services/", json={
            "artist_id": ARTIST_ID, "name": "Quick", "duration": 5, "price": 1,
        })
        assert response.status_code == 422


class TestCreateBooking:
    def test_with_service_fills_snapshots(self, client, service):
        response = create_booking(client, service_id=service["id"])
        assert response.status_code == 201

        body = response.json()
        assert body["status"] == "PENDING"
        assert body["service_name_snapshot"] == "Fade + beard"
        assert body["price_snapshot"] == 25.0
        assert body["duration_snapshot"] == 45
        assert body["end_time"].startswith("2026-10-19T10:45:00")

    def test_snapshot_survives_service_edit(self, client, service):
        booking = create_booking(client, service_id=service["id"]).json()
        client.patch(f"/services/{service['id']}", json={"price": 99, "name": "Renamed"})

        stored = client.get(f"/bookings/{booking['id']}").json()
        assert stored["price_snapshot"] == 25.0
        assert stored["service_name_snapshot"] == "Fade + beard"

    def test_without_service_uses_duration(self, client):
        body = create_booking(client, duration_minutes=90).json()
        assert body["end_time"].startswith("2026-10-19T11:30:00")
        assert body["service_id"] is None
        assert body["price_snapshot"] is None

    def test_without_service_or_duration_defaults_to_60(self, client):
        body = create_booking(client).json()
        assert body["duration_snapshot"] == 60

    def test_non_utc_start_is_normalized(self, client):
        body = create_booking(client, start_time="2026-10-19T07:00:00-03:00").json()
        assert body["start_time"].startswith("2026-10-19T10:00:00")

    def test_overlap_rejected(self, client, db):
        add_booking(db, utc(MONDAY, 10, 30), utc(MONDAY, 11, 30))
        response = create_booking(client)
        assert response.status_code == 409
        assert response.json()["detail"] == "Time slot is no longer available"

    def test_touching_booking_allowed(self, client, db):
        add_booking(db, utc(MONDAY, 11), utc(MONDAY, 12))
        assert create_booking(client).status_code == 201

    def test_buffer_from_settings_applies(self, client, db):
        hours = {str(d): {"start": "09:00", "end": "18:00", "enabled": True} for d in range(7)}
        client.put(f"/artist_settings/{ARTIST_ID}", json={
            "working_hours": hours, "buffer_minutes": 15,
        })
        add_booking(db, utc(MONDAY, 11), utc(MONDAY, 12))
        assert create_booking(client).status_code == 409

    def test_invalid_artist(self, client):
        assert create_booking(client, artist_id="abc").status_code == 400

    def test_unknown_service(self, client):
        assert create_booking(client, service_id=999).status_code == 404

    def test_service_of_other_artist(self, client, service):
        other = "9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d"
        assert create_booking(client, artist_id=other, service_id=service["id"]).status_code == 404

    def test_created_booking_blocks_availability(self, client):
        create_booking(client)
        slots = client.get("/availability", params={
            "artistId": ARTIST_ID, "date": MONDAY.isoformat(), "duration": "60",
        }).json()["slots"]
        assert "10:00" not in [s["local"] for s in slots]

    def test_invalidates_cache(self, client, redis_override):
        redis = MagicMock()
        redis.keys.return_value = []
        redis_override["client"] = redis

        create_booking(client)

        redis.keys.assert_called_once_with(f"slots:day:{ARTIST_ID}:2026-10-19:*")
        redis.pipeline.return_value.incr.assert_called_once_with(
            f"slots:ver:{ARTIST_ID}:2026-10-19"
        )


class TestConcurrentCreate:
    def test_same_slot_only_one_wins(self, tmp_path, monkeypatch):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'bookings.db'}",
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(engine)
        SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

        def override_get_db():
            session = SessionLocal()
            try:
                yield session
            finally:
                session.close()

        # Both requests wait here after their first check unless creation is serialized
        barrier = threading.Barrier(2, timeout=0.5)
        find_conflicts = bookings_router.find_conflicting_bookings

        def find_then_wait(*args, **kwargs):
            conflicts = find_conflicts(*args, **kwargs)
            try:
                barrier.wait()
            except threading.BrokenBarrierError:
                pass
            return conflicts

        monkeypatch.setattr(bookings_router, "find_conflicting_bookings", find_then_wait)
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_redis] = lambda: None

        statuses = []

        def post():
            response = create_booking(TestClient(app))
            statuses.append(response.status_code)

        try:
            threads = [threading.Thread(target=post) for _ in range(2)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
        finally:
            app.dependency_overrides.clear()

        with SessionLocal() as session:
            rows = session.query(Bookings).count()
        engine.dispose()

        assert sorted(statuses) == [201, 409]
        assert rows == 1


class TestCancelBooking:
    def test_cancel_frees_slot(self, client):
        booking = create_booking(client).json()

        response = client.post(f"/bookings/{booking['id']}/cancel", json={"reason": "sick"})
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert response.json()["cancel_reason"] == "sick"

        assert create_booking(client).status_code == 201

    def test_cancel_without_body(self, client):
        booking = create_booking(client).json()
        response = client.post(f"/bookings/{booking['id']}/cancel")
        assert response.status_code == 200
        assert response.json()["cancel_reason"] is None

    def test_cancel_twice(self, client):
        booking = create_booking(client).json()
        client.post(f"/bookings/{booking['id']}/cancel")
        assert client.post(f"/bookings/{booking['id']}/cancel").status_code == 400

    def test_completed_cannot_be_cancelled(self, client, db):
        obj = add_booking(db, utc(MONDAY, 9), utc(MONDAY, 10), status="COMPLETED")
        assert client.post(f"/bookings/{obj.id}/cancel").status_code == 400

    def test_cancel_unknown(self, client):
        assert client.post("/bookings/999/cancel").status_code == 404


class TestListBookings:
    def test_filter_by_artist_and_date(self, client, db):
        add_booking(db, utc(MONDAY, 9), utc(MONDAY, 10))
        add_booking(db, utc(MONDAY, 15), utc(MONDAY, 16), status="CANCELLED")
        add_booking(db, utc(MONDAY.replace(day=20), 9), utc(MONDAY.replace(day=20), 10))

        rows = client.get("/bookings/", params={"artist_id": ARTIST_ID, "date": "2026-10-19"}).json()
        assert [r["status"] for r in rows] == ["CONFIRMED", "CANCELLED"]

    def test_get_unknown(self, client):
        assert client.get("/bookings/999").status_code == 404


class TestNotAllowed:
    def test_patch(self, client):
        assert client.patch("/bookings/1").status_code == 405

    def test_delete(self, client):
        assert client.delete("/bookings/1").status_code == 405
