from datetime import date, time
from decimal import Decimal
from typing import AsyncIterator, Iterator

import pytest
from experience_booking.deps import get_session, get_today
from experience_booking.main import app
from experience_booking.routers import bookings, experiences, promos
from fakes import FakeBookingRepo, FakeExperienceRepo, FakePromoRepo, FakeSlotRepo, make_experience, make_promo, make_slot
from httpx import ASGITransport, AsyncClient

TODAY = date(2026, 3, 10)


class Store:
    def __init__(self) -> None:
        self.experiences = FakeExperienceRepo(make_experience(1, price=Decimal("1000")))
        self.slots = FakeSlotRepo(
            make_slot(1, total_slots=5, booked_slots=3, day=TODAY, at=time(9, 0)),
            make_slot(2, total_slots=4, booked_slots=4, day=TODAY, at=time(14, 0)),
        )
        self.bookings = FakeBookingRepo()
        self.promos = FakePromoRepo(make_promo("SAVE10", "percentage", "10"))


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch, audit_calls: list) -> Iterator[Store]:
    data = Store()

    async def override_get_session() -> AsyncIterator[object]:
        yield object()

    monkeypatch.setattr(experiences, "SqlAlchemyExperienceRepository", lambda s: data.experiences)
    monkeypatch.setattr(experiences, "SqlAlchemySlotRepository", lambda s: data.slots)
    monkeypatch.setattr(experiences, "SqlAlchemyPromoCodeRepository", lambda s: data.promos)
    monkeypatch.setattr(promos, "SqlAlchemyPromoCodeRepository", lambda s: data.promos)
    monkeypatch.setattr(bookings, "SqlAlchemySlotRepository", lambda s: data.slots)
    monkeypatch.setattr(bookings, "SqlAlchemyBookingRepository", lambda s: data.bookings)
    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_today] = lambda: TODAY
    yield data
    app.dependency_overrides.clear()


def _client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def _booking_body(**overrides: object) -> dict:
    body: dict = {
        "experience_id": 1,
        "slot_id": 1,
        "user_name": "Priya",
        "user_email": "priya@example.com",
        "quantity": 2,
        "subtotal": 2000,
        "taxes": 120,
        "discount": 200,
        "total_price": 1920,
        "promo_code": "save10",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_health() -> None:
    async with _client() as client:
        resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_experience_detail_marks_sold_out_slots(store: Store) -> None:
    async with _client() as client:
        resp = await client.get("/experiences/1")
    assert resp.status_code == 200
    body = resp.json()
    assert body["price"] == 1000
    slots = {s["id"]: s for s in body["available_slots"]}
    assert slots[1]["available"] == 2 and slots[1]["sold_out"] is False
    assert slots[2]["available"] == 0 and slots[2]["sold_out"] is True
    assert slots[1]["time"] == "09:00:00"


@pytest.mark.asyncio
async def test_unknown_experience_is_404(store: Store) -> None:
    async with _client() as client:
        resp = await client.get("/experiences/99")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Experience not found", "status": "failed"}


@pytest.mark.asyncio
async def test_quote(store: Store) -> None:
    async with _client() as client:
        resp = await client.get("/experiences/1/quote", params={"quantity": 2, "promo_code": "save10"})
    assert resp.status_code == 200
    body = resp.json()
    assert (body["subtotal"], body["taxes"], body["discount"], body["total"]) == (2000, 120, 200, 1920)
    assert body["promo"]["valid"] is True


@pytest.mark.asyncio
async def test_promo_validate(store: Store) -> None:
    async with _client() as client:
        ok = await client.post("/promo/validate", json={"code": "save10", "subtotal": 1000})
        bad = await client.post("/promo/validate", json={"code": "NOPE", "subtotal": 1000})
        malformed = await client.post("/promo/validate", json={"code": "save10"})
    assert ok.json() == {"valid": True, "discount": 100, "discount_type": "percentage", "discount_value": 10}
    assert bad.status_code == 200
    assert bad.json() == {"valid": False, "error": "Invalid promo code"}
    assert malformed.status_code == 400
    assert malformed.json() == {"valid": False, "error": "Invalid request"}


@pytest.mark.asyncio
@pytest.mark.parametrize("subtotal", ["1000", True, -1])
async def test_promo_validate_rejects_bad_subtotal(store: Store, subtotal: object) -> None:
    async with _client() as client:
        resp = await client.post("/promo/validate", json={"code": "save10", "subtotal": subtotal})
    assert resp.status_code == 400
    assert resp.json() == {"valid": False, "error": "Invalid request"}


@pytest.mark.asyncio
async def test_booking_confirmed(store: Store) -> None:
    async with _client() as client:
        resp = await client.post("/bookings", json=_booking_body(), headers={"X-Request-ID": "req-42"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["status"] == "confirmed"
    assert body["booking"]["promo_code"] == "SAVE10"
    assert len(body["booking"]["booking_ref"]) == 8
    assert resp.headers["X-Request-ID"] == "req-42"
    assert store.slots.booked(1) == 5

    async with _client() as client:
        fetched = await client.get(f"/bookings/{body['booking']['booking_ref']}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == body["booking"]["id"]


@pytest.mark.asyncio
async def test_booking_rejected_when_not_enough_places(store: Store) -> None:
    async with _client() as client:
        resp = await client.post("/bookings", json=_booking_body(quantity=3))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Not enough slots available", "status": "failed"}
    assert store.slots.booked(1) == 3


@pytest.mark.asyncio
async def test_booking_rejects_bad_email_without_touching_slot(store: Store) -> None:
    async with _client() as client:
        resp = await client.post("/bookings", json=_booking_body(user_email="not-an-email"))
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid email format"
    assert store.slots.booked(1) == 3


@pytest.mark.asyncio
async def test_booking_missing_field_is_400(store: Store) -> None:
    body = _booking_body()
    del body["user_email"]
    async with _client() as client:
        resp = await client.post("/bookings", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request", "status": "failed"}


@pytest.mark.asyncio
async def test_booking_persistence_failure_is_500_and_restores_slot(store: Store) -> None:
    store.bookings.fail_with = RuntimeError("insert failed")
    async with _client() as client:
        resp = await client.post("/bookings", json=_booking_body())
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to create booking", "status": "failed"}
    assert store.slots.booked(1) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"quantity": 0},
        {"quantity": -1},
        {"subtotal": -1},
        {"total_price": -5},
        {"taxes": -0.01},
        {"user_name": "N" * 256},
        {"user_email": "a" * 250 + "@example.com"},
        {"promo_code": "P" * 65},
        {"subtotal": 1e15},
        {"total_price": "12345678901"},
        {"discount": 1.005},
    ],
)
async def test_booking_out_of_range_fields_are_400_without_touching_slot(store: Store, overrides: dict) -> None:
    async with _client() as client:
        resp = await client.post("/bookings", json=_booking_body(**overrides))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request", "status": "failed"}
    assert store.slots.booked(1) == 3
    assert store.bookings.rows == []
