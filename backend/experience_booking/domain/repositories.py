from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol, Sequence

from ..models import Booking, BookingStatus, Experience, PromoCode, Slot


class ExperienceRepository(Protocol):
    async def list_all(self) -> Sequence[Experience]: ...

    async def get(self, experience_id: int) -> Experience | None: ...


class SlotRepository(Protocol):
    async def get(self, slot_id: int) -> Slot | None: ...

    async def list_upcoming(self, experience_id: int, from_date: date) -> Sequence[Slot]: ...

    async def reserve(self, slot_id: int, quantity: int, expected_booked: int) -> bool:
        """Compare-and-swap increment. False when booked_slots no longer equals expected_booked."""
        ...

    async def release(self, slot_id: int, quantity: int) -> None: ...


class BookingRepository(Protocol):
    async def create(
        self,
        *,
        booking_ref: str,
        experience_id: int,
        slot_id: int,
        user_name: str,
        user_email: str,
        quantity: int,
        subtotal: Decimal,
        taxes: Decimal,
        discount: Decimal,
        total_price: Decimal,
        promo_code: str | None,
        status: BookingStatus,
    ) -> Booking: ...

    async def get_by_ref(self, booking_ref: str) -> Booking | None: ...


class PromoCodeRepository(Protocol):
    async def get_active(self, code: str) -> PromoCode | None: ...
