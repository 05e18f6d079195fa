from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.repositories import BookingRepository, ExperienceRepository, PromoCodeRepository, SlotRepository
from ..models import Booking, BookingStatus, Experience, PromoCode, Slot
from ..utils.time import utc_now_naive

logger = logging.getLogger(__name__)


class SqlAlchemyExperienceRepository(ExperienceRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> List[Experience]:
        rows = await self.session.scalars(select(Experience).order_by(Experience.created_at.asc()))
        return list(rows.all())

    async def get(self, experience_id: int) -> Experience | None:
        result = await self.session.scalar(select(Experience).where(Experience.id == experience_id))
        return result if isinstance(result, Experience) else None


class SqlAlchemySlotRepository(SlotRepository):
    """
    Owns every write to ``available_slots.booked_slots``.

    ``reserve`` and ``release`` commit immediately: the booking insert that follows
    a reservation is a separate write, and a failed insert is undone with ``release``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, slot_id: int) -> Slot | None:
        result = await self.session.scalar(select(Slot).where(Slot.id == slot_id))
        return result if isinstance(result, Slot) else None

    async def list_upcoming(self, experience_id: int, from_date: date) -> List[Slot]:
        stmt = (
            select(Slot)
            .where(Slot.experience_id == experience_id, Slot.date >= from_date)
            .order_by(Slot.date.asc(), Slot.time.asc())
        )
        rows = await self.session.scalars(stmt)
        return list(rows.all())

    async def reserve(self, slot_id: int, quantity: int, expected_booked: int) -> bool:
        stmt = (
            update(Slot)
            .where(Slot.id == slot_id, Slot.booked_slots == expected_booked)
            .values(booked_slots=expected_booked + quantity)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        applied = result.rowcount == 1
        if not applied:
            logger.info("reservation lost race on slot %s (expected booked=%s)", slot_id, expected_booked)
        return applied

    async def release(self, slot_id: int, quantity: int) -> None:
        stmt = (
            update(Slot)
            .where(Slot.id == slot_id)
            .values(booked_slots=Slot.booked_slots - quantity)
            .execution_options(synchronize_session=False)
        )
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise


class SqlAlchemyBookingRepository(BookingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

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
    ) -> Booking:
        booking = Booking(
            booking_ref=booking_ref,
            experience_id=experience_id,
            slot_id=slot_id,
            user_name=user_name,
            user_email=user_email,
            quantity=quantity,
            subtotal=subtotal,
            taxes=taxes,
            discount=discount,
            total_price=total_price,
            promo_code=promo_code,
            status=status,
            created_at=utc_now_naive(),
        )
        self.session.add(booking)
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        return booking

    async def get_by_ref(self, booking_ref: str) -> Optional[Booking]:
        result = await self.session.scalar(select(Booking).where(Booking.booking_ref == booking_ref))
        return result if isinstance(result, Booking) else None


class SqlAlchemyPromoCodeRepository(PromoCodeRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_active(self, code: str) -> PromoCode | None:
        stmt = select(PromoCode).where(PromoCode.code == code, PromoCode.is_active.is_(True))
        result = await self.session.scalar(stmt)
        return result if isinstance(result, PromoCode) else None
