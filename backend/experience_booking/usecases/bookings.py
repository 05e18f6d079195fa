import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..domain.errors import InvalidSlotError, PersistenceFailureError, ReservationConflictError
from ..domain.repositories import BookingRepository, SlotRepository
from ..domain.services import (
    SlotSnapshot,
    check_capacity,
    generate_booking_ref,
    normalize_promo_code,
    validate_booking_request,
)
from ..models import Booking, BookingStatus
from ..utils.audit_log import emit_audit_log

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingRequest:
    experience_id: int
    slot_id: int
    user_name: str
    user_email: str
    quantity: int
    subtotal: Decimal
    taxes: Decimal
    discount: Decimal
    total_price: Decimal
    promo_code: Optional[str] = None


async def confirm_booking(
    slot_repo: SlotRepository,
    booking_repo: BookingRepository,
    *,
    request: BookingRequest,
) -> Booking:
    """
    Reserve capacity on the slot and write the booking record.

    The reservation is a compare-and-swap on the slot's booked count taken from the
    snapshot read here; losing the race raises ReservationConflictError and is not
    retried. Reservation and insert are separate writes: if the insert fails the
    reservation is released before PersistenceFailureError is raised.
    """
    validate_booking_request(
        user_name=request.user_name,
        user_email=request.user_email,
        quantity=request.quantity,
    )

    slot = await slot_repo.get(request.slot_id)
    if slot is None or slot.experience_id != request.experience_id:
        raise InvalidSlotError("Invalid slot")

    snapshot = SlotSnapshot(total_slots=slot.total_slots, booked_slots=slot.booked_slots)
    check_capacity(snapshot, quantity=request.quantity)

    reserved = await slot_repo.reserve(slot.id, request.quantity, snapshot.booked_slots)
    if not reserved:
        raise ReservationConflictError("Booking conflict. Please try again.")

    try:
        booking = await booking_repo.create(
            booking_ref=generate_booking_ref(),
            experience_id=request.experience_id,
            slot_id=slot.id,
            user_name=request.user_name.strip(),
            user_email=request.user_email,
            quantity=request.quantity,
            subtotal=request.subtotal,
            taxes=request.taxes,
            discount=request.discount,
            total_price=request.total_price,
            promo_code=normalize_promo_code(request.promo_code),
            status=BookingStatus.CONFIRMED,
        )
    except Exception as exc:
        logger.error("failed to create booking for slot %s: %s", slot.id, exc)
        await _release_reservation(slot_repo, slot_id=slot.id, quantity=request.quantity)
        raise PersistenceFailureError("Failed to create booking") from exc

    _audit(
        action="booking.confirmed",
        initiator="user",
        slot_id=slot.id,
        quantity=booking.quantity,
        booking_id=booking.id,
        booking_ref=booking.booking_ref,
        experience_id=booking.experience_id,
        status=booking.status,
        total_price=booking.total_price,
    )
    return booking


async def get_booking(booking_repo: BookingRepository, *, booking_ref: str) -> Booking | None:
    return await booking_repo.get_by_ref(booking_ref.strip().upper())


async def _release_reservation(slot_repo: SlotRepository, *, slot_id: int, quantity: int) -> None:
    # A failed release leaves the slot over-reserved; it is reported, not repaired.
    try:
        await slot_repo.release(slot_id, quantity)
    except Exception:
        logger.critical(
            "could not release %s reserved place(s) on slot %s; slot is over-reserved",
            quantity,
            slot_id,
            exc_info=True,
        )
        _audit(action="booking.release_failed", initiator="system", slot_id=slot_id, quantity=quantity)
        return
    _audit(action="booking.reservation_released", initiator="system", slot_id=slot_id, quantity=quantity)


def _audit(**kwargs) -> None:
    # Runs after commit; audit failures are logged only.
    try:
        emit_audit_log(**kwargs)
    except RuntimeError:
        logger.exception("failed to emit audit log for %s", kwargs.get("action"))
