import random
import re
import string
from dataclasses import dataclass

from .errors import InsufficientCapacityError, InvalidRequestError

BOOKING_REF_ALPHABET = string.ascii_uppercase + string.digits
BOOKING_REF_LENGTH = 8

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class SlotSnapshot:
    total_slots: int
    booked_slots: int

    @property
    def available(self) -> int:
        return self.total_slots - self.booked_slots


def check_capacity(snapshot: SlotSnapshot, *, quantity: int) -> int:
    """
    Pure capacity check against a slot read.
    Returns the capacity left after booking `quantity`; raises InsufficientCapacityError otherwise.
    A passing check does not guarantee the reservation: the snapshot may already be stale.
    """
    if quantity <= 0:
        raise InvalidRequestError("quantity must be positive")
    if snapshot.available < quantity:
        raise InsufficientCapacityError("Not enough slots available")
    return snapshot.available - quantity


def validate_booking_request(*, user_name: str, user_email: str, quantity: int) -> None:
    if not user_name or not user_name.strip():
        raise InvalidRequestError("Missing required fields")
    if not user_email or not EMAIL_PATTERN.match(user_email):
        raise InvalidRequestError("Invalid email format")
    if quantity <= 0:
        raise InvalidRequestError("Quantity must be at least 1")


def generate_booking_ref(rng: random.Random | None = None) -> str:
    """Human-facing reference; uniqueness is enforced by the bookings table, not here."""
    chooser = rng or random
    return "".join(chooser.choice(BOOKING_REF_ALPHABET) for _ in range(BOOKING_REF_LENGTH))


def normalize_promo_code(code: str | None) -> str | None:
    if code is None:
        return None
    normalized = code.strip().upper()
    return normalized or None
