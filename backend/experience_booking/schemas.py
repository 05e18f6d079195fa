import datetime as dt
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_serializer, field_validator

from .domain.pricing import PriceQuote, PromoValidation
from .models import Booking, BookingStatus, Experience, Slot
from .usecases.bookings import BookingRequest
from .utils.time import utc_naive_to_aware


def _money(value: Decimal) -> int | float:
    # Whole amounts serialize as integers.
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class ErrorResponse(BaseModel):
    error: str
    status: str = "failed"


class ExperienceRead(BaseModel):
    id: int
    title: str
    description: str
    image: str
    price: Decimal
    location: str
    guide_name: Optional[str]
    about: Optional[str]
    created_at: datetime

    @field_serializer("price")
    def _ser_price(self, value: Decimal) -> int | float:
        return _money(value)

    @field_serializer("created_at")
    def _ser_datetime(self, value: datetime) -> str:
        return utc_naive_to_aware(value).isoformat()

    @classmethod
    def from_db(cls, *, experience: Experience) -> "ExperienceRead":
        return cls(
            id=experience.id,
            title=experience.title,
            description=experience.description,
            image=experience.image,
            price=experience.price,
            location=experience.location,
            guide_name=experience.guide_name,
            about=experience.about,
            created_at=experience.created_at,
        )


class SlotAvailability(BaseModel):
    id: int
    experience_id: int
    date: dt.date
    time: dt.time
    total_slots: int
    booked_slots: int
    available: int
    sold_out: bool

    @classmethod
    def from_entry(cls, entry: Dict[str, Any]) -> "SlotAvailability":
        slot: Slot = entry["slot"]
        return cls(
            id=slot.id,
            experience_id=slot.experience_id,
            date=slot.date,
            time=slot.time,
            total_slots=slot.total_slots,
            booked_slots=slot.booked_slots,
            available=entry["available"],
            sold_out=entry["sold_out"],
        )


class ExperienceDetail(ExperienceRead):
    available_slots: list[SlotAvailability] = Field(default_factory=list)

    @classmethod
    def from_db_with_slots(cls, *, experience: Experience, slots: list[Dict[str, Any]]) -> "ExperienceDetail":
        detail = cls.from_db(experience=experience)
        detail.available_slots = [SlotAvailability.from_entry(entry) for entry in slots]
        return detail


class PromoValidate(BaseModel):
    code: str = Field(min_length=1)
    subtotal: Decimal = Field(ge=0)

    @field_validator("subtotal", mode="before")
    @classmethod
    def _subtotal_is_number(cls, value: Any) -> Any:
        if isinstance(value, (str, bool)):
            raise ValueError("subtotal must be a number")
        return value


class PromoValidationRead(BaseModel):
    valid: bool
    discount: Optional[Decimal] = None
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = None
    error: Optional[str] = None

    @field_serializer("discount", "discount_value")
    def _ser_amount(self, value: Optional[Decimal]) -> int | float | None:
        return None if value is None else _money(value)

    @classmethod
    def from_result(cls, result: PromoValidation) -> "PromoValidationRead":
        if not result.valid:
            return cls(valid=False, error=result.error)
        return cls(
            valid=True,
            discount=result.discount,
            discount_type=result.discount_type,
            discount_value=result.discount_value,
        )


class QuoteRead(BaseModel):
    experience_id: int
    quantity: int
    subtotal: Decimal
    taxes: Decimal
    discount: Decimal
    total: Decimal
    promo: Optional[PromoValidationRead] = None

    @field_serializer("subtotal", "taxes", "discount", "total")
    def _ser_amount(self, value: Decimal) -> int | float:
        return _money(value)

    @classmethod
    def from_quote(
        cls,
        *,
        experience_id: int,
        quantity: int,
        quote: PriceQuote,
        promo: Optional[PromoValidation],
    ) -> "QuoteRead":
        return cls(
            experience_id=experience_id,
            quantity=quantity,
            subtotal=quote.subtotal,
            taxes=quote.taxes,
            discount=quote.discount,
            total=quote.total,
            promo=PromoValidationRead.from_result(promo) if promo is not None else None,
        )


class BookingCreate(BaseModel):
    experience_id: int
    slot_id: int
    user_name: str = Field(max_length=255)
    user_email: str = Field(max_length=255)
    quantity: int = Field(ge=1)
    # Bounds follow the Numeric(12, 2) money columns.
    subtotal: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    taxes: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    total_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    promo_code: Optional[str] = Field(default=None, max_length=64)

    def to_request(self) -> BookingRequest:
        return BookingRequest(
            experience_id=self.experience_id,
            slot_id=self.slot_id,
            user_name=self.user_name,
            user_email=self.user_email,
            quantity=self.quantity,
            subtotal=self.subtotal,
            taxes=self.taxes,
            discount=self.discount,
            total_price=self.total_price,
            promo_code=self.promo_code,
        )


class BookingRead(BaseModel):
    id: int
    booking_ref: str
    experience_id: int
    slot_id: int
    user_name: str
    user_email: str
    quantity: int
    subtotal: Decimal
    taxes: Decimal
    discount: Decimal
    total_price: Decimal
    promo_code: Optional[str]
    status: BookingStatus
    created_at: datetime

    @field_serializer("subtotal", "taxes", "discount", "total_price")
    def _ser_amount(self, value: Decimal) -> int | float:
        return _money(value)

    @field_serializer("created_at")
    def _ser_datetime(self, value: datetime) -> str:
        return utc_naive_to_aware(value).isoformat()

    @classmethod
    def from_db(cls, *, booking: Booking) -> "BookingRead":
        return cls(
            id=booking.id,
            booking_ref=booking.booking_ref,
            experience_id=booking.experience_id,
            slot_id=booking.slot_id,
            user_name=booking.user_name,
            user_email=booking.user_email,
            quantity=booking.quantity,
            subtotal=booking.subtotal,
            taxes=booking.taxes,
            discount=booking.discount,
            total_price=booking.total_price,
            promo_code=booking.promo_code,
            status=booking.status,
            created_at=booking.created_at,
        )


class BookingConfirmation(BaseModel):
    success: bool = True
    booking: BookingRead
    status: BookingStatus = BookingStatus.CONFIRMED
