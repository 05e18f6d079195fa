from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import StrEnum
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Enum, ForeignKey, Index, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import BigInteger, Date, DateTime, Integer, String, Time

Money = Numeric(12, 2)


class Base(DeclarativeBase):
    pass


class BookingStatus(StrEnum):
    CONFIRMED = "confirmed"


class DiscountType(StrEnum):
    PERCENTAGE = "percentage"
    FLAT = "flat"


class Experience(Base):
    __tablename__ = "experiences"
    __table_args__ = (CheckConstraint("price >= 0", name="chk_experiences_price"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[str] = mapped_column(String(1024), nullable=False)
    price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    guide_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    about: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    slots: Mapped[list["Slot"]] = relationship(back_populates="experience")


class Slot(Base):
    __tablename__ = "available_slots"
    __table_args__ = (
        CheckConstraint("total_slots >= 0", name="chk_slots_total"),
        CheckConstraint("booked_slots >= 0", name="chk_slots_booked"),
        CheckConstraint("booked_slots <= total_slots", name="chk_slots_overbooked"),
        UniqueConstraint("experience_id", "date", "time", name="uq_slots"),
        Index("idx_slots_experience_date", "experience_id", "date"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    experience_id: Mapped[int] = mapped_column(ForeignKey("experiences.id"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    total_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    booked_slots: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    experience: Mapped["Experience"] = relationship(back_populates="slots")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="chk_bookings_quantity"),
        UniqueConstraint("booking_ref", name="uq_bookings_ref"),
        Index("idx_bookings_slot", "slot_id"),
        Index("idx_bookings_email", "user_email"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    booking_ref: Mapped[str] = mapped_column(String(8), nullable=False)
    experience_id: Mapped[int] = mapped_column(ForeignKey("experiences.id"), nullable=False)
    slot_id: Mapped[int] = mapped_column(ForeignKey("available_slots.id"), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    subtotal: Mapped[Decimal] = mapped_column(Money, nullable=False)
    taxes: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    discount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    total_price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    promo_code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[BookingStatus] = mapped_column(
        Enum(
            BookingStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            native_enum=False,
        ),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class PromoCode(Base):
    __tablename__ = "promo_codes"
    __table_args__ = (UniqueConstraint("code", name="uq_promo_codes_code"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    # Plain string: unknown types are tolerated and yield no discount.
    discount_type: Mapped[str] = mapped_column(String(32), nullable=False)
    discount_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False)
