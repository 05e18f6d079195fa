from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..models import DiscountType, PromoCode

INVALID_PROMO_MESSAGE = "Invalid promo code"


@dataclass(frozen=True)
class PromoValidation:
    valid: bool
    discount: Decimal = Decimal("0")
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class PriceQuote:
    subtotal: Decimal
    taxes: Decimal
    discount: Decimal
    total: Decimal


def round_currency(amount: Decimal) -> Decimal:
    """Round to a whole currency unit, halves away from zero."""
    return amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def calculate_discount(discount_type: str, discount_value: Decimal, subtotal: Decimal) -> Decimal:
    if discount_type == DiscountType.PERCENTAGE:
        return round_currency(subtotal * discount_value / Decimal(100))
    if discount_type == DiscountType.FLAT:
        return min(discount_value, subtotal)
    return Decimal("0")


def evaluate_promo(promo: PromoCode | None, subtotal: Decimal) -> PromoValidation:
    """
    Turn a looked-up promo row into a validation result.
    Unknown and inactive codes produce the same answer so callers cannot tell them apart.
    """
    if promo is None or not promo.is_active:
        return PromoValidation(valid=False, error=INVALID_PROMO_MESSAGE)
    return PromoValidation(
        valid=True,
        discount=calculate_discount(promo.discount_type, promo.discount_value, subtotal),
        discount_type=promo.discount_type,
        discount_value=promo.discount_value,
    )


def quote_price(*, price: Decimal, quantity: int, tax_rate: Decimal, discount: Decimal = Decimal("0")) -> PriceQuote:
    subtotal = price * quantity
    taxes = round_currency(subtotal * tax_rate)
    total = max(subtotal + taxes - discount, Decimal("0"))
    return PriceQuote(subtotal=subtotal, taxes=taxes, discount=discount, total=total)
