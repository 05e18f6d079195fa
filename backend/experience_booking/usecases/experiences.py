from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from ..domain.errors import ExperienceNotFoundError
from ..domain.pricing import PriceQuote, PromoValidation, quote_price
from ..domain.repositories import ExperienceRepository, PromoCodeRepository, SlotRepository
from ..models import Experience
from . import promos as promo_usecase
from . import slots as slot_usecase


async def list_experiences(exp_repo: ExperienceRepository) -> Sequence[Experience]:
    return await exp_repo.list_all()


async def get_experience_with_slots(
    exp_repo: ExperienceRepository,
    slot_repo: SlotRepository,
    *,
    experience_id: int,
    today: date,
) -> tuple[Experience, List[Dict[str, Any]]]:
    experience = await exp_repo.get(experience_id)
    if experience is None:
        raise ExperienceNotFoundError("Experience not found")
    slots = await slot_usecase.list_availability(slot_repo, experience_id=experience.id, from_date=today)
    return experience, slots


async def quote_experience(
    exp_repo: ExperienceRepository,
    promo_repo: PromoCodeRepository,
    *,
    experience_id: int,
    quantity: int,
    tax_rate: Decimal,
    promo_code: Optional[str] = None,
) -> tuple[PriceQuote, Optional[PromoValidation]]:
    """Price a prospective booking; an invalid promo code contributes no discount."""
    experience = await exp_repo.get(experience_id)
    if experience is None:
        raise ExperienceNotFoundError("Experience not found")

    base = quote_price(price=experience.price, quantity=quantity, tax_rate=tax_rate)
    if not promo_code:
        return base, None

    promo = await promo_usecase.validate_promo_code(promo_repo, code=promo_code, subtotal=base.subtotal)
    if not promo.valid:
        return base, promo
    quote = quote_price(price=experience.price, quantity=quantity, tax_rate=tax_rate, discount=promo.discount)
    return quote, promo
