from decimal import Decimal

from ..domain.pricing import PromoValidation, evaluate_promo
from ..domain.repositories import PromoCodeRepository
from ..domain.services import normalize_promo_code


async def validate_promo_code(
    promo_repo: PromoCodeRepository,
    *,
    code: str,
    subtotal: Decimal,
) -> PromoValidation:
    normalized = normalize_promo_code(code)
    promo = await promo_repo.get_active(normalized) if normalized else None
    return evaluate_promo(promo, subtotal)
