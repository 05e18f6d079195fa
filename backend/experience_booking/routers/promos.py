from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session
from ..infrastructure.repositories import SqlAlchemyPromoCodeRepository
from ..schemas import PromoValidate, PromoValidationRead
from ..usecases import promos as promo_usecase

router = APIRouter(prefix="/promo", tags=["promo"])


@router.post("/validate", response_model=PromoValidationRead, response_model_exclude_none=True)
async def validate_promo(
    payload: PromoValidate,
    session: AsyncSession = Depends(get_session),
) -> PromoValidationRead:
    promo_repo = SqlAlchemyPromoCodeRepository(session)
    result = await promo_usecase.validate_promo_code(promo_repo, code=payload.code, subtotal=payload.subtotal)
    return PromoValidationRead.from_result(result)
