from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..deps import get_session, get_today
from ..domain.errors import ExperienceNotFoundError
from ..infrastructure.repositories import (
    SqlAlchemyExperienceRepository,
    SqlAlchemyPromoCodeRepository,
    SqlAlchemySlotRepository,
)
from ..schemas import ErrorResponse, ExperienceDetail, ExperienceRead, QuoteRead
from ..usecases import experiences as experience_usecase

router = APIRouter(prefix="/experiences", tags=["experiences"])


@router.get("", response_model=List[ExperienceRead])
async def list_experiences(session: AsyncSession = Depends(get_session)) -> list[ExperienceRead]:
    exp_repo = SqlAlchemyExperienceRepository(session)
    rows = await experience_usecase.list_experiences(exp_repo)
    return [ExperienceRead.from_db(experience=exp) for exp in rows]


@router.get("/{experience_id}", response_model=ExperienceDetail, responses={404: {"model": ErrorResponse}})
async def get_experience(
    experience_id: int,
    today: date = Depends(get_today),
    session: AsyncSession = Depends(get_session),
) -> ExperienceDetail:
    exp_repo = SqlAlchemyExperienceRepository(session)
    slot_repo = SqlAlchemySlotRepository(session)
    try:
        experience, slots = await experience_usecase.get_experience_with_slots(
            exp_repo,
            slot_repo,
            experience_id=experience_id,
            today=today,
        )
    except ExperienceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    return ExperienceDetail.from_db_with_slots(experience=experience, slots=slots)


@router.get("/{experience_id}/quote", response_model=QuoteRead, responses={404: {"model": ErrorResponse}})
async def quote_experience(
    experience_id: int,
    quantity: int = Query(..., ge=1),
    promo_code: Optional[str] = Query(default=None),
    settings: Settings = Depends(get_settings),
    session: AsyncSession = Depends(get_session),
) -> QuoteRead:
    exp_repo = SqlAlchemyExperienceRepository(session)
    promo_repo = SqlAlchemyPromoCodeRepository(session)
    try:
        quote, promo = await experience_usecase.quote_experience(
            exp_repo,
            promo_repo,
            experience_id=experience_id,
            quantity=quantity,
            tax_rate=settings.tax_rate,
            promo_code=promo_code,
        )
    except ExperienceNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return QuoteRead.from_quote(experience_id=experience_id, quantity=quantity, quote=quote, promo=promo)
