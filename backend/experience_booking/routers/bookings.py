from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..deps import get_session
from ..domain.errors import (
    InsufficientCapacityError,
    InvalidRequestError,
    InvalidSlotError,
    PersistenceFailureError,
    ReservationConflictError,
)
from ..infrastructure.repositories import SqlAlchemyBookingRepository, SqlAlchemySlotRepository
from ..schemas import BookingConfirmation, BookingCreate, BookingRead, ErrorResponse
from ..usecases import bookings as booking_usecase

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingConfirmation,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_booking(
    payload: BookingCreate,
    session: AsyncSession = Depends(get_session),
) -> BookingConfirmation:
    slot_repo = SqlAlchemySlotRepository(session)
    booking_repo = SqlAlchemyBookingRepository(session)
    try:
        booking = await booking_usecase.confirm_booking(
            slot_repo,
            booking_repo,
            request=payload.to_request(),
        )
    except (InvalidRequestError, InvalidSlotError, InsufficientCapacityError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ReservationConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except PersistenceFailureError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

    return BookingConfirmation(booking=BookingRead.from_db(booking=booking))


@router.get("/{booking_ref}", response_model=BookingRead, responses={404: {"model": ErrorResponse}})
async def get_booking(
    booking_ref: str = Path(..., min_length=8, max_length=8),
    session: AsyncSession = Depends(get_session),
) -> BookingRead:
    booking_repo = SqlAlchemyBookingRepository(session)
    booking = await booking_usecase.get_booking(booking_repo, booking_ref=booking_ref)
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return BookingRead.from_db(booking=booking)
