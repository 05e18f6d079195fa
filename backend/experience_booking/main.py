import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings
from .database import create_tables
from .routers import bookings, experiences, promos
from .utils.log_config import configure_logging
from .utils.request_id import request_id_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(settings.log_level)
    if settings.create_tables:
        await create_tables()
    yield


app = FastAPI(title="Experience Booking API", lifespan=lifespan)
app.middleware("http")(request_id_middleware)


def _failure(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "status": "failed"}, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _failure(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("rejected request: %s", exc.errors())
    if request.url.path.startswith(promos.router.prefix):
        # /promo responses always carry "valid".
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"valid": False, "error": "Invalid request"},
        )
    return _failure(status.HTTP_400_BAD_REQUEST, "Invalid request")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unexpected error on %s %s", request.method, request.url.path)
    return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(experiences.router)
app.include_router(promos.router)
app.include_router(bookings.router)
