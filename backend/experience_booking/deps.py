from datetime import date
from typing import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .database import async_session
from .utils.time import today_in


async def get_session() -> AsyncIterator[AsyncSession]:
    async with async_session() as session:
        yield session


def get_today(settings: Settings = Depends(get_settings)) -> date:
    return today_in(settings.timezone)
