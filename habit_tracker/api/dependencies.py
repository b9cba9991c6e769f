from __future__ import annotations
from datetime import date
from typing import AsyncIterator
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..utils.dates import today_in_zone


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.database.session() as session:
        yield session


def get_today() -> date:
    return today_in_zone(settings.TIMEZONE)
