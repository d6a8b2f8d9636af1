from typing import AsyncIterator

import httpx
from fastapi import Depends

from chat_relay.config import Settings, get_settings


async def get_http_client(settings: Settings = Depends(get_settings)) -> AsyncIterator[httpx.AsyncClient]:
    """One outbound client per request, closed when the response is sent."""
    async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
        yield client
