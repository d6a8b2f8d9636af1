"""Chat Relay Service — Supabase (PostgREST) helpers."""

from typing import Any

import httpx

from chat_relay.config import Settings
from chat_relay.exceptions import StoreFailure


def _rest_url(settings: Settings) -> str:
    return f"{settings.supabase_url.rstrip('/')}/rest/v1/{settings.supabase_table}"


async def count_chat_messages(client: httpx.AsyncClient, settings: Settings) -> Any:
    """Single-row `select=count` read against the chat message table.

    Returns the decoded row, e.g. {"count": 42}.
    """
    if not settings.supabase_url or not settings.supabase_key:
        raise StoreFailure("SUPABASE_URL / SUPABASE_KEY not configured")

    try:
        response = await client.get(
            _rest_url(settings),
            params={"select": "count"},
            headers={
                "apikey": settings.supabase_key,
                "Authorization": f"Bearer {settings.supabase_key}",
                # ask PostgREST for a single object, like supabase-js .single()
                "Accept": "application/vnd.pgrst.object+json",
            },
            timeout=settings.request_timeout,
        )
    except httpx.TimeoutException as e:
        raise StoreFailure(f"Supabase timed out after {settings.request_timeout:g}s") from e
    except httpx.HTTPError as e:
        raise StoreFailure(str(e) or e.__class__.__name__) from e

    try:
        body = response.json()
    except ValueError:
        body = None

    if response.status_code != 200:
        if isinstance(body, dict) and body.get("message"):
            raise StoreFailure(body["message"])
        raise StoreFailure(f"Supabase returned {response.status_code}")
    if body is None:
        raise StoreFailure("Supabase returned a non-JSON body")
    return body
