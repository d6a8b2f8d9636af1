import logging
from typing import Dict, List

import httpx

from chat_relay.config import Settings
from chat_relay.exceptions import UpstreamFailure, UpstreamTimeout

logger = logging.getLogger("chat_relay")


def _error_message(response: httpx.Response) -> str:
    """Pull the message out of an OpenAI-style error body, falling back to the status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return f"{response.status_code} {err['message']}"
        if isinstance(err, str):
            return f"{response.status_code} {err}"
    return f"{response.status_code} {response.reason_phrase}".strip()


async def create_chat_completion(
    client: httpx.AsyncClient,
    settings: Settings,
    messages: List[Dict[str, str]],
    max_tokens: int,
) -> str:
    """Call the chat completions endpoint and return the first choice's text."""
    if not settings.openai_api_key:
        raise UpstreamFailure("OPENAI_API_KEY not configured")

    try:
        response = await client.post(
            f"{settings.openai_base_url.rstrip('/')}/chat/completions",
            headers={
                "Authorization": f"Bearer {settings.openai_api_key}",
                "Content-Type": "application/json",
            },
            json={
                "model": settings.openai_model,
                "messages": messages,
                "temperature": settings.temperature,
                "max_tokens": max_tokens,
            },
            timeout=settings.request_timeout,
        )
    except httpx.TimeoutException as e:
        raise UpstreamTimeout(f"Completion API timed out after {settings.request_timeout:g}s") from e
    except httpx.HTTPError as e:
        raise UpstreamFailure(str(e) or e.__class__.__name__) from e

    if response.status_code != 200:
        raise UpstreamFailure(_error_message(response))

    try:
        result = response.json()
        content = result["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise UpstreamFailure(f"Malformed completion response: {e!r}") from e
    if content is not None and not isinstance(content, str):
        raise UpstreamFailure(
            f"Malformed completion response: content is {type(content).__name__}, expected text"
        )

    usage = result.get("usage")
    usage = usage if isinstance(usage, dict) else {}
    logger.info("Completion ok: model=%s tokens=%s", result.get("model", settings.openai_model), usage.get("total_tokens", 0))
    return content or ""
