"""
Chat Relay Service
Handles: chat relay to the completion API, front-end config, liveness, Supabase smoke test
Port: 10000 (PORT)

- Settings are built once and injected with Depends, no module-level clients
- Validation problems are 400s, upstream problems 500/504, never a raw traceback
- /config only ever hands out the public anon key
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from chat_relay.config import Settings, get_settings
from chat_relay.dependencies import get_http_client
from chat_relay.exceptions import ChatRelayError, InvalidRequestBody, StoreFailure, ValidationFailure
from chat_relay.models import (
    ChatReply,
    ChatRequest,
    ConfigPayload,
    ErrorPayload,
    StatusPayload,
    StoreCheckPayload,
)
from chat_relay.openai_client import create_chat_completion
from chat_relay.prompt import build_messages
from chat_relay import supabase_client

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("chat_relay")

ERROR_RESPONSES = {
    400: {"model": ErrorPayload},
    500: {"model": ErrorPayload},
    504: {"model": ErrorPayload},
}


# ── Helpers ───────────────────────────────────────────────────────────────────

def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_chat_request(body: ChatRequest, settings: Settings) -> None:
    required = {"userName": body.userName, "message": body.message}
    if settings.require_personality:
        required["personality"] = body.personality

    missing = [name for name, value in required.items() if _blank(value)]
    if missing:
        raise ValidationFailure(f"Missing or empty: {', '.join(missing)}")


# ── Error handlers ────────────────────────────────────────────────────────────

async def chat_relay_error_handler(request: Request, exc: ChatRelayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.details)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.details)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorPayload(error=exc.error, details=exc.details).model_dump(),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    # No body at all means every required field is absent.
    if any(err.get("type") == "missing" and tuple(err.get("loc", ())) == ("body",) for err in errors):
        return await chat_relay_error_handler(request, ValidationFailure("Request body is empty"))

    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body') or 'body'}: {err.get('msg')}"
        for err in errors
    )
    return await chat_relay_error_handler(request, InvalidRequestBody(details))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    settings = request.app.state.settings
    details = str(exc) if settings.is_development else "Please try again later"
    return JSONResponse(
        status_code=500,
        content=ErrorPayload(error="Internal server error", details=details).model_dump(),
    )


# ── App ───────────────────────────────────────────────────────────────────────

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    static_enabled = os.path.isdir(settings.static_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Chat relay started: env=%s model=%s origins=%s static=%s",
            settings.app_env,
            settings.openai_model,
            "*" if settings.allow_any_origin else ",".join(settings.cors_origins),
            static_enabled,
        )
        yield

    app = FastAPI(title="Chat Relay Service", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    if settings.allow_any_origin:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.add_exception_handler(ChatRelayError, chat_relay_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # ── Endpoints ─────────────────────────────────────────────────────────────

    @app.get("/config", response_model=ConfigPayload)
    async def get_config(settings: Settings = Depends(get_settings)):
        """Public Supabase settings for the static front-end."""
        logger.info("Sending Supabase config (anon key set=%s)", bool(settings.supabase_anon_key))
        return ConfigPayload(supabaseUrl=settings.supabase_url, supabaseKey=settings.supabase_anon_key)

    @app.get("/favicon.ico", status_code=204, include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    @app.get("/status", response_model=StatusPayload)
    async def status():
        return StatusPayload(status="ready")

    @app.post("/chat", response_model=ChatReply, responses=ERROR_RESPONSES)
    async def chat(
        body: ChatRequest,
        settings: Settings = Depends(get_settings),
        client: httpx.AsyncClient = Depends(get_http_client),
    ):
        validate_chat_request(body, settings)

        has_personality = not _blank(body.personality)
        history = body.chatHistory or []
        logger.info(
            "Incoming chat: user=%s history_turns=%s persona=%s",
            body.userName,
            len(history),
            "custom" if has_personality else "default",
        )

        messages = build_messages(
            body.userName,
            body.message,
            history,
            body.personality,
            default_persona=settings.persona_prompt,
            user_turn_template=settings.user_turn_template,
            max_history=settings.max_chat_history,
        )
        max_tokens = settings.persona_max_tokens if has_personality else settings.max_tokens

        reply = await create_chat_completion(client, settings, messages, max_tokens)
        return ChatReply(reply=reply)

    @app.get("/test-supabase", responses={500: {"model": StoreCheckPayload}})
    async def check_supabase(
        settings: Settings = Depends(get_settings),
        client: httpx.AsyncClient = Depends(get_http_client),
    ):
        try:
            data = await supabase_client.count_chat_messages(client, settings)
        except StoreFailure as e:
            logger.error("Supabase connection error: %s", e)
            return JSONResponse(
                status_code=500,
                content=StoreCheckPayload(status="error", error=str(e)).model_dump(exclude_none=True),
            )
        return StoreCheckPayload(status="success", data=data).model_dump(exclude_none=True)

    # Everything the API doesn't claim falls through to the front-end bundle.
    if static_enabled:
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app


app = create_app()


def run():
    import uvicorn
    settings = get_settings()
    uvicorn.run("chat_relay.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
