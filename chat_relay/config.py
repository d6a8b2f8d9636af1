"""Settings loaded from the environment and an optional .env file."""

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

from chat_relay.prompt import DEFAULT_PERSONA, DEFAULT_USER_TURN_TEMPLATE

load_dotenv()

DEV_ENVIRONMENTS = {"dev", "development", "local"}


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Process-wide configuration, read once and treated as read-only.

    Keyword overrides replace individual values after the environment is read;
    the app factory and the tests build their own instances this way.
    """

    def __init__(self, **overrides):
        self.app_env: str = os.getenv("APP_ENV", "production")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "10000"))

        # Completion API
        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY") or None
        self.openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        self.openai_model: str = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo")
        self.temperature: float = float(os.getenv("OPENAI_TEMPERATURE", "0.9"))
        self.max_tokens: int = int(os.getenv("MAX_TOKENS", "500"))
        self.persona_max_tokens: int = int(os.getenv("PERSONA_MAX_TOKENS", "800"))
        self.request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "30"))

        # Prompt assembly
        self.max_chat_history: int = int(os.getenv("MAX_CHAT_HISTORY", "20"))
        self.require_personality: bool = _env_bool("REQUIRE_PERSONALITY")
        self.persona_prompt: str = os.getenv("PERSONA_PROMPT") or DEFAULT_PERSONA
        self.user_turn_template: str = os.getenv("USER_TURN_TEMPLATE") or DEFAULT_USER_TURN_TEMPLATE

        # Supabase
        self.supabase_url: Optional[str] = os.getenv("SUPABASE_URL") or None
        self.supabase_key: Optional[str] = os.getenv("SUPABASE_KEY") or None
        self.supabase_anon_key: Optional[str] = os.getenv("SUPABASE_ANON_KEY") or None
        self.supabase_table: str = os.getenv("SUPABASE_TABLE", "chat_messages")

        # HTTP surface
        self.cors_origins: List[str] = [
            o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
        ]
        self.static_dir: str = os.getenv("STATIC_DIR", "public")

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown setting: {key}")
            setattr(self, key, value)

        self._check_user_turn_template()

    def _check_user_turn_template(self) -> None:
        """Fail at startup, not on every chat request, if the template is unusable."""
        try:
            self.user_turn_template.format(user_name="", message="")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(
                "USER_TURN_TEMPLATE may only use the {user_name} and {message} "
                f"placeholders, got {self.user_turn_template!r} ({e!r})"
            ) from e

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() in DEV_ENVIRONMENTS

    @property
    def allow_any_origin(self) -> bool:
        return not self.cors_origins or "*" in self.cors_origins


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
