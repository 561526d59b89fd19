"""
Configuration settings for ViralPost Auth
"""

import functools
import os
from pathlib import Path
from typing import Literal

from dotenv import find_dotenv, load_dotenv
from pydantic import AnyHttpUrl, BaseModel, Field, ValidationError, field_validator

# Use find_dotenv() to locate .env regardless of the current working directory.
# Falls back to an explicit path relative to this file (project root) if not found.
_dotenv_path = find_dotenv(usecwd=True) or str(Path(__file__).resolve().parent.parent.parent / ".env")
load_dotenv(_dotenv_path)

AppEnv = Literal["development", "test", "production"]

DEFAULT_APP_URL = "http://localhost:3000"


# ============================================
# Environment validation
# ============================================


class EnvSettings(BaseModel):
    """Validated process environment. Built once at startup by load_settings()."""

    supabase_url: AnyHttpUrl = Field(alias="SUPABASE_URL")
    supabase_anon_key: str = Field(alias="SUPABASE_ANON_KEY", min_length=1)
    google_client_id: str | None = Field(default=None, alias="GOOGLE_CLIENT_ID", min_length=1)
    app_env: AppEnv = Field(default="development", alias="APP_ENV")
    app_url: AnyHttpUrl | None = Field(default=None, alias="APP_URL")
    session_lifetime_seconds: int = Field(default=3600, alias="SESSION_LIFETIME_SECONDS", gt=0)

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("google_client_id", "app_url", "app_env", "session_lifetime_seconds", mode="before")
    @classmethod
    def _blank_is_unset(cls, value, info):
        # .env files routinely carry "KEY=" for optional values
        if isinstance(value, str) and not value.strip():
            return cls.model_fields[info.field_name].default
        return value.strip() if isinstance(value, str) else value

    @property
    def supabase_url_str(self) -> str:
        return str(self.supabase_url).rstrip("/")

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_google_oauth_enabled(self) -> bool:
        return bool(self.google_client_id)

    def get_app_url(self) -> str:
        """Public base URL of the app (no trailing slash)."""
        if self.app_url is None:
            return DEFAULT_APP_URL
        return str(self.app_url).rstrip("/")

    def uses_https(self) -> bool:
        return self.get_app_url().startswith("https")


_ENV_KEYS = (
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "GOOGLE_CLIENT_ID",
    "APP_ENV",
    "APP_URL",
    "SESSION_LIFETIME_SECONDS",
)


def _read_env() -> dict[str, str]:
    return {key: os.environ[key] for key in _ENV_KEYS if key in os.environ}


def format_env_errors(exc: ValidationError) -> list[str]:
    """Turn a pydantic ValidationError into one readable line per variable."""
    lines = []
    for err in exc.errors():
        var = str(err["loc"][0]) if err["loc"] else "environment"
        if err["type"] == "missing":
            lines.append(f"{var} is required")
        else:
            lines.append(f"{var}: {err['msg']}")
    return lines


@functools.lru_cache(maxsize=1)
def load_settings() -> EnvSettings:
    """Validate the environment. Raises pydantic.ValidationError when invalid."""
    return EnvSettings.model_validate(_read_env())


def validate_env_for_app() -> EnvSettings:
    """
    Validate required env vars for the app. Call at startup.
    Raises SystemExit with clear message if any variable is missing or malformed.
    """
    try:
        return load_settings()
    except ValidationError as exc:
        problems = format_env_errors(exc)
        msg = f"Invalid environment: {'; '.join(problems)}. Set them in .env or environment."
        raise SystemExit(msg) from exc


# ============================================
# UI Configuration (static values)
# ============================================

APP_NAME = "ViralPost"
APP_TAGLINE = "Create viral social media content with AI"
APP_ICON = "🚀"

# Streamlit Page Config
PAGE_CONFIG = {
    "page_title": f"Sign in | {APP_NAME}",
    "page_icon": APP_ICON,
    "layout": "centered",
    "initial_sidebar_state": "collapsed",
}

CALLBACK_PATH = "/auth/callback"
ERROR_PATH = "/auth/error"
SIGN_IN_PATH = "/sign-in"
DEFAULT_POST_LOGIN_PATH = "/dashboard"
UI_STATE_STORAGE_KEY = "auth-ui-state"
