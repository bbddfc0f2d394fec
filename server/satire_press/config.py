# ─────────────────────────────────────────────────────────────────────────────
# Settings — Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server configuration sourced from environment variables.

    Uses pydantic-settings v2 (separate package from pydantic).
    Secrets are SecretStr so they never show up in reprs or logs.
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env", extra="ignore")

    # ── Text generation (Gemini) ─────────────────────────────────────────────
    gemini_api_key: SecretStr = SecretStr("")
    gemini_model: str = "gemini-1.5-flash-latest"
    gemini_base_url: str = "https://generativelanguage.googleapis.com"
    generation_timeout_seconds: float = 30.0

    # ── Identity provider (Supabase auth) ────────────────────────────────────
    supabase_url: str = ""
    supabase_anon_key: SecretStr = SecretStr("")
    identity_cache_ttl_seconds: int = 60

    # ── CMS publishing (WordPress REST API) ──────────────────────────────────
    wordpress_base_url: str = "https://hospitalityfn.com"
    wordpress_username: str = ""
    wordpress_app_password: SecretStr = SecretStr("")
    wordpress_author_id: int = 1
    publish_timeout_seconds: float = 15.0

    # ── Limits ───────────────────────────────────────────────────────────────
    max_payload_bytes: int = 10240
    rate_limit_per_minute: int = 5
    rate_limit_per_day: int = 20
    publish_rate_limit: str = "30/minute"
    idea_min_length: int = 100
    idea_max_length: int = 5000
    prompt_idea_chars: int = 1000

    # ── Moderation ───────────────────────────────────────────────────────────
    moderation_policy: Literal["contextual", "strict"] = "contextual"

    # ── HTTP ─────────────────────────────────────────────────────────────────
    allowed_origins: str = ""  # comma-separated; empty means "*"
    port: int = 8080

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True  # JSON logs for Cloud Logging


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
