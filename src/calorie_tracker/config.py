"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_SESSION_SECRET = "dev-session-secret-change-me"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "Calorie Tracker"
    environment: str = _ENVIRONMENT
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 500
    openai_temperature: float = 0.3
    openai_timeout_seconds: float = 30.0
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    session_secret: str = DEFAULT_SESSION_SECRET
    session_cookie_name: str = "calorie_tracker.sid"
    session_max_age_seconds: int = 7 * 24 * 60 * 60
    max_history_per_session: int = 50
    breadcrumb_limit: int = 5
    max_food_input_length: int = 500
    bcrypt_rounds: int = 12
    app_version: str = "0.1.0"
    cors_origins: str = "*"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def uses_supabase(self) -> bool:
        """Return true when both Supabase settings are configured."""
        return bool(self.supabase_url and self.supabase_service_key)


def parse_cors_origins(raw: str | None) -> list[str]:
    """Parse a comma-separated list of allowed CORS origins."""
    if raw is None:
        return []
    cleaned = raw.strip()
    if cleaned == "*":
        return ["*"]
    return [chunk.strip() for chunk in cleaned.split(",") if chunk.strip()]


def validate_settings(settings: Settings) -> None:
    """Reject configurations that are unsafe to run in production."""
    if settings.environment != "production":
        return
    problems = []
    if not settings.openai_api_key:
        problems.append("OpenAI API key is required in production")
    if settings.session_secret == DEFAULT_SESSION_SECRET:
        problems.append("SESSION_SECRET must be set in production")
    if problems:
        raise RuntimeError(f"Missing required configuration: {', '.join(problems)}")
