"""Settings for the API and the worker, read from the environment or ``.env``."""

from enum import Enum
from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

INSECURE_DEV_SECRET = "dev-insecure-key-change-me"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """The settings are not safe to run with in the current environment."""


class Settings(BaseSettings):
    """
    Every field maps to an upper-case environment variable of the same name
    (``PREVIEW_MAX_CHARS``, ``MAILGUN_DOMAIN``, ...). Unknown variables are
    ignored.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Environment.DEVELOPMENT

    # HTTP
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated origins of the public site and the admin dashboard",
    )

    # Database
    database_url: str = Field(default="sqlite:///./portal.db")
    # Pool tuning applies to PostgreSQL only.
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    # Auth
    jwt_secret_key: str = INSECURE_DEV_SECRET
    jwt_algorithm: str = "HS256"
    auth_enabled: bool = Field(
        default=False,
        description="When false every request is an anonymous admin and articles are never truncated",
    )

    # Public site
    public_app_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the public site, used for links in emails",
    )
    articles_per_page: int = Field(default=12, ge=1, le=100)
    preview_max_chars: int = Field(
        default=400,
        ge=0,
        description="Character budget for the paywall preview shown to anonymous readers",
    )

    # AI prompts / generation
    prompt_cache_ttl_seconds: int = Field(default=300, gt=0)
    llm_model: str = Field(
        default="",
        description="LiteLLM model string for article generation (empty = model of the ai_provider setting)",
    )
    llm_api_key: str = ""
    llm_api_base: str = ""

    # Email delivery (Mailgun HTTP API)
    mailgun_api_key: str = ""
    mailgun_domain: str = ""
    mailgun_host: str = "https://api.eu.mailgun.net"
    email_from: str = "Lokale Portalen <nyheder@lokaleportalen.dk>"

    # Worker
    worker_poll_interval: int = Field(default=60, gt=0, description="Seconds between scheduling checks")
    daily_digest_interval: int = Field(default=24 * 60 * 60, gt=0, description="Seconds between daily digests")
    weekly_digest_interval: int = Field(default=7 * 24 * 60 * 60, gt=0, description="Seconds between weekly digests")

    seed_on_startup: bool = Field(
        default=True,
        description="Seed categories, prompts and email templates into empty tables on startup",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "json"

    @field_validator("log_level", "log_format", mode="before")
    @classmethod
    def _normalise_case(cls, v, info):
        if not isinstance(v, str):
            return v
        return v.upper() if info.field_name == "log_level" else v.lower()

    @field_validator("database_url")
    @classmethod
    def _use_psycopg2_driver(cls, v: str) -> str:
        """Hosted Postgres hands out postgres:// URLs; SQLAlchemy needs the driver spelled out."""
        for prefix in ("postgres://", "postgresql://"):
            if v.startswith(prefix):
                return "postgresql+psycopg2://" + v[len(prefix):]
        return v

    @field_validator("cors_allowed_origins")
    @classmethod
    def _no_wildcard_origin(cls, v: str) -> str:
        if "*" in (origin.strip() for origin in v.split(",")):
            raise ValueError("Wildcard CORS (*) is not allowed; list the origins in CORS_ALLOWED_ORIGINS")
        return v

    def get_cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    def is_mail_configured(self) -> bool:
        return bool(self.mailgun_api_key and self.mailgun_domain)

    def production_problems(self) -> List[str]:
        """Everything that would make a production deployment unsafe or broken."""
        problems = []
        if self.jwt_secret_key == INSECURE_DEV_SECRET:
            problems.append("JWT_SECRET_KEY is the development default. Generate one: openssl rand -hex 32")
        if not self.auth_enabled:
            problems.append("AUTH_ENABLED is false, so every visitor would be an admin and read full articles.")
        if self.database_url.startswith("sqlite"):
            problems.append("DATABASE_URL points at SQLite. Use PostgreSQL in production.")
        if not self.public_app_url.startswith("https://"):
            problems.append("PUBLIC_APP_URL must be an https:// URL; it is used for links in emails.")
        if not self.is_mail_configured():
            problems.append("MAILGUN_API_KEY and MAILGUN_DOMAIN must be set for newsletter delivery.")
        return problems

    def validate_production_config(self) -> None:
        """Refuse to start in production with any of ``production_problems``.

        Raises:
            ConfigurationError: Listing every problem found.
        """
        if self.environment != Environment.PRODUCTION:
            return
        problems = self.production_problems()
        if problems:
            raise ConfigurationError("Production configuration is unsafe:\n  - " + "\n  - ".join(problems))


settings = Settings()
