"""Application configuration."""
from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_debug: bool = True
    log_level: str = "DEBUG"
    app_base_url: str = Field(
        default="http://localhost:3000",
        description="Public URL used to build links in outgoing emails",
    )

    # Database - required, read from the environment
    database_url: str = Field(
        ...,
        description="Database connection URL (required)",
    )
    db_pool_size: int = Field(
        default=10,
        description="DB connection pool size (ignored for SQLite)",
    )
    db_max_overflow: int = Field(
        default=20,
        description="Max overflow connections (ignored for SQLite)",
    )
    db_pool_recycle: int = Field(
        default=1800,
        description="Connection recycle time in seconds",
    )
    db_echo: bool = False

    # JWT - required, no default
    jwt_secret_key: str = Field(
        ...,
        description="JWT secret key (required, minimum 32 characters)",
    )
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 12
    jwt_refresh_token_expire_days: int = 30

    # Login session cookie
    session_cookie_name: str = "pokerboard_session"
    session_cookie_secure: bool = False
    max_login_sessions_per_user: int = 3

    # Password reset
    reset_token_expire_minutes: int = Field(
        default=60,
        description="Lifetime of a password reset token in minutes",
    )

    # SMTP / email
    smtp_host: str | None = Field(
        default=None,
        description="SMTP host (emails are logged instead of sent when unset)",
    )
    smtp_port: int = 2525
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_timeout: float = 10.0
    email_from: str = '"Pokerboard" <noreply@pokerboard.com>'

    # Display
    currency_symbol: str = "₺"

    # Sentry Error Tracking
    sentry_dsn: str | None = Field(
        default=None,
        description="Sentry DSN for error tracking (required in production)",
    )
    sentry_environment: str | None = Field(
        default=None,
        description="Sentry environment name (defaults to app_env)",
    )
    sentry_traces_sample_rate: float = Field(
        default=0.05,
        description="Sentry transaction sampling rate (0.0-1.0, default 5%)",
    )
    sentry_profiles_sample_rate: float = Field(
        default=0.01,
        description="Sentry profiling sampling rate (0.0-1.0, default 1%)",
    )

    # CORS
    cors_origins: str = "http://localhost:3000"

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        """Validate JWT secret key length."""
        if len(v) < 32:
            raise ValueError(
                "jwt_secret_key must be at least 32 characters long"
            )

        weak_patterns = [
            "change-this",
            "secret",
            "password",
            "12345",
            "qwerty",
            "admin",
        ]
        lower_v = v.lower()
        for pattern in weak_patterns:
            if pattern in lower_v:
                raise ValueError(
                    f"jwt_secret_key contains weak pattern '{pattern}'. "
                    "Use a strong, random secret key."
                )

        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate settings for production environment."""
        if self.app_env == "production":
            if self.app_debug:
                raise ValueError(
                    "app_debug must be False in production environment"
                )

            origins = [o.strip() for o in self.cors_origins.split(",")]
            if "*" in origins:
                raise ValueError(
                    "CORS wildcard '*' is not allowed in production environment. "
                    "Specify explicit allowed origins."
                )

            if not self.sentry_dsn:
                raise ValueError(
                    "sentry_dsn is required in production environment"
                )

            if not self.smtp_host:
                raise ValueError(
                    "smtp_host is required in production environment"
                )

            # Reset links must never point at localhost in production
            if "localhost" in self.app_base_url:
                raise ValueError(
                    "app_base_url must be a public URL in production environment"
                )

        return self

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
