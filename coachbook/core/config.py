import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return list(default)
    return [item.strip().rstrip("/") for item in value.split(",") if item.strip()]


DEFAULT_JWT_SECRET_KEY = "change-me"


@dataclass(frozen=True)
class Settings:
    app_env: str = "development"
    database_url: str = "sqlite:///./coachbook.db"
    jwt_secret_key: str = DEFAULT_JWT_SECRET_KEY
    jwt_algorithm: str = "HS256"
    app_timezone: str = "UTC"
    cors_allowed_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    security_headers_enabled: bool = True
    log_level: str = "INFO"

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.app_timezone)


def load_settings() -> Settings:
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./coachbook.db"),
        jwt_secret_key=os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET_KEY),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        app_timezone=os.getenv("APP_TIMEZONE", "UTC"),
        cors_allowed_origins=_get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:3000"]),
        security_headers_enabled=_get_bool(os.getenv("SECURITY_HEADERS_ENABLED"), default=True),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


def validate_runtime_config(settings: Settings) -> None:
    if settings.app_env.lower() == "production" and settings.jwt_secret_key == DEFAULT_JWT_SECRET_KEY:
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    # Raises ZoneInfoNotFoundError for unknown zone names.
    settings.timezone
