from datetime import datetime, timedelta, timezone

import jwt

from coachbook.core.config import Settings

DEFAULT_EXPIRES_MINUTES = 60


def create_access_token(subject: str, settings: Settings, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or DEFAULT_EXPIRES_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    payload = {"sub": subject, "exp": expire, "iat": datetime.now(timezone.utc)}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> dict:
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
