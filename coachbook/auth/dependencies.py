from collections.abc import Iterator

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from coachbook.auth import jwt_handler
from coachbook.core.config import Settings
from coachbook.core.exceptions import AuthenticationException
from coachbook.database import ensure_appointment_schema
from coachbook.models.user import User
from coachbook.services.authorization import Actor

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Session]:
    ensure_appointment_schema(request.app.state.engine)
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> Actor:
    if credentials is None or not credentials.credentials:
        raise AuthenticationException("Access token required")

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials, settings)
    except jwt.PyJWTError as exc:
        raise AuthenticationException("Invalid or expired token") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationException("Invalid token subject")

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationException("Invalid token")
    return Actor(actor_id=user.id, role=user.role)
