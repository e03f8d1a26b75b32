"""JWT helpers used to identify the acting user."""
from __future__ import annotations

from datetime import timedelta

from jose import JWTError, jwt

from reel_stage.core.settings import settings
from reel_stage.db.time import utcnow


class Unauthenticated(RuntimeError):
    """Raised when a bearer token cannot be resolved to an actor."""


def create_access_token(uid: str, expires_minutes: int | None = None) -> str:
    """Return a signed access token whose subject is the user uid."""
    minutes = settings.access_token_expire_minutes if expires_minutes is None else expires_minutes
    expire = utcnow() + timedelta(minutes=minutes)
    payload = {"sub": uid, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """Return the uid carried by ``token``.

    Raises:
        Unauthenticated: If the token is malformed, expired, or has no subject.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise Unauthenticated("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject:
        raise Unauthenticated("Could not validate credentials")
    return str(subject)
