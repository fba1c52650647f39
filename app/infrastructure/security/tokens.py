from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import jwt

from app.domain.entities import AccessClaims
from app.domain.errors import InvalidAccessToken
from app.settings import get_settings


def create_access_token(subject: str, *, ttl_seconds: int | None = None) -> str:
    """
    Signed JWT carrying `sub`, a unique `jti`, `iat` and `exp`.
    `ttl_seconds` defaults to settings.access_token_ttl_seconds.
    """
    settings = get_settings()
    if ttl_seconds is None:
        ttl_seconds = settings.access_token_ttl_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(subject),
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AccessClaims:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "jti", "iat", "exp"]},
        )
    except jwt.PyJWTError as e:
        raise InvalidAccessToken(str(e)) from e

    return AccessClaims(
        subject=payload["sub"],
        jti=payload["jti"],
        issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
