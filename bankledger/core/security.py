from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import jwt

from bankledger.core.config import Settings


def create_access_token(subject: str, settings: Settings) -> str:
    """Mint a token the way the auth provider does. Used by dev tooling and tests."""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.jwt_expire_minutes)
    to_encode = {"sub": subject, "iat": now, "exp": expire}
    if settings.jwt_audience:
        to_encode["aud"] = settings.jwt_audience
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> str:
    """Return the provider's user id (``sub``) from a verified bearer token."""
    options = {"verify_aud": settings.jwt_audience is not None}
    payload = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options=options,
    )
    sub = payload.get("sub")
    if not sub:
        raise ValueError("Missing sub")
    return str(sub)
