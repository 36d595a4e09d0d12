"""JWT verification for booking actors.

Tokens are issued by the club's login service; this module only needs to
read them. The ``sub`` claim is the actor id: an admin session id or a
membership number. It is recorded as ``created_by`` on bookings, as
``issued_by`` on vouchers and compared against ``hold_by`` on holds.
Access token creation is kept for local tooling and tests.
"""

from datetime import datetime, timedelta, timezone

from jose import jwt

from app.config import settings


def create_access_token(actor_id: str, expires_delta: timedelta | None = None, claims: dict | None = None) -> str:
    """Create a short-lived access token for ``actor_id``.

    Args:
        actor_id: Value of the ``sub`` claim.
        expires_delta: Custom expiration duration. Defaults to
            ``settings.jwt_access_token_expire_minutes`` minutes.
        claims: Extra claims, e.g. ``{"role": "admin"}``.
    """
    now = datetime.now(timezone.utc)
    delta = expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    to_encode = dict(claims or {})
    to_encode.update({"sub": actor_id, "exp": now + delta, "iat": now, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Raises:
        jose.JWTError: If the token is invalid, expired, or malformed.
    """
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
