"""FastAPI authentication dependencies for route protection."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from app.auth.jwt import decode_token

# Strict bearer, raises 403 automatically if no token provided
_bearer_scheme = HTTPBearer()


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> str:
    """Validate the Bearer token and return the actor id from its ``sub`` claim.

    Members and admin sessions are managed by the login service, so there is
    no local user lookup.

    Raises:
        HTTPException 401: If the token is invalid, expired, of the wrong type,
            or has no subject.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise credentials_exception from None

    # Only accept access tokens
    token_type: str | None = payload.get("type")
    if token_type != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub: str | None = payload.get("sub")
    if not sub:
        raise credentials_exception

    return sub
