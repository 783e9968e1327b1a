from datetime import datetime, timedelta, timezone
from typing import Optional, Any
import uuid

from jose import JWTError, jwt

from lifecycle.config import settings


SESSION_TOKEN_TYPE = "session"


def create_session_token(
    subject: str | uuid.UUID,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[dict[str, Any]] = None
) -> str:
    """
    Create the signed JWT stored in the session cookie.

    Args:
        subject: The subject of the token (the profile id)
        expires_delta: Optional custom expiration time
        additional_claims: Optional additional claims to include

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(subject),
        "exp": expire,
        "iat": now,
        "jti": str(uuid.uuid4()),
        "type": SESSION_TOKEN_TYPE,
    }

    if additional_claims:
        to_encode.update(additional_claims)

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_token(token: str) -> Optional[dict[str, Any]]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded token payload or None if invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None


def verify_session_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify a session token.

    Returns:
        The payload when the token is a valid session token with a subject,
        otherwise None
    """
    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != SESSION_TOKEN_TYPE:
        return None

    if not payload.get("sub"):
        return None

    return payload


def token_expires_within(payload: dict[str, Any], window: timedelta) -> bool:
    """Whether the token's exp claim falls inside the given window from now."""
    exp = payload.get("exp")
    if exp is None:
        return False
    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
    return expires_at - datetime.now(timezone.utc) <= window
