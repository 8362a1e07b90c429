"""Security utilities for authentication and authorization.

Password hashing, JWT token management and the random tokens used for
login sessions and password resets.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from pokerboard.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=12,
)


# =============================================================================
# Password Utilities
# =============================================================================


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    bcrypt has a 72-byte limit, so the password is first hashed with SHA-256
    to handle longer passwords safely.
    """
    password_sha256 = hashlib.sha256(password.encode()).hexdigest()
    return pwd_context.hash(password_sha256)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a password against its hash.

    Users without a stored hash never match.
    """
    if not hashed_password:
        return False
    password_sha256 = hashlib.sha256(plain_password.encode()).hexdigest()
    try:
        return pwd_context.verify(password_sha256, hashed_password)
    except ValueError:
        logger.warning("Password verification failed: malformed hash")
        return False


def generate_temporary_password() -> str:
    """Random password for users created without one (quick-create)."""
    return secrets.token_urlsafe(12)


# =============================================================================
# JWT Token Utilities
# =============================================================================


def create_access_token(
    user_id: str,
    additional_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        user_id: User ID to encode in token
        additional_claims: Additional claims to include
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": "access",
        "iat": now,
        "exp": now + expires_delta,
    }

    if additional_claims:
        payload.update(additional_claims)

    return jwt.encode(
        payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def create_refresh_token(
    user_id: str,
    session_id: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT refresh token bound to a login session."""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.jwt_refresh_token_expire_days)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "type": "refresh",
        "sid": session_id,
        "iat": now,
        "exp": now + expires_delta,
        # Two refreshes inside the same second must still yield distinct tokens
        "jti": secrets.token_hex(8),
    }

    return jwt.encode(
        payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


class TokenError(Exception):
    """Token validation error with specific code."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and verify a JWT token, returning None when it is invalid."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Token decode failed: token expired")
        return None
    except jwt.JWTClaimsError as e:
        logger.debug(f"Token decode failed: invalid claims - {e}")
        return None
    except JWTError as e:
        logger.warning(f"Token decode failed: {type(e).__name__}")
        return None


def verify_access_token(token: str) -> dict[str, Any] | None:
    """Verify an access token and return its payload.

    Returns:
        Token payload if valid, None otherwise

    Raises:
        TokenError: If the token has expired
    """
    if not token:
        logger.debug("Access token verification failed: empty token")
        return None

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub", "type", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Access token verification failed: token expired")
        raise TokenError("TOKEN_EXPIRED", "Token has expired")
    except jwt.JWTClaimsError as e:
        logger.debug(f"Access token verification failed: invalid claims - {e}")
        return None
    except JWTError as e:
        logger.warning(f"Access token verification failed: {type(e).__name__}")
        return None

    if payload.get("type") != "access":
        logger.debug("Access token verification failed: wrong token type")
        return None

    return payload


def verify_refresh_token(token: str) -> dict[str, Any] | None:
    """Verify a refresh token and return its payload."""
    if not token:
        logger.debug("Refresh token verification failed: empty token")
        return None

    payload = decode_token(token)
    if payload is None:
        return None

    if payload.get("type") != "refresh":
        logger.debug("Refresh token verification failed: wrong token type")
        return None

    if not payload.get("sub") or not payload.get("sid"):
        logger.debug("Refresh token verification failed: missing required fields")
        return None

    return payload


# =============================================================================
# Opaque Token Utilities
# =============================================================================


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store refresh and reset tokens."""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_session_id() -> str:
    """Generate a secure random login session ID (32 hex chars)."""
    return secrets.token_hex(16)


def generate_reset_token() -> str:
    """Generate a password reset token (32 random bytes as hex)."""
    return secrets.token_hex(32)


# =============================================================================
# Token Response Helper
# =============================================================================


def create_token_pair(user_id: str, session_id: str) -> dict[str, Any]:
    """Create both access and refresh tokens.

    Returns:
        Dict with access_token, refresh_token, token_type and expires_in
    """
    return {
        "access_token": create_access_token(user_id, {"sid": session_id}),
        "refresh_token": create_refresh_token(user_id, session_id),
        "token_type": "Bearer",
        "expires_in": settings.jwt_access_token_expire_minutes * 60,
    }
