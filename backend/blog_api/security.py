"""
Modern Blog API — Credentials & Tokens
========================================

What:  Password hashing (passlib) and bearer token issue/verify (PyJWT).
Who:   AuthService (register/login) and the auth dependency (every protected request).

Token format:
    HS256 JWT with claims
        sub   user id (UUID string)
        role  role at issue time (informational; the dependency reloads the user)
        iat / exp
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from blog_api.config import settings
from blog_api.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

# pbkdf2_sha256 is implemented inside passlib; no native backend is required
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def create_access_token(
    user_id: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {"sub": user_id, "role": role, "iat": now, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises:
        AuthenticationError: expired, tampered or malformed token, or no `sub`.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError(message="Token has expired")
    except jwt.PyJWTError as e:
        logger.debug("Rejected token: %s", str(e))
        raise AuthenticationError(message="Invalid token", context={"reason": type(e).__name__})

    if not payload.get("sub"):
        raise AuthenticationError(message="Invalid token", context={"reason": "missing sub"})
    return payload
