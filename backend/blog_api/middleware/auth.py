"""
Modern Blog API — Authentication Gate
=======================================

What:  FastAPI dependency that turns an `Authorization: Bearer <token>` header
       into the acting User.
How:   HTTPBearer extracts the credential (auto_error disabled so every failure
       goes through AuthenticationError and the common error body), the token
       is decoded and the user is loaded. The username is copied to
       `request.state.username` for the access log. The ORM instance is
       never stored on the request: it is expired once the session rolls back.
When:  Declared on protected routes only. Runs before the handler body.

Unlike the Starlette middleware in this package it is per-route, because most
read endpoints are public.
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.database import get_db_session
from blog_api.exceptions import AuthenticationError
from blog_api.models.user import User
from blog_api.security import decode_access_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="JWT issued by /api/auth/login")


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Resolve the bearer token to a User.

    Raises:
        AuthenticationError (401): no header, wrong scheme, bad/expired token,
        or the user in `sub` no longer exists.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Authentication required")

    payload = decode_access_token(credentials.credentials)

    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise AuthenticationError(message="Invalid token", context={"reason": "bad sub"})

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError(
            message="User no longer exists", context={"user_id": str(user_id)}
        )

    request.state.username = user.username
    return user
