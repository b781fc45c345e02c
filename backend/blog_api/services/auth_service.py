"""
Modern Blog API — Auth Service
================================

What:  Account registration, login (token issuance) and the startup admin
       bootstrap.
How:   Passwords are hashed with passlib; tokens are issued by
       blog_api.security. Registration always produces role "user".
"""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from blog_api.exceptions import AuthenticationError, BlogError, ConflictError, DatabaseError
from blog_api.models.user import ROLE_ADMIN, ROLE_USER, User
from blog_api.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from blog_api.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


class AuthService:

    def _token_response(self, user: User) -> TokenResponse:
        return TokenResponse(
            token=create_access_token(str(user.id), user.role),
            user=UserResponse.model_validate(user),
        )

    async def _find_existing(self, db: AsyncSession, username: str, email: str) -> Optional[User]:
        result = await db.execute(
            select(User).where(or_(User.username == username, User.email == email))
        )
        return result.scalars().first()

    async def register(self, db: AsyncSession, data: RegisterRequest) -> TokenResponse:
        """
        Create a user account and log it in.

        Raises:
            ConflictError: username or email already registered (→ 400)
        """
        try:
            if await self._find_existing(db, data.username, data.email) is not None:
                raise ConflictError(
                    message="User already exists", context={"username": data.username}
                )

            user = User(
                username=data.username,
                email=data.email,
                password_hash=hash_password(data.password),
                role=ROLE_USER,
            )
            db.add(user)
            await db.flush()
            logger.info("User registered: %s", user.username)
            return self._token_response(user)

        except BlogError:
            raise
        except IntegrityError:
            raise ConflictError(message="User already exists", context={"username": data.username})
        except SQLAlchemyError as e:
            logger.error("Database error registering %s: %s", data.username, str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def login(self, db: AsyncSession, data: LoginRequest) -> TokenResponse:
        """
        Exchange username + password for a token.

        The same message is used for unknown users and wrong passwords.
        """
        try:
            result = await db.execute(select(User).where(User.username == data.username))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

        if user is None or not verify_password(data.password, user.password_hash):
            logger.warning("Failed login for username '%s'", data.username)
            raise AuthenticationError(message="Invalid credentials")

        logger.info("User logged in: %s", user.username)
        return self._token_response(user)

    async def ensure_admin(
        self,
        db: AsyncSession,
        username: str,
        email: str,
        password: str,
    ) -> User:
        """
        Make sure an admin account with this username exists.

        An existing user with the username is promoted; otherwise one is
        created. The password of an existing account is left as is.
        """
        result = await db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None:
            user = User(
                username=username,
                email=email,
                password_hash=hash_password(password),
                role=ROLE_ADMIN,
            )
            db.add(user)
            logger.info("Bootstrap admin created: %s", username)
        elif user.role != ROLE_ADMIN:
            user.role = ROLE_ADMIN
            logger.info("Existing user %s promoted to admin", username)
        await db.flush()
        return user


auth_service = AuthService()
