"""User domain service: register, login, refresh.

All DB operations use the injected AsyncSession. register() runs in its own
unit of work; login/refresh are read-only.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
)
from src.pm_common.unit_of_work import run_in_transaction
from src.pm_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.pm_gateway.auth.password import hash_password, verify_password
from src.pm_gateway.user.db_models import UserModel

logger = logging.getLogger(__name__)


class UserService:
    """Stateless service - instantiate once, reuse across requests."""

    async def register(
        self,
        email: str,
        name: str | None,
        password: str,
        db: AsyncSession,
    ) -> UserModel:
        """Register a new user funded with the initial play-money balance."""
        email = email.lower()

        async def _work() -> UserModel:
            result = await db.execute(select(UserModel).where(UserModel.email == email))
            if result.scalar_one_or_none() is not None:
                raise EmailExistsError()

            user = UserModel(
                email=email,
                name=name,
                password_hash=hash_password(password),
                balance=settings.INITIAL_USER_BALANCE,
                is_admin=False,
                is_active=True,
            )
            db.add(user)
            try:
                await db.flush()  # Get user.id / created_at without committing
            except IntegrityError:
                # Concurrent registration with the same email; UNIQUE is the final guard.
                raise EmailExistsError() from None
            await db.refresh(user)
            return user

        user = await run_in_transaction(db, _work)
        logger.info("User registered: id=%s", user.id)
        return user

    async def login(
        self,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate user and return (user, access_token, refresh_token).

        Note: "User not found" and "Wrong password" both raise InvalidCredentialsError
        intentionally - prevents email enumeration.
        """
        result = await db.execute(select(UserModel).where(UserModel.email == email.lower()))
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id)),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str) -> str:
        """Validate refresh token and return a new access token."""
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id: str = str(payload["sub"])
        return create_access_token(user_id)
