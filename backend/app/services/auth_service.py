"""
Storefront Backend — Auth Service
===================================

What:  Registration, login and the "who am I" lookup.
Who:   Called by the /api/auth routes.
How:   Composes the credential/user tables with PasswordHasher and
       TokenSigner. All configuration arrives through AuthConfig at
       construction time.

Flow (POST /api/auth/register):
    duplicate-email pre-check → insert User → flush → hash password
    → insert Credential → flush
    Commit happens in get_db_session, so a failure after the User insert
    leaves nothing behind.

Flow (POST /api/auth/login):
    Credential by email (User eager-loaded) → bcrypt check → sign claims
    {id, username, role, email}
    Unknown email and wrong password fail with the same message so the
    response does not reveal which emails are registered.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.exceptions import DatabaseError, ValidationError
from app.models.user import Credential, Role, User
from app.schemas.auth import (
    AuthenticatedData,
    LoginRequest,
    RegisterData,
    RegisterRequest,
    UserResponse,
)
from app.security import AuthConfig, PasswordHasher, TokenSigner

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User email already taken"
LOGIN_FAILED_MESSAGE = "wrong password atau user doesn't exist"

# How the email unique index shows up in driver errors:
# PostgreSQL names the index, SQLite names the column
EMAIL_CONSTRAINT_MARKERS = ("ix_auths_email", "auths.email")


def _is_duplicate_email(error: IntegrityError) -> bool:
    detail = str(error.orig)
    return any(marker in detail for marker in EMAIL_CONSTRAINT_MARKERS)


class AuthService:
    def __init__(
        self,
        config: AuthConfig,
        hasher: Optional[PasswordHasher] = None,
        signer: Optional[TokenSigner] = None,
    ):
        self.config = config
        self.hasher = hasher or PasswordHasher(rounds=config.bcrypt_rounds)
        self.signer = signer or TokenSigner(
            secret=config.jwt_secret,
            algorithm=config.jwt_algorithm,
            expires_minutes=config.token_expires_minutes,
        )

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> RegisterData:
        """
        Create a User plus its Credential.

        Raises:
            ValidationError: email already registered (pre-check or unique index)
            DatabaseError: any other store failure
        """
        try:
            result = await db.execute(
                select(Credential.id).where(Credential.email == payload.email)
            )
            if result.scalar_one_or_none() is not None:
                raise ValidationError(message=DUPLICATE_EMAIL_MESSAGE, field="email")

            user = User(
                name=payload.name,
                address=payload.address,
                age=payload.age,
                role=Role.USER.value,
                shop_id=self.config.default_shop_id,
            )
            db.add(user)
            await db.flush()

            credential = Credential(
                email=payload.email,
                password_hash=self.hasher.hash(payload.password),
                user_id=user.id,
            )
            db.add(credential)
            await db.flush()

        except IntegrityError as e:
            if not _is_duplicate_email(e):
                # e.g. the default shop row is missing (foreign key)
                logger.error("Integrity error during registration: %s", e, exc_info=True)
                raise DatabaseError(
                    message="Could not create the account. Please try again.",
                    context={"error_type": type(e).__name__},
                )
            # Lost a race with a concurrent registration of the same email
            logger.warning("Duplicate registration rejected by unique index")
            raise ValidationError(message=DUPLICATE_EMAIL_MESSAGE, field="email")
        except SQLAlchemyError as e:
            logger.error("Database error during registration: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Registered user %s in shop %s", user.id, user.shop_id)
        return RegisterData(email=payload.email, new_user=UserResponse.model_validate(user))

    async def login(self, db: AsyncSession, payload: LoginRequest) -> str:
        """Verify the credential and return a signed session token."""
        try:
            result = await db.execute(
                select(Credential)
                .options(selectinload(Credential.user))
                .where(Credential.email == payload.email)
            )
            credential = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not log in. Please try again.",
                context={"error_type": type(e).__name__},
            )

        if credential is None or not self.hasher.verify(payload.password, credential.password_hash):
            logger.info("Failed login attempt")
            raise ValidationError(message=LOGIN_FAILED_MESSAGE)

        user = credential.user
        token = self.signer.sign(self.build_claims(user, credential.email))
        logger.info("User %s logged in", user.id)
        return token

    @staticmethod
    def build_claims(user: User, email: str) -> Dict[str, Any]:
        return {
            "id": user.id,
            "username": user.name,
            "role": user.role,
            "email": email,
        }

    async def authenticate(self, claims: Dict[str, Any]) -> AuthenticatedData:
        # Token already verified by the get_current_claims dependency
        return AuthenticatedData(user=claims)


auth_service = AuthService(AuthConfig.from_settings(settings))
