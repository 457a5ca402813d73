"""
Storefront Backend — Request Identity Dependencies
====================================================

What:  FastAPI dependencies that turn a session token into an Actor.
How:   The token is read from `Authorization: Bearer <token>`, or from the
       `access_token` cookie so the server-rendered dashboard works from a
       plain browser. Claims are verified by TokenSigner; the role and shop
       are then reloaded from the users table so a demoted or deleted
       account loses access without waiting for its token to expire.

Dependency chain:
    get_current_claims → get_current_actor → require_admin
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import ForbiddenError, UnauthorizedError
from app.models.user import Role, User
from app.services.auth_service import auth_service
from app.services.authorization import Actor

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "access_token"

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_claims(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Dict[str, Any]:
    """Verified token claims, or UnauthorizedError (401)."""
    token = credentials.credentials if credentials else request.cookies.get(TOKEN_COOKIE)
    if not token:
        raise UnauthorizedError(message="Missing session token")
    return auth_service.signer.verify(token)


async def get_current_actor(
    request: Request,
    claims: Dict[str, Any] = Depends(get_current_claims),
    db: AsyncSession = Depends(get_db_session),
) -> Actor:
    user_id = claims.get("id")
    if not isinstance(user_id, int):
        raise UnauthorizedError(message="Invalid session token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning("Token presented for missing user %s", user_id)
        raise UnauthorizedError(message="Account no longer exists")

    request.state.actor_id = user.id

    return Actor(
        id=user.id,
        role=Role(user.role),
        shop_id=user.shop_id,
        email=claims.get("email"),
        username=user.name,
    )


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    if not actor.is_admin:
        raise ForbiddenError(
            message="Admin role required",
            context=actor.log_context(),
        )
    return actor
