"""
Storefront Backend — Auth Route Handlers
==========================================

    POST /api/auth/register   create an account (201)
    POST /api/auth/login      exchange email/password for a session token
    GET  /api/auth/me         return the claims of the presented token

Register and login are rate limited per client IP (see RateLimitMiddleware).
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_claims
from app.schemas.auth import AuthenticatedData, LoginRequest, RegisterData, RegisterRequest
from app.schemas.common import DataResponse, ErrorResponse, MessageDataResponse
from app.services.auth_service import auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=DataResponse[RegisterData],
    responses={400: {"description": "Invalid input or email taken", "model": ErrorResponse}},
    summary="Register a new user",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[RegisterData]:
    data = await auth_service.register(db, payload)
    return DataResponse[RegisterData](data=data)


@router.post(
    "/login",
    response_model=MessageDataResponse[str],
    responses={400: {"description": "Wrong email or password", "model": ErrorResponse}},
    summary="Log in and receive a session token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageDataResponse[str]:
    token = await auth_service.login(db, payload)
    return MessageDataResponse[str](message="Success login", data=token)


@router.get(
    "/me",
    response_model=DataResponse[AuthenticatedData],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Return the authenticated user's token claims",
)
async def me(claims: Dict[str, Any] = Depends(get_current_claims)) -> DataResponse[AuthenticatedData]:
    data = await auth_service.authenticate(claims)
    return DataResponse[AuthenticatedData](data=data)
