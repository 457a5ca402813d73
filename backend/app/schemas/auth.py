"""
Storefront Backend — Auth Request/Response Schemas
====================================================

Register and login bodies are validated here, at the boundary, so
AuthService only ever sees well-formed input. Failures surface as 400
validation errors through the global RequestValidationError handler.
"""

from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from app.schemas.common import CamelModel


def _normalize_email(v: str) -> str:
    email = v.strip().lower()
    local, _, domain = email.partition("@")
    if not local or not domain:
        raise ValueError("email must be a valid address")
    return email


class RegisterRequest(CamelModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1, max_length=128)
    name: str = Field(min_length=1, max_length=255)
    address: str = Field(min_length=1, max_length=500)
    age: int = Field(ge=0, le=150)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginRequest(CamelModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(CamelModel):
    """Public view of a User; the credential is never exposed."""

    id: int
    name: str
    address: str
    age: int
    role: str
    shop_id: Optional[int] = None


class RegisterData(CamelModel):
    email: str
    new_user: UserResponse


class AuthenticatedData(CamelModel):
    """Decoded token claims, returned as-is by GET /api/auth/me."""

    user: Dict[str, Any]
