"""
Storefront Backend — User & Credential Models
===============================================

What:  `users` holds the profile, `auths` holds the login credential.
Why split: the profile is what products reference as their owner; the
       credential (email + bcrypt hash) is only touched by AuthService.

Relationship:
    Credential 1 ──── 1 User ──── * Product
                        │
                        └── * ── 1 Shop

Lifecycle:
    Both rows are created together at registration inside one transaction.
    Neither is updated or deleted by this service.
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Role(str, enum.Enum):
    """Account roles. Stored as their string value."""

    ADMIN = "Admin"
    USER = "User"


class User(Base):
    """
    Profile of a registered account.

    shop_id is nullable: platform admins are not bound to a shop, while
    self-registered users always get the configured default shop.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=Role.USER.value,
        server_default=text("'User'"),
    )
    shop_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("shops.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    credential: Mapped[Optional["Credential"]] = relationship(
        back_populates="user",
        uselist=False,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role='{self.role}', shop_id={self.shop_id})>"


class Credential(Base):
    """
    Login credential: unique email plus bcrypt hash.

    The unique index on email is the final guard against duplicate
    registrations racing past AuthService's pre-check.
    """

    __tablename__ = "auths"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    user: Mapped[User] = relationship(back_populates="credential")

    def __repr__(self) -> str:
        # Never include the hash
        return f"<Credential(id={self.id}, email='{self.email}', user_id={self.user_id})>"
