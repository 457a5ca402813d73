"""
Storefront Backend — Product Model
====================================

What:  ORM model for the `products` table.
How:   image_url is a JSON column because the two entry paths store different
       shapes: the product API stores a list of URLs (one per uploaded file,
       upload order preserved), the admin dashboard stores a single URL string.

Constraints:
    price >= 0 and stock >= 0 are enforced by the request schemas and again
    by CHECK constraints, so a bad write from any path fails at the database.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Product(Base):
    """
    A catalog entry owned by a user and attached to a shop.

    Query Patterns:
        - Paginated list: ORDER BY id LIMIT :limit OFFSET :offset
        - Single product / ownership check: WHERE id = :id (primary key)
        - Admin dashboard: ORDER BY id DESC, no limit
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_url: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
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

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', shop_id={self.shop_id})>"
