"""
Storefront Backend — Product Authorization Policy
===================================================

What:  The single place that decides whether an actor may create, read,
       update or delete a product.
Who:   Called by ProductService and AdminService for every operation, so
       the rules apply uniformly to all entry paths.
How:   Pure functions over an Actor and the product's shop/owner. No I/O,
       so every rule is unit-testable in isolation.

Rules:
    READ     → always allowed
    Admin    → platform admin (no shop) may act on any shop;
               shop admin may act only on products of their own shop
    User     → CREATE only in their own shop;
               UPDATE/DELETE only on products they own
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.exceptions import ForbiddenError, ValidationError
from app.models.user import Role


class Action(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Actor:
    """The authenticated identity performing a request."""

    id: int
    role: Role
    shop_id: Optional[int] = None
    email: Optional[str] = None
    username: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def log_context(self) -> Dict[str, Any]:
        return {"actor_id": self.id, "role": self.role.value, "actor_shop_id": self.shop_id}


def resolve_create_shop(actor: Actor, requested_shop_id: Optional[int]) -> int:
    """
    Decide which shop a new product belongs to.

    Admins must name the shop explicitly. Regular users fall back to their
    own shop; whether a named shop is acceptable is left to
    authorize_product_action.
    """
    if actor.is_admin:
        if requested_shop_id is None:
            raise ValidationError(
                message="shopId is required when an Admin creates a product",
                field="shopId",
            )
        return requested_shop_id

    shop_id = requested_shop_id if requested_shop_id is not None else actor.shop_id
    if shop_id is None:
        raise ValidationError(
            message="Your account is not attached to a shop",
            field="shopId",
        )
    return shop_id


def authorize_product_action(
    actor: Actor,
    action: Action,
    shop_id: Optional[int],
    owner_id: Optional[int] = None,
) -> None:
    """
    Raise ForbiddenError unless `actor` may perform `action` on a product
    belonging to `shop_id` and owned by `owner_id`.
    """
    if action == Action.READ:
        return

    context = {**actor.log_context(), "action": action.value, "shop_id": shop_id}

    if actor.is_admin:
        if actor.shop_id is None or actor.shop_id == shop_id:
            return
        raise ForbiddenError(
            message="Admins can only manage products of their own shop",
            context=context,
        )

    if action == Action.CREATE:
        if shop_id is not None and shop_id == actor.shop_id:
            return
        raise ForbiddenError(
            message="You can only create products in your own shop",
            context=context,
        )

    if owner_id is not None and owner_id == actor.id:
        return
    raise ForbiddenError(
        message="You can only modify products you own",
        context={**context, "owner_id": owner_id},
    )
