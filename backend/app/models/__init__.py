# Models package init
"""
Storefront Backend — ORM Models
=================================

Importing this package registers every table on Base.metadata, which is what
Alembic autogenerate and the test fixtures rely on.
"""

from app.models.shop import Shop
from app.models.user import Credential, Role, User
from app.models.product import Product

__all__ = ["Shop", "User", "Credential", "Role", "Product"]
