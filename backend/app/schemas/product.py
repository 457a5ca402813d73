"""
Storefront Backend — Product Request/Response Schemas
=======================================================

What:  Input models for product create/update and the product views.
Why:   price and stock have a hard floor of 0 and price must be finite;
       encoding it here means a negative, inf or NaN value is rejected before
       any upload or store call.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import Field, model_validator

from app.schemas.common import CamelModel


class ProductCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    price: float = Field(ge=0, allow_inf_nan=False)
    stock: int = Field(ge=0)
    # Required for Admins; regular users default to their own shop
    shop_id: Optional[int] = Field(default=None, ge=1)


class ProductUpdate(CamelModel):
    """Partial update. Only fields that were sent are applied."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    stock: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "ProductUpdate":
        # A field may be omitted, but a sent null would violate the NOT NULL columns
        for field_name in self.model_fields_set:
            if getattr(self, field_name) is None:
                raise ValueError(f"{field_name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ProductResponse(CamelModel):
    id: int
    name: str
    price: float
    stock: int
    image_url: Optional[Union[List[str], str]] = None
    user_id: Optional[int] = None
    shop_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class NewProductData(CamelModel):
    new_product: ProductResponse


class ProductData(CamelModel):
    product: ProductResponse


class ProductListData(CamelModel):
    products: List[ProductResponse]
    total_count: int
    current_page: int
    total_pages: int


class UpdateResultData(CamelModel):
    updated_count: int
