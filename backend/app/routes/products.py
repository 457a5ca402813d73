"""
Storefront Backend — Product Route Handlers
=============================================

    POST   /api/products          create (multipart, images[] optional)
    GET    /api/products          paginated list (?page=&limit=)
    GET    /api/products/{id}     single product
    PATCH  /api/products/{id}     partial update (multipart)
    DELETE /api/products/{id}     delete

Every route except the list requires a session token. Form fields are
validated by FastAPI here (negative or non-finite price, negative stock
→ 400) and again by the request schemas inside the service.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_actor
from app.routes.uploads import read_uploads
from app.schemas.common import DataResponse, ErrorResponse, MessageDataResponse, MessageResponse
from app.schemas.product import (
    NewProductData,
    ProductCreate,
    ProductData,
    ProductListData,
    ProductUpdate,
    UpdateResultData,
)
from app.services.authorization import Actor
from app.services.product_service import product_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])

_auth_errors = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Not allowed for this actor", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=DataResponse[NewProductData],
    responses={
        400: {"description": "Invalid product or image", "model": ErrorResponse},
        **_auth_errors,
        502: {"description": "Image upload failed", "model": ErrorResponse},
        503: {"description": "Image upload temporarily disabled", "model": ErrorResponse},
    },
    summary="Create a product with images",
)
async def create_product(
    name: str = Form(..., min_length=1, max_length=255),
    price: float = Form(..., ge=0, allow_inf_nan=False),
    stock: int = Form(..., ge=0),
    shop_id: Optional[int] = Form(default=None, alias="shopId", ge=1),
    images: Optional[List[UploadFile]] = File(default=None),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[NewProductData]:
    uploaded = await read_uploads(images)
    payload = ProductCreate(name=name, price=price, stock=stock, shop_id=shop_id)
    data = await product_service.create_product(db, actor, payload, uploaded)
    return DataResponse[NewProductData](data=data)


@router.get(
    "",
    response_model=DataResponse[ProductListData],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List products, one page at a time",
)
async def find_products(
    page: Optional[int] = Query(default=None, description="1-based page number (default 1)"),
    limit: Optional[int] = Query(default=None, description="Items per page (default 10, max 100)"),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[ProductListData]:
    data = await product_service.find_products(db, page=page, limit=limit)
    return DataResponse[ProductListData](data=data)


@router.get(
    "/{product_id}",
    response_model=DataResponse[ProductData],
    responses={**_auth_errors, 404: {"description": "Product not found", "model": ErrorResponse}},
    summary="Get a single product",
)
async def find_product_by_id(
    product_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[ProductData]:
    data = await product_service.find_product_by_id(db, product_id, actor)
    return DataResponse[ProductData](data=data)


@router.patch(
    "/{product_id}",
    response_model=MessageDataResponse[UpdateResultData],
    responses={
        400: {"description": "Invalid update", "model": ErrorResponse},
        **_auth_errors,
        404: {"description": "Product not found", "model": ErrorResponse},
    },
    summary="Update a product",
)
async def update_product(
    product_id: int,
    name: Optional[str] = Form(default=None, min_length=1, max_length=255),
    price: Optional[float] = Form(default=None, ge=0, allow_inf_nan=False),
    stock: Optional[int] = Form(default=None, ge=0),
    images: Optional[List[UploadFile]] = File(default=None),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db_session),
) -> MessageDataResponse[UpdateResultData]:
    uploaded = await read_uploads(images)
    # Only fields present in the form count as "set"
    sent = {
        key: value
        for key, value in {"name": name, "price": price, "stock": stock}.items()
        if value is not None
    }
    payload = ProductUpdate(**sent)
    data = await product_service.update_product(db, product_id, actor, payload, uploaded)
    return MessageDataResponse[UpdateResultData](message="Success update product", data=data)


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    responses={**_auth_errors, 404: {"description": "Product not found", "model": ErrorResponse}},
    summary="Delete a product",
)
async def delete_product(
    product_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await product_service.delete_product(db, product_id, actor)
    return MessageResponse(message="Success delete product")
