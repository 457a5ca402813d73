"""
Storefront Backend — Admin Dashboard Service
==============================================

Backs the server-rendered dashboard: a create form that takes exactly one
image and an unpaginated product list. Products created here store a single
URL string in image_url rather than the list the JSON API stores.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, ValidationError
from app.models.product import Product
from app.schemas.product import ProductCreate, ProductResponse
from app.services.authorization import Action, Actor, authorize_product_action
from app.services.file_service import FileService, file_service
from app.services.upload_base import ImageUploader, UploadedImage
from app.services.uploaders import image_uploader

logger = logging.getLogger(__name__)

CREATE_TEMPLATE = "create.html"
INDEX_TEMPLATE = "index.html"


class AdminService:
    def __init__(self, uploader: ImageUploader, files: FileService):
        self.uploader = uploader
        self.files = files

    def create_page(self) -> str:
        """Name of the template for the create form."""
        return CREATE_TEMPLATE

    async def create_product(
        self,
        db: AsyncSession,
        actor: Actor,
        payload: ProductCreate,
        image: Optional[UploadedImage],
    ) -> ProductResponse:
        """
        Create a product with one image.

        The product goes to payload.shop_id when given, otherwise to the
        admin's own shop (None for a platform admin).
        """
        if image is None:
            raise ValidationError(message="An image is required", field="image")

        shop_id = payload.shop_id if payload.shop_id is not None else actor.shop_id
        authorize_product_action(actor, Action.CREATE, shop_id)

        file_name = self.files.prepare(image)
        uploaded = await self.uploader.upload(image.content, file_name)

        product = Product(
            name=payload.name,
            price=payload.price,
            stock=payload.stock,
            image_url=uploaded.url,
            user_id=actor.id,
            shop_id=shop_id,
        )
        try:
            db.add(product)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating product from dashboard: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not create the product. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Dashboard product %s created by admin %s", product.id, actor.id)
        return ProductResponse.model_validate(product)

    async def find_products(self, db: AsyncSession) -> List[ProductResponse]:
        """Every product, newest first."""
        try:
            result = await db.execute(select(Product).order_by(Product.id.desc()))
            products = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing dashboard products: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not retrieve products. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return [ProductResponse.model_validate(p) for p in products]


admin_service = AdminService(uploader=image_uploader, files=file_service)
