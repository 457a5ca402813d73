"""
Storefront Backend — Product Service
======================================

What:  Create, list, fetch, update and delete products for the JSON API.
Who:   Called by the /api/products routes.
How:   Every operation goes through the authorization policy; images are
       validated by FileService and handed to the configured ImageUploader.

Create flow:
    resolve shop → authorize CREATE → validate every image → upload all
    images concurrently → insert product (image_url = list of URLs, in the
    order the files were sent)

    Images are validated before the first upload starts, so one bad file
    never leaves the others orphaned on the image host.

Update/Delete flow:
    fetch by id (404) → authorize against the product's shop and owner
    → UPDATE/DELETE statement → row count surfaced (0 → 404)
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.product import Product
from app.schemas.product import (
    NewProductData,
    ProductCreate,
    ProductData,
    ProductListData,
    ProductResponse,
    ProductUpdate,
    UpdateResultData,
)
from app.services.authorization import (
    Action,
    Actor,
    authorize_product_action,
    resolve_create_shop,
)
from app.services.file_service import FileService, file_service
from app.services.pagination import compute_total_pages, normalize_pagination
from app.services.upload_base import ImageUploader, UploadedImage
from app.services.uploaders import image_uploader

logger = logging.getLogger(__name__)


class ProductService:
    """
    Business logic for the product API.

    Error Handling Strategy:
        Policy and input problems raise ValidationError/ForbiddenError/
        NotFoundError directly. Upload failures arrive from the uploader as
        UpstreamError and propagate untouched. SQLAlchemy failures are
        wrapped in DatabaseError so SQL never reaches a client.
    """

    def __init__(self, uploader: ImageUploader, files: FileService):
        self.uploader = uploader
        self.files = files

    async def upload_images(self, images: Sequence[UploadedImage]) -> List[str]:
        """
        Validate then upload `images`; returns their URLs in input order.

        If any upload fails, the uploads still in flight are cancelled and
        awaited before the first error is re-raised, so none outlives the
        request.
        """
        file_names = [self.files.prepare(image) for image in images]
        tasks = [
            asyncio.ensure_future(self.uploader.upload(image.content, file_name))
            for image, file_name in zip(images, file_names)
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            orphaned = [
                task.result().url
                for task in tasks
                if not task.cancelled() and task.exception() is None
            ]
            if orphaned:
                logger.warning("Upload batch failed; %d image(s) already stored: %s", len(orphaned), orphaned)
            raise
        return [result.url for result in results]

    async def create_product(
        self,
        db: AsyncSession,
        actor: Actor,
        payload: ProductCreate,
        images: Sequence[UploadedImage] = (),
    ) -> NewProductData:
        shop_id = resolve_create_shop(actor, payload.shop_id)
        authorize_product_action(actor, Action.CREATE, shop_id)

        image_urls = await self.upload_images(images)

        product = Product(
            name=payload.name,
            price=payload.price,
            stock=payload.stock,
            image_url=image_urls,
            user_id=actor.id,
            shop_id=shop_id,
        )
        try:
            db.add(product)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating product: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not create the product. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info(
            "Product %s created in shop %s by user %s with %d image(s)",
            product.id,
            shop_id,
            actor.id,
            len(image_urls),
        )
        return NewProductData(new_product=ProductResponse.model_validate(product))

    async def find_products(
        self,
        db: AsyncSession,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> ProductListData:
        """
        One page of products ordered by id.

        Query plan:
            SELECT ... FROM products ORDER BY id LIMIT :limit OFFSET :offset
            SELECT count(*) FROM products
        """
        page_request = normalize_pagination(
            page,
            limit,
            default_limit=settings.default_page_size,
            max_limit=settings.max_page_size,
        )
        try:
            result = await db.execute(
                select(Product)
                .order_by(Product.id)
                .offset(page_request.offset)
                .limit(page_request.limit)
            )
            products = list(result.scalars().all())

            count_result = await db.execute(select(func.count()).select_from(Product))
            total_count = count_result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error listing products: %s", e, exc_info=True)
            raise DatabaseError(
                message="Could not retrieve products. Please try again.",
                context={"error_type": type(e).__name__},
            )

        return ProductListData(
            products=[ProductResponse.model_validate(p) for p in products],
            total_count=total_count,
            current_page=page_request.page,
            total_pages=compute_total_pages(total_count, page_request.limit),
        )

    async def find_product_by_id(self, db: AsyncSession, product_id: int, actor: Actor) -> ProductData:
        product = await self._get_product(db, product_id)
        authorize_product_action(actor, Action.READ, product.shop_id, product.user_id)
        return ProductData(product=ProductResponse.model_validate(product))

    async def update_product(
        self,
        db: AsyncSession,
        product_id: int,
        actor: Actor,
        payload: ProductUpdate,
        images: Sequence[UploadedImage] = (),
    ) -> UpdateResultData:
        """
        Apply a partial update. New images replace the stored list.

        Raises:
            ValidationError: nothing to update
            NotFoundError: no product with that id
            ForbiddenError: actor may not modify this product
        """
        changes = payload.changes()
        if not changes and not images:
            raise ValidationError(message="Provide at least one field or image to update")

        product = await self._get_product(db, product_id)
        authorize_product_action(actor, Action.UPDATE, product.shop_id, product.user_id)

        if images:
            changes["image_url"] = await self.upload_images(images)

        try:
            result = await db.execute(
                update(Product).where(Product.id == product_id).values(**changes)
            )
        except SQLAlchemyError as e:
            logger.error("Database error updating product %s: %s", product_id, e, exc_info=True)
            raise DatabaseError(
                message="Could not update the product. Please try again.",
                context={"product_id": product_id},
            )

        if result.rowcount == 0:
            raise NotFoundError(resource="product", resource_id=product_id)

        logger.info("Product %s updated by user %s (%s)", product_id, actor.id, ", ".join(changes))
        return UpdateResultData(updated_count=result.rowcount)

    async def delete_product(self, db: AsyncSession, product_id: int, actor: Actor) -> None:
        product = await self._get_product(db, product_id)
        authorize_product_action(actor, Action.DELETE, product.shop_id, product.user_id)

        try:
            result = await db.execute(delete(Product).where(Product.id == product_id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting product %s: %s", product_id, e, exc_info=True)
            raise DatabaseError(
                message="Could not delete the product. Please try again.",
                context={"product_id": product_id},
            )

        if result.rowcount == 0:
            raise NotFoundError(resource="product", resource_id=product_id)

        logger.info("Product %s deleted by user %s", product_id, actor.id)

    async def _get_product(self, db: AsyncSession, product_id: int) -> Product:
        try:
            result = await db.execute(select(Product).where(Product.id == product_id))
            product = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching product %s: %s", product_id, e)
            raise DatabaseError(
                message="Could not retrieve the product. Please try again.",
                context={"product_id": product_id},
            )

        if product is None:
            raise NotFoundError(resource="product", resource_id=product_id)
        return product


product_service = ProductService(uploader=image_uploader, files=file_service)
