"""
Storefront Backend — Admin Dashboard Service Tests
====================================================
"""

import re
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import sqlite
from sqlalchemy.exc import OperationalError

from app.exceptions import DatabaseError, ForbiddenError, UpstreamError, ValidationError
from app.models.product import Product
from app.models.user import Role
from app.schemas.product import ProductCreate
from app.services.admin_service import AdminService
from app.services.authorization import Actor
from app.services.file_service import FileService

PLATFORM_ADMIN = Actor(id=1, role=Role.ADMIN, shop_id=None)
SHOP_ADMIN = Actor(id=2, role=Role.ADMIN, shop_id=1)


@pytest.fixture
def service(fake_uploader):
    return AdminService(uploader=fake_uploader, files=FileService())


def test_create_page_template(service):
    assert service.create_page() == "create.html"


class TestAdminCreateProduct:
    @pytest.mark.asyncio
    async def test_creates_product_with_single_image_url(self, service, mock_db_session, fake_uploader, sample_image):
        payload = ProductCreate(name="Test Product", price=100, stock=10)

        result = await service.create_product(mock_db_session, SHOP_ADMIN, payload, sample_image)

        assert len(fake_uploader.calls) == 1
        buffer, file_name = fake_uploader.calls[0]
        assert buffer == sample_image.content
        assert re.match(r"^IMG-\d+\.\w+$", file_name)

        (product,) = mock_db_session.added
        assert isinstance(product, Product)
        assert product.image_url == f"https://cdn.test/1/{file_name}"
        assert product.shop_id == SHOP_ADMIN.shop_id
        assert result.name == "Test Product"
        assert result.image_url == product.image_url

    @pytest.mark.asyncio
    async def test_missing_image_rejected(self, service, mock_db_session):
        with pytest.raises(ValidationError, match="image"):
            await service.create_product(
                mock_db_session, SHOP_ADMIN, ProductCreate(name="X", price=1, stock=1), None
            )

    @pytest.mark.asyncio
    async def test_upload_failure_is_upstream_error(self, service, mock_db_session, fake_uploader, sample_image):
        fake_uploader.fail_with = UpstreamError(message="Image upload failed")

        with pytest.raises(UpstreamError) as exc_info:
            await service.create_product(
                mock_db_session, SHOP_ADMIN, ProductCreate(name="X", price=1, stock=1), sample_image
            )
        assert exc_info.value.status_code == 502
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_shop_admin_cannot_target_other_shop(self, service, mock_db_session, sample_image):
        with pytest.raises(ForbiddenError):
            await service.create_product(
                mock_db_session, SHOP_ADMIN, ProductCreate(name="X", price=1, stock=1, shop_id=2), sample_image
            )

    @pytest.mark.asyncio
    async def test_platform_admin_may_target_any_shop(self, service, mock_db_session, sample_image):
        result = await service.create_product(
            mock_db_session, PLATFORM_ADMIN, ProductCreate(name="X", price=1, stock=1, shop_id=2), sample_image
        )
        assert result.shop_id == 2


class TestAdminFindProducts:
    @pytest.mark.asyncio
    async def test_lists_all_products_newest_first(self, service, mock_db_session):
        result = MagicMock()
        result.scalars.return_value.all.return_value = [
            Product(id=2, name="Product B", price=200, stock=20, image_url="u2"),
            Product(id=1, name="Product A", price=100, stock=10, image_url="u1"),
        ]
        mock_db_session.execute.return_value = result

        products = await service.find_products(mock_db_session)

        assert [p.name for p in products] == ["Product B", "Product A"]
        stmt = mock_db_session.execute.await_args.args[0]
        sql = str(stmt.compile(dialect=sqlite.dialect()))
        assert "ORDER BY products.id DESC" in sql
        assert "LIMIT" not in sql

    @pytest.mark.asyncio
    async def test_store_failure_is_database_error(self, service, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("Database error"))

        with pytest.raises(DatabaseError) as exc_info:
            await service.find_products(mock_db_session)

        assert exc_info.value.status_code == 502
        assert exc_info.value.error_code == "database_error"
        assert "OperationalError" not in exc_info.value.message
