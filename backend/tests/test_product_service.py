"""
Storefront Backend — Product Service Unit Tests
=================================================

ProductService against a mocked AsyncSession and the in-memory
FakeUploader from conftest.

What we test:
    ✅ Admin create requires a shopId; the supplied shop is stored
    ✅ N images → N upload calls → image_url of length N, in order
    ✅ A bad image fails before any upload starts
    ✅ A failed upload cancels the uploads still in flight
    ✅ Pagination offset/limit in the emitted SQL and totalPages
    ✅ Update: row count surfaced, 404 and 403 paths
    ✅ Deleting a missing product issues no DELETE
"""

import asyncio
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import Delete, Select, Update
from sqlalchemy.dialects import sqlite

from app.exceptions import ForbiddenError, NotFoundError, UpstreamError, ValidationError
from app.models.product import Product
from app.models.user import Role
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.authorization import Actor
from app.services.file_service import FileService
from app.services.product_service import ProductService
from app.services.upload_base import ImageUploader, UploadedImage, UploadResult

ADMIN = Actor(id=1, role=Role.ADMIN, shop_id=None)
USER = Actor(id=3, role=Role.USER, shop_id=1)


def _result(value=None, rowcount=None, scalar=None, rows=None):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar.return_value = scalar
    result.rowcount = rowcount
    result.scalars.return_value.all.return_value = rows or []
    return result


def _product(product_id=10, user_id=3, shop_id=1):
    return Product(
        id=product_id,
        name=f"Product {product_id}",
        price=100.0,
        stock=5,
        image_url=[],
        user_id=user_id,
        shop_id=shop_id,
    )


def _sql(statement) -> str:
    return str(statement.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}))


class SecondUploadFails(ImageUploader):
    """Upload #2 fails at once; the others park until cancelled."""

    def __init__(self):
        self.started = []
        self.cancelled = []
        self.finished = []

    async def upload(self, file_buffer: bytes, file_name: str) -> UploadResult:
        self.started.append(file_name)
        if len(self.started) == 2:
            raise UpstreamError(message="Image upload failed")
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            self.cancelled.append(file_name)
            raise
        self.finished.append(file_name)
        return UploadResult(url=f"https://cdn.test/{file_name}", file_id=file_name, name=file_name)

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def service(fake_uploader):
    return ProductService(uploader=fake_uploader, files=FileService(max_file_size=1024 * 1024))


class TestCreateProduct:
    @pytest.mark.asyncio
    async def test_admin_without_shop_id_rejected(self, service, mock_db_session, fake_uploader, sample_image):
        payload = ProductCreate(name="Lamp", price=10, stock=1)

        with pytest.raises(ValidationError, match="shopId"):
            await service.create_product(mock_db_session, ADMIN, payload, [sample_image])

        assert fake_uploader.calls == []
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_with_shop_id_stores_it(self, service, mock_db_session):
        payload = ProductCreate(name="Lamp", price=10, stock=1, shop_id=2)

        data = await service.create_product(mock_db_session, ADMIN, payload)

        (product,) = mock_db_session.added
        assert product.shop_id == 2
        assert product.user_id == ADMIN.id
        assert data.new_product.shop_id == 2
        assert data.new_product.image_url == []

    @pytest.mark.asyncio
    async def test_user_defaults_to_own_shop(self, service, mock_db_session):
        data = await service.create_product(
            mock_db_session, USER, ProductCreate(name="Mug", price=3.5, stock=7)
        )
        assert data.new_product.shop_id == USER.shop_id

    @pytest.mark.asyncio
    async def test_n_images_produce_n_uploads_in_order(self, service, mock_db_session, fake_uploader, sample_image_bytes):
        images = [
            UploadedImage(filename=f"photo{i}.png", content=sample_image_bytes + bytes([i]), content_type="image/png")
            for i in range(3)
        ]

        data = await service.create_product(
            mock_db_session, USER, ProductCreate(name="Set", price=1, stock=1), images
        )

        assert len(fake_uploader.calls) == 3
        assert [buffer for buffer, _ in fake_uploader.calls] == [image.content for image in images]
        for _, file_name in fake_uploader.calls:
            assert file_name.startswith("IMG-") and file_name.endswith(".png")
        urls = data.new_product.image_url
        assert len(urls) == 3
        assert urls == [f"https://cdn.test/{n}/{name}" for n, (_, name) in enumerate(fake_uploader.calls, start=1)]

    @pytest.mark.asyncio
    async def test_invalid_image_rejected_before_any_upload(self, service, mock_db_session, fake_uploader, sample_image):
        bad = UploadedImage(filename="notes.pdf", content=b"%PDF", content_type="application/pdf")

        with pytest.raises(ValidationError, match="not supported"):
            await service.create_product(
                mock_db_session, USER, ProductCreate(name="Doc", price=1, stock=1), [sample_image, bad]
            )

        assert fake_uploader.calls == []

    @pytest.mark.asyncio
    async def test_upload_failure_propagates(self, service, mock_db_session, fake_uploader, sample_image):
        fake_uploader.fail_with = UpstreamError(message="Image upload failed")

        with pytest.raises(UpstreamError):
            await service.create_product(
                mock_db_session, USER, ProductCreate(name="Mug", price=1, stock=1), [sample_image]
            )
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_upload_cancels_the_rest(self, mock_db_session, sample_image_bytes):
        uploader = SecondUploadFails()
        service = ProductService(uploader=uploader, files=FileService(max_file_size=1024 * 1024))
        images = [
            UploadedImage(filename=f"photo{i}.jpg", content=sample_image_bytes, content_type="image/jpeg")
            for i in range(3)
        ]

        with pytest.raises(UpstreamError, match="Image upload failed"):
            await asyncio.wait_for(
                service.create_product(mock_db_session, USER, ProductCreate(name="Set", price=1, stock=1), images),
                timeout=5,
            )

        assert len(uploader.started) == 3
        assert len(uploader.cancelled) == 2
        assert uploader.finished == []
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_user_cannot_create_in_other_shop(self, service, mock_db_session):
        with pytest.raises(ForbiddenError):
            await service.create_product(
                mock_db_session, USER, ProductCreate(name="Mug", price=1, stock=1, shop_id=2)
            )


class TestFindProducts:
    @pytest.mark.asyncio
    async def test_page_two_of_twelve_rows(self, service, mock_db_session):
        rows = [_product(product_id=i) for i in range(6, 11)]
        mock_db_session.execute.side_effect = [_result(rows=rows), _result(scalar=12)]

        data = await service.find_products(mock_db_session, page=2, limit=5)

        rows_stmt = mock_db_session.execute.await_args_list[0].args[0]
        sql = _sql(rows_stmt)
        assert "LIMIT 5 OFFSET 5" in sql
        assert "ORDER BY products.id" in sql
        assert data.total_count == 12
        assert data.current_page == 2
        assert data.total_pages == 3
        assert [p.id for p in data.products] == [6, 7, 8, 9, 10]

    @pytest.mark.asyncio
    async def test_defaults_and_clamping(self, service, mock_db_session):
        mock_db_session.execute.side_effect = [_result(rows=[]), _result(scalar=0)]

        data = await service.find_products(mock_db_session, page=0, limit=1000)

        sql = _sql(mock_db_session.execute.await_args_list[0].args[0])
        assert "LIMIT 100 OFFSET 0" in sql
        assert data.current_page == 1
        assert data.total_pages == 0

    @pytest.mark.asyncio
    async def test_missing_params_use_page_one_limit_ten(self, service, mock_db_session):
        mock_db_session.execute.side_effect = [_result(rows=[]), _result(scalar=25)]

        data = await service.find_products(mock_db_session)

        assert "LIMIT 10 OFFSET 0" in _sql(mock_db_session.execute.await_args_list[0].args[0])
        assert data.total_pages == 3


class TestFindProductById:
    @pytest.mark.asyncio
    async def test_found(self, service, mock_db_session):
        mock_db_session.execute.return_value = _result(_product(product_id=4, user_id=99, shop_id=2))

        data = await service.find_product_by_id(mock_db_session, 4, USER)

        assert data.product.id == 4

    @pytest.mark.asyncio
    async def test_missing_is_not_found(self, service, mock_db_session):
        mock_db_session.execute.return_value = _result(None)

        with pytest.raises(NotFoundError):
            await service.find_product_by_id(mock_db_session, 404, USER)


class TestUpdateProduct:
    @pytest.mark.asyncio
    async def test_update_surfaces_row_count(self, service, mock_db_session):
        mock_db_session.execute.side_effect = [_result(_product()), _result(rowcount=1)]

        data = await service.update_product(mock_db_session, 10, USER, ProductUpdate(price=250))

        assert data.updated_count == 1
        update_stmt = mock_db_session.execute.await_args_list[1].args[0]
        assert isinstance(update_stmt, Update)

    @pytest.mark.asyncio
    async def test_zero_rows_is_not_found(self, service, mock_db_session):
        mock_db_session.execute.side_effect = [_result(_product()), _result(rowcount=0)]

        with pytest.raises(NotFoundError):
            await service.update_product(mock_db_session, 10, USER, ProductUpdate(stock=1))

    @pytest.mark.asyncio
    async def test_new_images_replace_image_url(self, service, mock_db_session, fake_uploader, sample_image):
        mock_db_session.execute.side_effect = [_result(_product()), _result(rowcount=1)]

        await service.update_product(mock_db_session, 10, USER, ProductUpdate(), [sample_image])

        assert len(fake_uploader.calls) == 1
        update_stmt = mock_db_session.execute.await_args_list[1].args[0]
        params = update_stmt.compile(dialect=sqlite.dialect()).params
        assert params["image_url"] == [f"https://cdn.test/1/{fake_uploader.calls[0][1]}"]

    @pytest.mark.asyncio
    async def test_empty_update_rejected(self, service, mock_db_session):
        with pytest.raises(ValidationError):
            await service.update_product(mock_db_session, 10, USER, ProductUpdate())
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_users_product_forbidden(self, service, mock_db_session):
        mock_db_session.execute.return_value = _result(_product(user_id=42))

        with pytest.raises(ForbiddenError):
            await service.update_product(mock_db_session, 10, USER, ProductUpdate(name="Mine now"))
        assert mock_db_session.execute.await_count == 1

    def test_negative_price_rejected(self):
        with pytest.raises(SchemaValidationError):
            ProductUpdate(price=-1)

    @pytest.mark.parametrize("price", [float("inf"), float("nan")])
    def test_non_finite_price_rejected(self, price):
        with pytest.raises(SchemaValidationError):
            ProductUpdate(price=price)
        with pytest.raises(SchemaValidationError):
            ProductCreate(name="Lamp", price=price, stock=1)

    def test_explicit_null_rejected(self):
        with pytest.raises(SchemaValidationError):
            ProductUpdate(name=None)


class TestDeleteProduct:
    @pytest.mark.asyncio
    async def test_delete_own_product(self, service, mock_db_session):
        mock_db_session.execute.side_effect = [_result(_product()), _result(rowcount=1)]

        await service.delete_product(mock_db_session, 10, USER)

        assert isinstance(mock_db_session.execute.await_args_list[1].args[0], Delete)

    @pytest.mark.asyncio
    async def test_delete_nonexistent_does_not_mutate(self, service, mock_db_session):
        mock_db_session.execute.return_value = _result(None)

        with pytest.raises(NotFoundError):
            await service.delete_product(mock_db_session, 999, USER)

        assert mock_db_session.execute.await_count == 1
        assert isinstance(mock_db_session.execute.await_args.args[0], Select)
        mock_db_session.add.assert_not_called()
