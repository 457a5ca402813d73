"""
Storefront Backend — Admin Dashboard Routes
=============================================

Server-rendered pages for Admin accounts:

    GET  /dashboard/admin          product table (index.html)
    GET  /dashboard/admin/create   create form (create.html)
    POST /dashboard/admin/create   create with one image, then 303 back to the table

The token may come from the Authorization header or the access_token
cookie. Errors use the same JSON envelope as the API.
"""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import require_admin
from app.routes.uploads import read_upload
from app.schemas.product import ProductCreate
from app.services.admin_service import INDEX_TEMPLATE, admin_service
from app.services.authorization import Actor

router = APIRouter(prefix="/dashboard/admin", tags=["Admin"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


@router.get("", response_class=HTMLResponse, summary="Admin product list")
async def find_products(
    request: Request,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> HTMLResponse:
    products = await admin_service.find_products(db)
    return templates.TemplateResponse(
        request,
        INDEX_TEMPLATE,
        {"products": products, "actor": actor},
    )


@router.get("/create", response_class=HTMLResponse, summary="Admin create form")
async def create_page(
    request: Request,
    actor: Actor = Depends(require_admin),
) -> HTMLResponse:
    return templates.TemplateResponse(request, admin_service.create_page(), {"actor": actor})


@router.post("/create", summary="Create a product from the dashboard")
async def create_product(
    name: str = Form(..., min_length=1, max_length=255),
    price: float = Form(..., ge=0, allow_inf_nan=False),
    stock: int = Form(..., ge=0),
    shop_id: Optional[int] = Form(default=None, alias="shopId", ge=1),
    image: Optional[UploadFile] = File(default=None),
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db_session),
) -> RedirectResponse:
    uploaded = await read_upload(image)
    payload = ProductCreate(name=name, price=price, stock=stock, shop_id=shop_id)
    await admin_service.create_product(db, actor, payload, uploaded)
    return RedirectResponse(url=router.prefix, status_code=status.HTTP_303_SEE_OTHER)
