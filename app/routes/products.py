from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.database import get_session
from app.services import catalog_service
from app.utils.responses import success_response

router = APIRouter()


@router.get("")
def list_products(
    category: Optional[str] = None,
    shop_id: Optional[int] = Query(None, alias="shopId"),
    search: Optional[str] = None,
    session: Session = Depends(get_session),
):
    products = catalog_service.list_products(session, category, shop_id, search)
    return success_response([catalog_service.format_product(p) for p in products])


@router.get("/category/{category}")
def list_products_by_category(category: str, session: Session = Depends(get_session)):
    products = catalog_service.list_products(session, category=category)
    return success_response([catalog_service.format_product(p) for p in products])


@router.get("/{product_id}")
def get_product(product_id: int, session: Session = Depends(get_session)):
    product = catalog_service.get_product(session, product_id)
    return success_response(catalog_service.format_product(product))
