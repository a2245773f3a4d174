from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.database import get_session
from app.services import catalog_service
from app.utils.responses import success_response

router = APIRouter()


@router.get("")
def list_shops(
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lon: Optional[float] = Query(None, ge=-180, le=180),
    session: Session = Depends(get_session),
):
    return success_response(catalog_service.list_shops(session, lat, lon))


@router.get("/{shop_id}")
def get_shop(shop_id: int, session: Session = Depends(get_session)):
    shop = catalog_service.get_shop(session, shop_id)
    return success_response(catalog_service.format_shop(shop))
