from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.services import catalog_service
from app.utils.responses import success_response

router = APIRouter()


@router.get("")
def list_addons(session: Session = Depends(get_session)):
    addons = catalog_service.list_addons(session)
    return success_response([catalog_service.format_addon(a) for a in addons])


@router.get("/{addon_id}")
def get_addon(addon_id: int, session: Session = Depends(get_session)):
    addon = catalog_service.get_addon(session, addon_id)
    return success_response(catalog_service.format_addon(addon))
