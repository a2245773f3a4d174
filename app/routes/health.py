import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from app.config import settings
from app.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health_check(session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        # simple DB ping
        session.exec(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check database ping failed")
        db_status = "failed"

    return {
        "status": "ok",
        "environment": settings.env,
        "database": db_status,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/api")
def api_index():
    return {
        "message": "Taza API",
        "endpoints": {
            "auth": "/api/auth",
            "users": "/api/users",
            "orders": "/api/orders",
            "coupons": "/api/coupons",
            "shops": "/api/shops",
            "products": "/api/products",
            "addons": "/api/addons",
            "paymentMethods": "/api/payment-methods",
            "payments": "/api/payments",
        },
    }
