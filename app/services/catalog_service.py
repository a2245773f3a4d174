"""
Read-only catalogue: shops (optionally ranked by distance), products, addons.
"""
import math
from typing import List, Optional

from sqlmodel import Session, select

from app.exceptions import NotFoundError
from app.models.product import Addon, Product
from app.models.shop import Shop

EARTH_RADIUS_KM = 6371


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def format_distance(km: float) -> str:
    if km < 1:
        return f"{km * 1000:.0f} m"
    return f"{km:.2f} km"


# -------- shops --------

def format_shop(shop: Shop, distance_km: Optional[float] = None) -> dict:
    return {
        "id": shop.id,
        "name": shop.name,
        "address": shop.address or "Address not available",
        "contactPhone": shop.contact_phone,
        "image": shop.image_url,
        "latitude": shop.latitude,
        "longitude": shop.longitude,
        "distance": format_distance(distance_km) if distance_km is not None else None,
        "distanceKm": round(distance_km, 3) if distance_km is not None else None,
    }


def list_shops(
    session: Session,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
) -> List[dict]:
    shops = session.exec(
        select(Shop).where(Shop.is_active == True).order_by(Shop.created_at)  # noqa: E712
    ).all()

    if lat is None or lon is None:
        return [format_shop(s) for s in shops]

    ranked = []
    for shop in shops:
        distance = None
        if shop.latitude is not None and shop.longitude is not None:
            distance = haversine_km(lat, lon, shop.latitude, shop.longitude)
        ranked.append((shop, distance))

    # shops without coordinates go last
    ranked.sort(key=lambda pair: math.inf if pair[1] is None else pair[1])
    return [format_shop(shop, distance) for shop, distance in ranked]


def get_shop(session: Session, shop_id: int) -> Shop:
    shop = session.get(Shop, shop_id)
    if not shop or not shop.is_active:
        raise NotFoundError("Shop not found")
    return shop


# -------- products --------

def format_product(product: Product) -> dict:
    return {
        "id": product.id,
        "shopId": product.shop_id,
        "name": product.name,
        "category": product.category,
        "weight": product.weight or "",
        "weightInKg": product.weight_in_kg,
        "price": product.price,
        "pricePerKg": product.price_per_kg,
        "image": product.image_url,
        "description": product.description,
        "originalPrice": product.original_price,
        "discountPercentage": product.discount_percentage,
    }


def list_products(
    session: Session,
    category: Optional[str] = None,
    shop_id: Optional[int] = None,
    search: Optional[str] = None,
) -> List[Product]:
    query = select(Product).where(Product.is_available == True)  # noqa: E712

    if category:
        query = query.where(Product.category == category)

    if shop_id is not None:
        query = query.where(Product.shop_id == shop_id)

    if search:
        query = query.where(Product.name.ilike(f"%{search}%"))

    return session.exec(
        query.order_by(Product.created_at.desc(), Product.id.desc())
    ).all()


def get_product(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if not product or not product.is_available:
        raise NotFoundError("Product not found")
    return product


# -------- addons --------

def format_addon(addon: Addon) -> dict:
    return {
        "id": addon.id,
        "name": addon.name,
        "price": addon.price,
        "selected": False,
    }


def list_addons(session: Session) -> List[Addon]:
    return session.exec(
        select(Addon).where(Addon.is_available == True).order_by(Addon.name)  # noqa: E712
    ).all()


def get_addon(session: Session, addon_id: int) -> Addon:
    addon = session.get(Addon, addon_id)
    if not addon or not addon.is_available:
        raise NotFoundError("Addon not found")
    return addon
