import os

# settings are read at import time
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import app.models  # noqa: F401
from app.database import get_session
from app.main import app
from app.models.address import Address
from app.models.coupon import Coupon
from app.models.product import Addon, Product
from app.models.shop import Shop
from app.models.user import User, UserProfile
from app.services.auth_service import reset_store
from app.services.payment_gateway import get_razorpay_client
from app.utils.hash import hash_password

PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def override_get_session():
        return session

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    reset_store.clear()
    get_razorpay_client.cache_clear()


# -------- factories --------

@pytest.fixture
def make_user(session):
    def _make(phone="9000000001", name="Ravi", email=None, password=PASSWORD):
        user = User(name=name, phone=phone, email=email, password=hash_password(password))
        session.add(user)
        session.flush()
        session.add(UserProfile(id=user.id, name=name, phone=phone, email=email))
        session.commit()
        session.refresh(user)
        return user
    return _make


@pytest.fixture
def make_address(session):
    def _make(user_id, is_default=True, label="Home"):
        address = Address(
            user_id=user_id,
            contact_name="Ravi",
            phone="9000000001",
            street="12 MG Road",
            city="Vijayawada",
            state="Andhra Pradesh",
            postal_code="520010",
            label=label,
            is_default=is_default,
        )
        session.add(address)
        session.commit()
        session.refresh(address)
        return address
    return _make


@pytest.fixture
def shop(session):
    shop = Shop(name="Taza Benz Circle", address="Benz Circle", latitude=16.4971, longitude=80.6562)
    session.add(shop)
    session.commit()
    session.refresh(shop)
    return shop


@pytest.fixture
def product(session, shop):
    product = Product(
        shop_id=shop.id,
        name="Chicken Curry Cut",
        category="chicken",
        weight="500 g",
        weight_in_kg=0.5,
        price=180,
        price_per_kg=360,
        image_url="https://cdn.example.com/chicken.jpg",
    )
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@pytest.fixture
def addon(session):
    addon = Addon(name="Extra masala", price=20)
    session.add(addon)
    session.commit()
    session.refresh(addon)
    return addon


@pytest.fixture
def make_coupon(session):
    def _make(code="SAVE10", **kwargs):
        coupon = Coupon(code=code, **kwargs)
        session.add(coupon)
        session.commit()
        session.refresh(coupon)
        return coupon
    return _make


# -------- api helpers --------

@pytest.fixture
def signup(client):
    def _signup(phone="9111111111", name="Asha", email=None, address=True):
        payload = {"name": name, "phone": phone, "password": PASSWORD}
        if email:
            payload["email"] = email
        if address:
            payload["address"] = {
                "street": "4 Patamata Main Rd",
                "city": "Vijayawada",
                "state": "Andhra Pradesh",
                "postalCode": "520010",
            }
        response = client.post("/api/auth/signup", json=payload)
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["user"], {"Authorization": f"Bearer {data['token']}"}
    return _signup
