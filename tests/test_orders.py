from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from app.exceptions import ConflictError, DependencyError, NotFoundError, ValidationError
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.order_timeline import OrderTimelineEvent
from app.schemas.orders_schemas import OrderCreate
from app.services import order_service


def order_payload(address_id=None, **overrides):
    payload = {
        "addressId": address_id,
        "items": [
            {"productId": None, "name": "Mutton Curry Cut", "quantity": 2, "price": 450, "weight": "500 g"},
            {"name": "Chicken Breast", "quantity": 1, "price": 220},
        ],
        "subtotal": 1120,
        "deliveryCharge": 40,
    }
    payload.update(overrides)
    return OrderCreate.model_validate(payload)


@pytest.fixture
def customer(make_user, make_address):
    user = make_user()
    address = make_address(user.id)
    return user, address


def place_orders(session, user_id, address_id, count):
    for _ in range(count):
        order_service.create_order(session, user_id, order_payload(address_id))


# -------- create --------

def test_create_order_round_trip(session, customer):
    user, address = customer

    order, coupon_error = order_service.create_order(session, user.id, order_payload(address.id))
    details = order_service.load_order_details(session, order_service.get_order(session, order.id, user.id))

    assert coupon_error is None
    assert len(details["items"]) == 2
    assert details["timeline"][0]["stage"] == "Order Placed"
    assert details["status"] == "Preparing"
    assert details["statusNote"] == "Butcher is hand-cutting your order."
    assert details["orderNumber"] == "#TAZ1000"


def test_first_three_orders_ship_free(session, customer):
    user, address = customer

    place_orders(session, user.id, address.id, 3)
    fourth, _ = order_service.create_order(session, user.id, order_payload(address.id))

    charges = [o.delivery_charge for o in order_service.list_orders(session, user.id)]
    assert charges == [40, 0, 0, 0]
    assert fourth.total == 1160


def test_total_invariant_holds(session, customer, make_coupon):
    user, address = customer
    coupon = make_coupon("TWENTY", discount_percentage=20, max_discount=100)
    place_orders(session, user.id, address.id, 3)

    order_service.create_order(session, user.id, order_payload(address.id, discount=5))
    order_service.create_order(session, user.id, order_payload(address.id, couponId=coupon.id))

    for order in session.exec(select(Order)).all():
        assert abs(order.total - (order.subtotal + order.delivery_charge - order.discount)) < 0.01


def test_order_numbers_are_sequential(session, customer):
    user, address = customer
    place_orders(session, user.id, address.id, 2)

    numbers = sorted(o.order_number for o in session.exec(select(Order)).all())
    assert numbers == ["#TAZ1000", "#TAZ1001"]


def test_order_number_survives_deleted_order(session, customer):
    user, address = customer
    place_orders(session, user.id, address.id, 2)

    first = session.exec(select(Order).where(Order.order_number == "#TAZ1000")).one()
    for model in (OrderItem, OrderTimelineEvent):
        for row in session.exec(select(model).where(model.order_id == first.id)).all():
            session.delete(row)
    session.delete(first)
    session.commit()

    order, _ = order_service.create_order(session, user.id, order_payload(address.id))

    assert order.order_number == "#TAZ1002"
    numbers = [o.order_number for o in session.exec(select(Order)).all()]
    assert len(numbers) == len(set(numbers)) == 2


def test_otp_is_six_digits(session, customer):
    user, address = customer
    order, _ = order_service.create_order(session, user.id, order_payload(address.id))

    assert len(order.otp) == 6
    assert 100000 <= int(order.otp) <= 999999


def test_default_address_used_when_missing(session, make_user, make_address):
    user = make_user()
    make_address(user.id, is_default=False, label="Work")
    home = make_address(user.id, is_default=True)

    order, _ = order_service.create_order(session, user.id, order_payload(None))

    assert order.address_id == home.id


def test_no_address_at_all(session, make_user):
    user = make_user()

    with pytest.raises(ValidationError, match="No delivery address found"):
        order_service.create_order(session, user.id, order_payload(None))


def test_someone_elses_address(session, customer, make_user, make_address):
    user, _ = customer
    other = make_user(phone="9000000002")
    foreign = make_address(other.id)

    with pytest.raises(NotFoundError):
        order_service.create_order(session, user.id, order_payload(foreign.id))


@pytest.mark.parametrize(
    "items",
    [
        [],
        [{"name": "Free lunch", "quantity": 1, "price": 0}],
        [{"name": "Negative", "quantity": 0, "price": 100}],
    ],
)
def test_invalid_items_rejected(session, customer, items):
    user, address = customer

    with pytest.raises(ValidationError):
        order_service.create_order(session, user.id, order_payload(address.id, items=items))

    assert session.exec(select(Order)).all() == []


def test_valid_coupon_replaces_client_discount(session, customer, make_coupon):
    user, address = customer
    coupon = make_coupon("TWENTY", discount_percentage=20, max_discount=100, usage_limit=5)

    order, coupon_error = order_service.create_order(
        session, user.id, order_payload(address.id, couponId=coupon.id, discount=999)
    )

    assert coupon_error is None
    assert order.discount == 100
    assert order.coupon_id == coupon.id
    assert order.total == 1020
    session.refresh(coupon)
    assert coupon.usage_count == 1


def test_invalid_coupon_drops_discount(session, customer, make_coupon):
    user, address = customer
    coupon = make_coupon("BIGSPEND", discount_amount=200, min_order_amount=5000)

    order, coupon_error = order_service.create_order(
        session, user.id, order_payload(address.id, couponId=coupon.id, discount=200)
    )

    assert coupon_error == "Minimum order amount of ₹5000 required"
    assert order.discount == 0
    assert order.coupon_id is None
    session.refresh(coupon)
    assert coupon.usage_count == 0


def test_exhausted_coupon_drops_discount(session, customer, make_coupon):
    user, address = customer
    coupon = make_coupon("LAST", discount_amount=50, usage_limit=1, usage_count=1)

    order, coupon_error = order_service.create_order(
        session, user.id, order_payload(address.id, couponId=coupon.id)
    )

    assert coupon_error == "Coupon usage limit reached"
    assert order.discount == 0


def test_failed_order_does_not_consume_coupon(session, customer, make_coupon, monkeypatch):
    user, address = customer
    coupon = make_coupon("HUGE", discount_amount=50, usage_limit=3)

    def broken_timeline(*args, **kwargs):
        raise OperationalError("INSERT INTO order_timeline", {}, Exception("disk I/O error"))

    monkeypatch.setattr(order_service, "append_timeline_event", broken_timeline)

    with pytest.raises(DependencyError):
        order_service.create_order(
            session, user.id, order_payload(address.id, couponId=coupon.id)
        )

    session.refresh(coupon)
    assert coupon.usage_count == 0
    assert session.exec(select(Order)).all() == []
    assert session.exec(select(OrderItem)).all() == []


def test_flat_coupon_larger_than_order_is_capped(session, customer, make_coupon):
    user, address = customer
    coupon = make_coupon("FLAT100", discount_amount=100)

    # first order: delivery is free, so the coupon outweighs the whole bill
    order, coupon_error = order_service.create_order(
        session,
        user.id,
        order_payload(
            address.id,
            items=[{"name": "Chicken Liver", "quantity": 1, "price": 50}],
            subtotal=50,
            couponId=coupon.id,
        ),
    )

    assert coupon_error is None
    assert order.delivery_charge == 0
    assert order.discount == 50
    assert order.total == 0
    assert order.coupon_id == coupon.id
    session.refresh(coupon)
    assert coupon.usage_count == 1


def test_client_discount_above_total_rejected(session, customer):
    user, address = customer

    with pytest.raises(ValidationError):
        order_service.create_order(
            session, user.id, order_payload(address.id, discount=5000)
        )

    assert session.exec(select(Order)).all() == []


# -------- read --------

def test_orders_are_scoped_to_owner(session, customer, make_user):
    user, address = customer
    order, _ = order_service.create_order(session, user.id, order_payload(address.id))
    stranger = make_user(phone="9000000003")

    with pytest.raises(NotFoundError):
        order_service.get_order(session, order.id, stranger.id)

    assert order_service.list_orders(session, stranger.id) == []


def test_list_orders_newest_first(session, customer):
    user, address = customer
    place_orders(session, user.id, address.id, 3)

    numbers = [o.order_number for o in order_service.list_orders(session, user.id)]
    assert numbers == ["#TAZ1002", "#TAZ1001", "#TAZ1000"]


# -------- status --------

def test_status_update_appends_timeline(session, customer):
    user, address = customer
    order, _ = order_service.create_order(session, user.id, order_payload(address.id))

    order_service.update_status(session, order.id, user.id, "Picked Up")
    updated = order_service.update_status(session, order.id, user.id, "Delivered", note="Left at door")

    events = session.exec(
        select(OrderTimelineEvent)
        .where(OrderTimelineEvent.order_id == order.id)
        .order_by(OrderTimelineEvent.id)
    ).all()

    assert [e.stage for e in events] == ["Order Placed", "Picked Up", "Delivered"]
    assert events[-1].description == "Left at door"
    assert updated.delivered_at is not None
    assert updated.status_note == "Left at door"


def test_cancel_records_incomplete_event(session, customer):
    user, address = customer
    order, _ = order_service.create_order(session, user.id, order_payload(address.id))

    order_service.update_status(session, order.id, user.id, "Cancelled")
    details = order_service.load_order_details(session, order)

    assert details["isCancelled"] is True
    assert details["timeline"][-1] == {
        "stage": "Order Cancelled",
        "description": "Amount will be refunded within 24 hours.",
        "timestamp": details["timeline"][-1]["timestamp"],
        "isCompleted": False,
    }
    assert [s["stage"] for s in details["stages"]] == ["Order Placed"]


def test_invalid_status(session, customer):
    user, address = customer
    order, _ = order_service.create_order(session, user.id, order_payload(address.id))

    with pytest.raises(ValidationError, match="Invalid status"):
        order_service.update_status(session, order.id, user.id, "Teleported")


def test_terminal_order_cannot_change(session, customer):
    user, address = customer
    order, _ = order_service.create_order(session, user.id, order_payload(address.id))
    order_service.update_status(session, order.id, user.id, "Delivered")

    with pytest.raises(ConflictError):
        order_service.update_status(session, order.id, user.id, "Preparing")


# -------- formatting --------

def test_format_date():
    assert order_service.format_date(datetime(2026, 1, 5, 15, 4)) == "Mon, 5 Jan 2026 • 3:04 PM"
    assert order_service.format_time(datetime(2026, 1, 5, 9, 30)) == "9:30 AM"
    assert order_service.format_date(None) is None


# -------- api --------

def api_order(address_id=None):
    body = {
        "items": [{"name": "Mutton Curry Cut", "quantity": 2, "price": 450}],
        "subtotal": 900,
    }
    if address_id:
        body["addressId"] = address_id
    return body


def test_create_and_fetch_order_via_api(client, signup):
    _, headers = signup()

    created = client.post("/api/orders", json=api_order(), headers=headers)
    assert created.status_code == 201
    order = created.json()["data"]
    assert "couponError" not in created.json()

    fetched = client.get(f"/api/orders/{order['id']}", headers=headers)
    assert fetched.status_code == 200
    data = fetched.json()["data"]
    assert len(data["items"]) == 1
    assert data["timeline"][0]["stage"] == "Order Placed"
    assert data["deliveryCharge"] == 0
    assert data["total"] == 900
    assert [s["stage"] for s in data["stages"]] == [
        "Order Placed", "Order Ready", "Out for Delivery", "Delivered",
    ]

    listed = client.get("/api/orders", headers=headers).json()["data"]
    assert [o["id"] for o in listed] == [order["id"]]


def test_create_order_reports_coupon_error(client, signup, make_coupon):
    _, headers = signup()
    coupon = make_coupon("BIGSPEND", discount_amount=200, min_order_amount=5000)

    body = api_order()
    body["couponId"] = coupon.id
    response = client.post("/api/orders", json=body, headers=headers)

    assert response.status_code == 201
    assert response.json()["couponError"] == "Minimum order amount of ₹5000 required"
    assert response.json()["data"]["discount"] == 0


def test_create_order_requires_items(client, signup):
    _, headers = signup()

    response = client.post("/api/orders", json={"items": [], "subtotal": 0}, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Missing required field: items"


def test_orders_require_auth(client):
    assert client.get("/api/orders").status_code == 401


def test_other_users_order_is_404(client, signup):
    _, owner = signup(phone="9100000001")
    _, stranger = signup(phone="9100000002")

    order = client.post("/api/orders", json=api_order(), headers=owner).json()["data"]

    assert client.get(f"/api/orders/{order['id']}", headers=stranger).status_code == 404


def test_update_status_and_track(client, signup):
    _, headers = signup()
    order = client.post("/api/orders", json=api_order(), headers=headers).json()["data"]

    updated = client.patch(
        f"/api/orders/{order['id']}/status",
        json={"status": "Out for Delivery"},
        headers=headers,
    )
    assert updated.status_code == 200

    tracking = client.get(f"/api/orders/{order['id']}/tracking", headers=headers).json()["data"]
    assert tracking["isPickedUp"] is True
    current = [s["stage"] for s in tracking["stages"] if s["isCurrent"]]
    assert current == ["Out for Delivery"]


def test_update_status_rejects_unknown_and_terminal(client, signup):
    _, headers = signup()
    order = client.post("/api/orders", json=api_order(), headers=headers).json()["data"]
    url = f"/api/orders/{order['id']}/status"

    assert client.patch(url, json={"status": "Lost"}, headers=headers).status_code == 400
    assert client.patch(url, json={"status": "Cancelled"}, headers=headers).status_code == 200
    assert client.patch(url, json={"status": "Delivered"}, headers=headers).status_code == 409
