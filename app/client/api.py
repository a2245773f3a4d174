from typing import List, Optional

from app.client.http import ApiClient


class _Resource:
    def __init__(self, client: ApiClient):
        self.client = client


# -------- auth --------

class AuthApi(_Resource):
    def _remember(self, data: dict) -> dict:
        self.client.session.token = data.get("token")
        self.client.session.user = data.get("user")
        return data

    def sign_in(self, phone_or_email: str, password: str) -> dict:
        payload = {"password": password}
        if "@" in phone_or_email:
            payload["email"] = phone_or_email
        else:
            payload["phone"] = phone_or_email
        return self._remember(self.client.post("/auth/signin", payload))

    def sign_up(self, payload: dict) -> dict:
        return self._remember(self.client.post("/auth/signup", payload))

    def verify_token(self) -> dict:
        return self.client.get("/auth/verify")

    def sign_out(self):
        try:
            self.client.post("/auth/signout")
        finally:
            self.client.session.clear()

    def check_phone(self, phone: str) -> bool:
        return self.client.post("/auth/check-phone", {"phone": phone})["exists"]

    def send_password_reset_otp(self, phone: str) -> dict:
        return self.client.post("/auth/forgot-password", {"phone": phone})

    def verify_password_reset_otp(self, phone: str, otp: str) -> dict:
        return self.client.post("/auth/verify-reset-otp", {"phone": phone, "otp": otp})

    def reset_password(self, phone: str, new_password: str) -> dict:
        return self.client.post(
            "/auth/reset-password", {"phone": phone, "newPassword": new_password}
        )


# -------- orders --------

class OrdersApi(_Resource):
    def get_orders(self) -> List[dict]:
        return self.client.get("/orders")

    def get_order(self, order_id: int) -> dict:
        return self.client.get(f"/orders/{order_id}")

    def get_tracking(self, order_id: int) -> dict:
        return self.client.get(f"/orders/{order_id}/tracking")

    def create_order(self, payload: dict) -> dict:
        return self.client.post("/orders", payload)

    def update_status(self, order_id: int, status: str, status_note: Optional[str] = None) -> dict:
        body = {"status": status}
        if status_note:
            body["statusNote"] = status_note
        return self.client.patch(f"/orders/{order_id}/status", body)


# -------- coupons --------

class CouponsApi(_Resource):
    def validate(self, code: str, order_amount: float) -> dict:
        # a rejected code still carries {valid, discount, error}
        return self.client.request(
            "POST",
            "/coupons/validate",
            json={"code": code, "orderAmount": order_amount},
            allow_unsuccessful=True,
        )

    def apply(self, coupon_id: int) -> dict:
        return self.client.post(f"/coupons/{coupon_id}/apply", {})


# -------- users --------

class UsersApi(_Resource):
    def get_profile(self) -> dict:
        return self.client.get("/users/profile")

    def update_profile(self, changes: dict) -> dict:
        return self.client.patch("/users/profile", changes)

    def get_addresses(self) -> List[dict]:
        return self.client.get("/users/addresses")

    def add_address(self, address: dict) -> dict:
        return self.client.post("/users/addresses", address)

    def update_address(self, address_id: int, changes: dict) -> dict:
        return self.client.patch(f"/users/addresses/{address_id}", changes)

    def delete_address(self, address_id: int) -> dict:
        return self.client.delete(f"/users/addresses/{address_id}")

    def set_default_address(self, address_id: int) -> dict:
        return self.client.patch(f"/users/addresses/{address_id}/default")


# -------- catalogue --------

class ShopsApi(_Resource):
    def get_shops(self, lat: Optional[float] = None, lon: Optional[float] = None) -> List[dict]:
        params = None
        if lat is not None and lon is not None:
            params = {"lat": lat, "lon": lon}
        return self.client.get("/shops", params=params)

    def get_shop(self, shop_id: int) -> dict:
        return self.client.get(f"/shops/{shop_id}")


class ProductsApi(_Resource):
    def get_products(
        self,
        category: Optional[str] = None,
        shop_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[dict]:
        params = {}
        if category:
            params["category"] = category
        if shop_id is not None:
            params["shopId"] = shop_id
        if search:
            params["search"] = search
        return self.client.get("/products", params=params or None)

    def get_by_category(self, category: str) -> List[dict]:
        return self.client.get(f"/products/category/{category}")

    def get_product(self, product_id: int) -> dict:
        return self.client.get(f"/products/{product_id}")


class AddonsApi(_Resource):
    def get_addons(self) -> List[dict]:
        return self.client.get("/addons")

    def get_addon(self, addon_id: int) -> dict:
        return self.client.get(f"/addons/{addon_id}")


# -------- payment methods --------

class PaymentMethodsApi(_Resource):
    def get_payment_methods(self) -> List[dict]:
        return self.client.get("/payment-methods")

    def create_payment_method(self, payload: dict) -> dict:
        return self.client.post("/payment-methods", payload)

    def delete_payment_method(self, method_id: int) -> dict:
        return self.client.delete(f"/payment-methods/{method_id}")

    def set_default(self, method_id: int) -> dict:
        return self.client.patch(f"/payment-methods/{method_id}/set-default")
