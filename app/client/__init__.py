from .api import (
    AddonsApi,
    AuthApi,
    CouponsApi,
    OrdersApi,
    PaymentMethodsApi,
    ProductsApi,
    ShopsApi,
    UsersApi,
)
from .errors import ApiError, ConnectionTimeout, InvalidResponse, NetworkError
from .http import ApiClient, ClientSession

__all__ = [
    "AddonsApi",
    "ApiClient",
    "ApiError",
    "AuthApi",
    "ClientSession",
    "ConnectionTimeout",
    "CouponsApi",
    "InvalidResponse",
    "NetworkError",
    "OrdersApi",
    "PaymentMethodsApi",
    "ProductsApi",
    "ShopsApi",
    "UsersApi",
]
