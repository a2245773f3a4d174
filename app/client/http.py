import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from app.client.errors import ApiError, ConnectionTimeout, InvalidResponse, NetworkError
from app.config import settings

logger = logging.getLogger(__name__)


@dataclass
class ClientSession:
    """Token and signed-in user kept by the caller between requests."""

    token: Optional[str] = None
    user: Optional[dict] = field(default=None)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def clear(self):
        self.token = None
        self.user = None


class ApiClient:
    """
    Thin JSON client for the Taza API.

    Every call returns the ``data`` member of the ``{success, data}``
    envelope or raises one of the ``app.client.errors`` types.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[ClientSession] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.session = session or ClientSession()
        self.timeout = timeout if timeout is not None else settings.api_timeout_seconds
        self.http = http or requests.Session()

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    def request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[dict] = None,
        allow_unsuccessful: bool = False,
    ):
        """``allow_unsuccessful`` returns ``data`` of a 2xx ``success: false`` answer."""
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.http.request(
                method,
                url,
                headers=self._headers(),
                json=json,
                params=params,
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.warning(f"{method} {url} timed out after {self.timeout}s")
            raise ConnectionTimeout()
        except requests.ConnectionError:
            logger.warning(f"{method} {url} could not connect")
            raise NetworkError()

        try:
            body = response.json()
        except ValueError:
            raise InvalidResponse(status_code=response.status_code)

        if not isinstance(body, dict):
            raise InvalidResponse(status_code=response.status_code)

        ok = 200 <= response.status_code < 300

        if ok and allow_unsuccessful and "data" in body:
            return body.get("data")

        if not ok or not body.get("success"):
            error = body.get("error") or {}
            message = error.get("message") if isinstance(error, dict) else None
            raise ApiError(message or "API request failed", response.status_code)

        return body.get("data")

    def get(self, endpoint: str, params: Optional[dict] = None):
        return self.request("GET", endpoint, params=params)

    def post(self, endpoint: str, body: Any = None):
        return self.request("POST", endpoint, json=body)

    def patch(self, endpoint: str, body: Any = None):
        return self.request("PATCH", endpoint, json=body)

    def delete(self, endpoint: str):
        return self.request("DELETE", endpoint)
