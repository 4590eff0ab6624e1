import logging

import requests

from .config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A failed API call. ``message`` is the server's error text, verbatim."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SeruClient:
    """
    Thin client for the JSON API.

    ``session`` defaults to a ``requests.Session`` so the login cookie is kept
    between calls; anything with the same ``request()`` signature works.
    """

    def __init__(self, base_url: str | None = None, session=None, timeout: float | None = None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout or settings.API_TIMEOUT_SECONDS

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise ApiError(f"Network error: {e}") from e
        try:
            data = response.json()
        except ValueError:
            raise ApiError("Server error: Invalid JSON response", response.status_code)
        if response.status_code >= 400:
            message = data.get("error") if isinstance(data, dict) else None
            raise ApiError(message or "Request failed", response.status_code)
        return data

    # Auth
    def login(self, email: str, password: str) -> dict:
        return self._request("POST", "/auth/login", json={"email": email, "password": password})["data"]["user"]

    def admin_login(self, admin_name: str, password: str) -> dict:
        return self._request("POST", "/auth/admin_login", json={"admin_name": admin_name, "password": password})["data"]["admin"]

    def logout(self):
        self._request("POST", "/auth/logout")

    # Rooms
    def list_rooms(self) -> list[dict]:
        return self._request("GET", "/rooms").get("data", [])

    # Bookings
    def create_booking(self, payload: dict) -> dict:
        return self._request("POST", "/bookings", json=payload)["data"]

    def get_booking(self, booking_id: int) -> dict:
        return self._request("GET", "/bookings", params={"action": "get_booking", "id": booking_id})["data"]

    def user_bookings(self, user_id: int) -> list[dict]:
        return self._request("GET", "/bookings", params={"action": "user_bookings", "user_id": user_id}).get("data", [])

    def update_booking_status(self, booking_id: int, status: str) -> dict:
        return self._request("PUT", "/bookings", params={"id": booking_id}, json={"status": status})

    def delete_booking(self, booking_id: int) -> dict:
        return self._request("DELETE", "/bookings", params={"id": booking_id})
