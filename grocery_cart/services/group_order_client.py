# grocery_cart/services/group_order_client.py
from datetime import datetime

import requests

from grocery_cart.utils.retry import http_retry
from grocery_cart.utils.settings import GROUP_ORDER_SERVICE_URL
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)


class GroupOrderClient:
    """Termin zamkniecia zamowienia grupowego - uzywany tylko przy dodaniu pozycji."""

    def __init__(self, base_url: str | None = None, timeout: int = 2, session: requests.Session | None = None):
        self.base_url = (base_url or GROUP_ORDER_SERVICE_URL).rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    @http_retry()
    def get_expiry(self, group_order_id: str) -> datetime | None:
        url = f"{self.base_url}/group-orders/{group_order_id}"
        logger.info(f"GroupOrderClient GET {url}")

        resp = self.http.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()

        expires_at = resp.json().get("expiresAt")
        return datetime.fromisoformat(expires_at.replace("Z", "+00:00")) if expires_at else None
