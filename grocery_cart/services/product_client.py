# grocery_cart/services/product_client.py
import requests

from grocery_cart.domain.schemas import Product
from grocery_cart.utils.retry import http_retry
from grocery_cart.utils.settings import CATALOG_SERVICE_URL
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    def __init__(self, base_url: str | None = None, timeout: int = 2, session: requests.Session | None = None):
        self.base_url = (base_url or CATALOG_SERVICE_URL).rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    @http_retry()
    def fetch_product(self, product_id: str) -> Product | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = self.http.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return Product.model_validate(resp.json())
