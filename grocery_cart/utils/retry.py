# grocery_cart/utils/retry.py
import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from grocery_cart.domain.errors import CartVersionConflict
from grocery_cart.utils.settings import CART_WRITE_ATTEMPTS


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
    )


def conflict_retry():
    #optimistic locking - powtorz caly read-modify-write po konflikcie wersji
    return retry(
        reraise=True,
        stop=stop_after_attempt(CART_WRITE_ATTEMPTS),
        retry=retry_if_exception_type(CartVersionConflict),
    )
