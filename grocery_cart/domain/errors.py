# grocery_cart/domain/errors.py


class CartServiceError(Exception):
    """Bazowy wyjatek serwisu koszyka."""


class InvalidIdentity(CartServiceError):
    """Brak user id i tokenu sesji - nie da sie ustalic koszyka."""


class DurableStoreUnavailable(CartServiceError):
    """
    Baza (system of record) nie przyjela zapisu lub odczytu.
    Mutacja nie moze zostac uznana za trwala, wiec cala operacja sie nie udaje.
    """


class CartVersionConflict(CartServiceError):
    def __init__(self, cart_id: str, expected_version: int):
        super().__init__(
            f"Konflikt wspolbieznosci - koszyk {cart_id} zostal zmodyfikowany "
            f"(oczekiwana wersja {expected_version})"
        )
        self.cart_id = cart_id
        self.expected_version = expected_version
