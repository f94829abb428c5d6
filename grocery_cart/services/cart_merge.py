# grocery_cart/services/cart_merge.py
import uuid
from typing import Dict, List

from grocery_cart.domain.identity import GuestIdentity, UserIdentity
from grocery_cart.domain.schemas import CartItem, CartResult, MergeWarning
from grocery_cart.services.cart_store import CartStore
from grocery_cart.services.product_client import ProductClient
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)


def new_item_id() -> str:
    return uuid.uuid4().hex


class CartMerger:
    """
    Laczenie koszyka goscia z koszykiem uzytkownika po zalogowaniu.

    1. koszyk goscia z bazy (brak = pusty)
    2. koszyk uzytkownika (albo nowy)
    3. pozycje o tym samym kluczu (product_id, order_type, group_order_id) sumowane,
       suma obcinana do max_order_qty z ostrzezeniem; reszta kopiowana z nowym id
    4-6. przeliczenie sum, zapis uzytkownika i usuniecie goscia w jednej transakcji

    Drugie wywolanie z tym samym tokenem nic nie robi - koszyka goscia juz nie ma.
    """

    def __init__(self, store: CartStore, product_client: ProductClient):
        self.store = store
        self.product_client = product_client

    def merge(self, guest: GuestIdentity, user: UserIdentity) -> CartResult:
        # baza jest autorytatywna, stary wpis w cache nie moze zdublowac pozycji
        guest_cart = self.store.load(guest, use_cache=False)

        if guest_cart is None or not guest_cart.items:
            if guest_cart is not None:
                self.store.discard(guest)
            logger.info(f"Brak pozycji do przeniesienia z {guest.cart_id}")
            return CartResult(cart=self.store.load_or_create(user))

        user_cart = self.store.load_or_create(user, use_cache=False)
        limits: Dict[str, int | None] = {}
        warnings: List[MergeWarning] = []

        for guest_item in guest_cart.items:
            line = user_cart.find_line(guest_item.identity_key)
            if line is None:
                line = guest_item.model_copy(update={"id": new_item_id()})
                user_cart.items.append(line)
            else:
                line.quantity += guest_item.quantity

            warning = self._clamp(line, limits)
            if warning is not None:
                warnings.append(warning)

        self.store.commit(user_cart, discard=guest)

        logger.info(
            f"Przeniesiono {len(guest_cart.items)} pozycji z {guest.cart_id} do {user.cart_id}"
            + (f", obcieto {len(warnings)}" if warnings else "")
        )
        return CartResult(cart=user_cart, warnings=warnings)

    def _max_for(self, item: CartItem, limits: Dict[str, int | None]) -> int | None:
        if item.product_id not in limits:
            product = self.product_client.fetch_product(item.product_id)
            #produkt zniknal z katalogu - zostaje limit z chwili dodania
            limits[item.product_id] = product.max_order_qty if product else item.max_order_qty
        return limits[item.product_id]

    def _clamp(self, line: CartItem, limits: Dict[str, int | None]) -> MergeWarning | None:
        maximum = self._max_for(line, limits)
        if maximum is None or line.quantity <= maximum:
            return None

        requested = line.quantity
        line.quantity = maximum
        logger.warning(f"Merge: ilosc {requested} produktu {line.product_id} obcieta do {maximum}")
        return MergeWarning(
            product_id=line.product_id,
            order_type=line.order_type,
            group_order_id=line.group_order_id,
            requested=requested,
            clamped_to=maximum,
            message=f"Quantity reduced from {requested} to the maximum of {maximum}",
        )
