# grocery_cart/services/cart_service.py
from typing import Callable

from sqlalchemy.orm import Session

from grocery_cart.domain import policy
from grocery_cart.domain.identity import CartIdentity, GuestIdentity, UserIdentity, resolve_identity
from grocery_cart.domain.errors import InvalidIdentity
from grocery_cart.domain.schemas import Cart, CartItem, CartResult, OrderType, Product, Rejection
from grocery_cart.repos.cart_repo import CartRepo
from grocery_cart.services.cart_cache import CartCache
from grocery_cart.services.cart_merge import CartMerger, new_item_id
from grocery_cart.services.cart_store import CartStore
from grocery_cart.services.group_order_client import GroupOrderClient
from grocery_cart.services.product_client import ProductClient
from grocery_cart.utils.retry import conflict_retry
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)

Change = Callable[[Cart], Rejection | None]


class CartService:
    """
    Use case'y koszyka (gosc albo uzytkownik).
    Kazda mutacja: odczyt (cache -> baza) -> zmiana w pamieci -> walidacja
    -> przeliczenie sum -> zapis do bazy i cache.
    Konflikt wersji powtarza caly read-modify-write (conflict_retry).
    Odrzucenia (limity, brak pozycji) zwracane jako CartResult.rejection, nie wyjatki.
    """

    def __init__(
        self,
        db: Session,
        cache: CartCache,
        product_client: ProductClient,
        group_order_client: GroupOrderClient,
    ):
        self.store = CartStore(CartRepo(db), cache)
        self.product_client = product_client
        self.group_order_client = group_order_client
        self.merger = CartMerger(self.store, product_client)

    #query
    @conflict_retry()
    def get_or_create_cart(self, identity: CartIdentity) -> Cart:
        return self.store.load_or_create(identity)

    #commands
    @conflict_retry()
    def _mutate(self, identity: CartIdentity, change: Change) -> CartResult:
        cart = self.store.load_or_create(identity)

        rejection = change(cart)
        if rejection is not None:
            logger.info(f"Odrzucono zmiane koszyka {cart.id}: {rejection.reason.value}")
            return CartResult(cart=cart, rejection=rejection)

        return CartResult(cart=self.store.commit(cart))

    def add_item(
        self,
        identity: CartIdentity,
        product_id: str,
        quantity: int,
        order_type: OrderType | str,
        group_order_id: str | None = None,
    ) -> CartResult:
        order_type = OrderType(order_type)
        if order_type == OrderType.PRIORITY:
            group_order_id = None

        def change(cart: Cart) -> Rejection | None:
            if order_type == OrderType.GROUP and not group_order_id:
                return policy.group_order_required(product_id)

            product = self.product_client.fetch_product(product_id)
            if product is None:
                return policy.product_not_found(product_id)

            line = cart.find_line((product_id, order_type, group_order_id))
            resulting = quantity if line is None or quantity <= 0 else line.quantity + quantity

            # ta sama pozycja - sprawdzamy ilosc po zsumowaniu
            rejection = policy.validate(product, resulting)
            if rejection is not None:
                return rejection

            if line is not None:
                logger.info(
                    f"Produkt {product_id} juz jest w koszyku {cart.id}, zwiekszam ilosc "
                    f"z {line.quantity} do {resulting}"
                )
                line.quantity = resulting
            else:
                logger.info(f"Dodaje nowy produkt {product_id} ({order_type.value}) do koszyka {cart.id}")
                cart.items.append(self._new_item(product, quantity, order_type, group_order_id))
            return None

        return self._mutate(identity, change)

    def update_item_quantity(self, identity: CartIdentity, item_id: str, new_quantity: int) -> CartResult:
        def change(cart: Cart) -> Rejection | None:
            item = cart.find_item(item_id)
            if item is None:
                return policy.item_not_found(item_id)

            if new_quantity == 0:
                logger.info(f"Ilosc 0 - usuwam pozycje {item_id} z koszyka {cart.id}")
                cart.items.remove(item)
                return None

            # limity z katalogu sprawdzane przy kazdej zmianie, nie tylko przy dodaniu
            product = self.product_client.fetch_product(item.product_id)
            if product is None:
                return policy.product_not_found(item.product_id)

            rejection = policy.validate(product, new_quantity)
            if rejection is not None:
                rejection.item_id = item_id
                return rejection

            logger.info(f"Pozycja {item_id} w koszyku {cart.id}: ilosc {item.quantity} -> {new_quantity}")
            item.quantity = new_quantity
            return None

        return self._mutate(identity, change)

    def remove_item(self, identity: CartIdentity, item_id: str) -> CartResult:
        def change(cart: Cart) -> Rejection | None:
            item = cart.find_item(item_id)
            if item is None:
                return policy.item_not_found(item_id)

            logger.info(f"Usuwanie pozycji {item_id} (produkt {item.product_id}) z koszyka {cart.id}")
            cart.items.remove(item)
            return None

        return self._mutate(identity, change)

    def clear_cart(self, identity: CartIdentity) -> Cart:
        def change(cart: Cart) -> Rejection | None:
            logger.info(f"Czyszczenie koszyka {cart.id} ({len(cart.items)} pozycji)")
            cart.items = []
            return None

        return self._mutate(identity, change).cart

    @conflict_retry()
    def merge_guest_into_user(self, guest_token: str, user_id: str) -> CartResult:
        guest = resolve_identity(session_token=guest_token)
        user = resolve_identity(user_id=user_id)
        if not isinstance(guest, GuestIdentity) or not isinstance(user, UserIdentity):
            raise InvalidIdentity("Merge requires a guest session token and a user id")

        return self.merger.merge(guest, user)

    def _new_item(
        self,
        product: Product,
        quantity: int,
        order_type: OrderType,
        group_order_id: str | None,
    ) -> CartItem:
        # termin zamowienia grupowego kopiowany raz, przy dodaniu
        expires_at = self.group_order_client.get_expiry(group_order_id) if group_order_id else None

        return CartItem(
            id=new_item_id(),
            product_id=product.id,
            name=product.name,
            slug=product.slug,
            image_url=product.image_url,
            unit=product.unit,
            unit_size=product.unit_size,
            category_id=product.category_id,
            category_name=product.category_name,
            mrp=product.mrp,
            selling_price=product.mrp if order_type == OrderType.PRIORITY else product.selling_price,
            quantity=quantity,
            min_order_qty=product.min_order_qty,
            max_order_qty=product.max_order_qty,
            order_type=order_type,
            group_order_id=group_order_id,
            expires_at=expires_at,
        )


def build_cart_service(db: Session) -> CartService:
    return CartService(
        db=db,
        cache=CartCache(),
        product_client=ProductClient(),
        group_order_client=GroupOrderClient(),
    )
