# grocery_cart/services/cart_store.py
from datetime import datetime, timezone

from grocery_cart.domain.errors import CartVersionConflict
from grocery_cart.domain.identity import CartIdentity, UserIdentity
from grocery_cart.domain.schemas import Cart
from grocery_cart.domain.totals import apply_totals
from grocery_cart.repos.cart_repo import CartRepo
from grocery_cart.services.cart_cache import CartCache
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)


def new_cart(identity: CartIdentity) -> Cart:
    now = datetime.now(timezone.utc)
    if isinstance(identity, UserIdentity):
        return Cart(id=identity.cart_id, user_id=identity.user_id, created_at=now, updated_at=now)
    return Cart(id=identity.cart_id, session_token=identity.session_token, created_at=now, updated_at=now)


class CartStore:
    """
    Cache-aside nad redisem i baza:
    odczyt -> cache -> [miss] baza -> wpisanie do cache jesli nikt nie zdazyl (NX)
    zapis -> baza (musi sie udac) -> cache (best effort)
    """

    def __init__(self, repo: CartRepo, cache: CartCache):
        self.repo = repo
        self.cache = cache

    def load(self, identity: CartIdentity, use_cache: bool = True) -> Cart | None:
        if use_cache:
            cached = self.cache.get(identity.cart_id)
            if cached is not None:
                return cached

        cart = self.repo.load_by_identity(identity)
        if cart is not None:
            logger.info(f"Cache miss dla {identity.cart_id}, koszyk odczytany z bazy")
            self.cache.fill(cart.id, cart)
        return cart

    def load_or_create(self, identity: CartIdentity, use_cache: bool = True) -> Cart:
        cart = self.load(identity, use_cache=use_cache)
        if cart is not None:
            return cart

        # pusty koszyk zapisany od razu
        cart = self.commit(new_cart(identity))
        logger.info(f"Utworzono nowy koszyk {cart.id}")
        return cart

    def commit(self, cart: Cart, discard: CartIdentity | None = None) -> Cart:
        """
        Jedyna droga zapisu: sumy przeliczane w tym samym kroku co zapis.
        Bez udanego zapisu w bazie nie ma sukcesu (cache nigdy nie jest jedynym zapisem).
        """
        apply_totals(cart)
        cart.updated_at = datetime.now(timezone.utc)

        try:
            self.repo.upsert(cart, discard=discard)
        except CartVersionConflict:
            #nieaktualny wpis w cache - nastepna proba czyta z bazy
            self.cache.delete(cart.id)
            raise

        if discard is not None:
            self.cache.delete(discard.cart_id)
        if not self.cache.put(cart.id, cart):
            #wpis moze byc starszy niz baza
            self.cache.delete(cart.id)
        return cart

    def discard(self, identity: CartIdentity) -> bool:
        # najpierw cache, zeby stary wpis nie ozyl po usunieciu z bazy
        self.cache.delete(identity.cart_id)
        return self.repo.delete_by_identity(identity)
