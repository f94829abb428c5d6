# grocery_cart/services/cart_cache.py
import redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from grocery_cart.domain.schemas import Cart
from grocery_cart.utils.settings import REDIS_URL, CART_TTL_SECONDS, CART_KEY_PREFIX
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)

#LUA zapisz tylko nowsza wersje tego samego koszyka, atomowo
#inny created_at = koszyk utworzony od nowa, wersje liczone od zera
_PUT_NEWER_LUA = """
local current = redis.call('GET', KEYS[1])
if current then
    local ok, cached = pcall(cjson.decode, current)
    local incoming = cjson.decode(ARGV[1])
    if ok and type(cached) == 'table' and cached['created_at'] == incoming['created_at']
        and tonumber(cached['version']) and tonumber(cached['version']) >= tonumber(incoming['version']) then
        return 0
    end
end
redis.call('SET', KEYS[1], ARGV[1], 'EX', ARGV[2])
return 1
"""


class CartCache:
    """
    Cache-aside dla koszykow w redisie
    -get: miss (None) nie jest bledem, wolajacy idzie do bazy
    -put: po zapisie w bazie, nigdy nie cofa wpisu do starszej wersji
    -fill: po odczycie z bazy, tylko gdy klucza nie ma (NX)
    -kazdy blad redisa jest logowany i polykany, baza jest zrodlem prawdy
    """

    def __init__(
        self,
        client: redis.Redis | None = None,
        url: str | None = None,
        ttl: int = CART_TTL_SECONDS,
        prefix: str = CART_KEY_PREFIX,
    ):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
            socket_timeout=1,
            socket_connect_timeout=1,
        )
        self.ttl = ttl
        self.prefix = prefix

    def _key(self, cart_id: str) -> str:
        #cart:user:42 / cart:guest:abc
        return f"{self.prefix}{cart_id}"

    def get(self, cart_id: str) -> Cart | None:
        try:
            raw = self.redis.get(self._key(cart_id))
        except RedisError as e:
            logger.warning(f"Cache niedostepny przy odczycie {cart_id}, traktuje jako miss: {e}")
            return None

        if raw is None:
            return None

        try:
            return Cart.model_validate_json(raw)
        except ValidationError as e:
            #uszkodzony wpis - usun, nastepny odczyt z bazy go odtworzy
            logger.warning(f"Niepoprawny wpis w cache dla {cart_id}: {e}")
            self.delete(cart_id)
            return None

    def put(self, cart_id: str, cart: Cart, ttl: int | None = None) -> bool:
        """
        Zapis po commicie w bazie. Starsza wersja nie nadpisuje nowszej.
        False tylko gdy redis niedostepny - wpis moze byc wtedy nieaktualny.
        """
        try:
            written = self.redis.eval(
                _PUT_NEWER_LUA, 1, self._key(cart_id), cart.model_dump_json(), ttl or self.ttl
            )
        except RedisError as e:
            logger.warning(f"Nie udalo sie zapisac koszyka {cart_id} w cache: {e}")
            return False

        if not written:
            logger.info(f"Cache ma juz wersje >= {cart.version} dla {cart_id}, pomijam zapis")
        return True

    def fill(self, cart_id: str, cart: Cart, ttl: int | None = None) -> bool:
        #SET cart:user:42 {...} NX EX 604800
        try:
            return bool(
                self.redis.set(self._key(cart_id), cart.model_dump_json(), nx=True, ex=ttl or self.ttl)
            )
        except RedisError as e:
            logger.warning(f"Nie udalo sie wpisac koszyka {cart_id} do cache: {e}")
            return False

    def delete(self, cart_id: str) -> bool:
        try:
            self.redis.delete(self._key(cart_id))
            return True
        except RedisError as e:
            logger.warning(f"Nie udalo sie usunac koszyka {cart_id} z cache: {e}")
            return False

    def ping(self) -> bool:
        try:
            return bool(self.redis.ping())
        except RedisError as e:
            logger.warning(f"Redis niedostepny: {e}")
            return False
