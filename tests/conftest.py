import json
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timezone
from decimal import Decimal

import pytest
import redis
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from grocery_cart.api import create_app
from grocery_cart.api.dependencies import get_cache, get_group_order_client, get_product_client
from grocery_cart.data.database import Base, get_db
from grocery_cart.data.models import CartModel, CartItemModel  # noqa: F401
from grocery_cart.domain.identity import GuestIdentity, UserIdentity
from grocery_cart.domain.schemas import Product
from grocery_cart.repos.cart_repo import CartRepo
from grocery_cart.services.cart_cache import CartCache
from grocery_cart.services.cart_service import CartService

GROUP_DEADLINE = datetime(2026, 11, 1, 18, 0, tzinfo=timezone.utc)


class FakeRedis:
    """Redis w pamieci - get/set/eval/delete/ping, z przelacznikiem awarii."""

    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.down = False

    def _check(self):
        if self.down:
            raise redis.exceptions.ConnectionError("redis is down")

    def get(self, key):
        self._check()
        return self.store.get(key)

    def set(self, name, value, nx=False, ex=None):
        self._check()
        if nx and name in self.store:
            return None
        self.store[name] = value
        self.ttls[name] = ex
        return True

    def eval(self, script, numkeys, key, payload, ttl):
        #to samo co skrypt zapisu wersji w CartCache
        self._check()
        current = self.store.get(key)
        if current is not None:
            incoming = json.loads(payload)
            try:
                cached = json.loads(current)
            except ValueError:
                cached = None
            if (
                isinstance(cached, dict)
                and cached.get("created_at") == incoming["created_at"]
                and cached.get("version", -1) >= incoming["version"]
            ):
                return 0
        self.set(key, payload, ex=ttl)
        return 1

    def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            removed += int(self.store.pop(key, None) is not None)
            self.ttls.pop(key, None)
        return removed

    def ping(self):
        self._check()
        return True


class FakeCatalog:
    def __init__(self, products):
        self.products = {p.id: p for p in products}
        self.calls = []
        self.on_fetch = None

    def fetch_product(self, product_id):
        self.calls.append(product_id)
        if self.on_fetch is not None:
            hook, self.on_fetch = self.on_fetch, None
            hook()
        return self.products.get(product_id)

    def update(self, product_id, **changes):
        self.products[product_id] = self.products[product_id].model_copy(update=changes)


class FakeGroupOrders:
    def __init__(self, deadlines):
        self.deadlines = deadlines

    def get_expiry(self, group_order_id):
        return self.deadlines.get(group_order_id)


def make_product(product_id, mrp, selling_price, min_qty=1, max_qty=None, active=True):
    return Product(
        id=product_id,
        name=product_id.replace("-", " ").title(),
        slug=product_id,
        image_url=f"https://img.example.com/{product_id}.jpg",
        unit="kg",
        unit_size=Decimal("1"),
        mrp=Decimal(mrp),
        selling_price=Decimal(selling_price),
        min_order_qty=min_qty,
        max_order_qty=max_qty,
        category_id="cat-staples",
        category_name="Staples",
        is_active=active,
    )


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return CartCache(client=fake_redis)


@pytest.fixture
def catalog():
    return FakeCatalog(
        [
            make_product("basmati-rice", "100.00", "80.00"),
            make_product("toned-milk", "45.50", "40.00", min_qty=2, max_qty=5),
            make_product("brown-eggs", "12.00", "10.00", max_qty=6),
            make_product("mustard-oil", "210.00", "190.00", active=False),
        ]
    )


@pytest.fixture
def group_orders():
    return FakeGroupOrders({"go-1": GROUP_DEADLINE})


@pytest.fixture
def repo(db):
    return CartRepo(db)


@pytest.fixture
def service(db, cache, catalog, group_orders):
    return CartService(db=db, cache=cache, product_client=catalog, group_order_client=group_orders)


@pytest.fixture
def make_service(session_factory, cache, catalog, group_orders):
    """Osobne sesje bazy (dwa rownolegle requesty) na tym samym cache i bazie."""
    sessions = []

    def _make():
        session = session_factory()
        sessions.append(session)
        return CartService(db=session, cache=cache, product_client=catalog, group_order_client=group_orders)

    yield _make
    for session in sessions:
        session.close()


@pytest.fixture
def user():
    return UserIdentity(user_id="u-42")


@pytest.fixture
def guest():
    return GuestIdentity(session_token="tok-abc")


@pytest.fixture
def client(session_factory, cache, catalog, group_orders):
    app = create_app()

    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_product_client] = lambda: catalog
    app.dependency_overrides[get_group_order_client] = lambda: group_orders

    with TestClient(app) as test_client:
        yield test_client
