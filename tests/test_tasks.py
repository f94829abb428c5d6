from datetime import datetime, timedelta, timezone

from grocery_cart.domain.identity import GuestIdentity
from grocery_cart.domain.schemas import OrderType
from grocery_cart.services.cart_service import CartService
from grocery_cart.tasks import checkout, purge


def test_checkout_task_clears_user_cart(monkeypatch, session_factory, cache, catalog, group_orders, service, repo, user):
    service.add_item(user, "basmati-rice", 2, OrderType.PRIORITY)
    monkeypatch.setattr(checkout, "SessionLocal", session_factory)
    monkeypatch.setattr(
        checkout,
        "build_cart_service",
        lambda db: CartService(db=db, cache=cache, product_client=catalog, group_order_client=group_orders),
    )

    result = checkout.clear_cart_after_checkout_task("u-42")

    assert result == {"cart_id": "user:u-42", "total_items": 0}
    assert repo.load_by_identity(user).items == []


def test_purge_task_removes_stale_guest_carts(monkeypatch, session_factory, service, repo):
    stale = GuestIdentity(session_token="old")
    cart = service.add_item(stale, "basmati-rice", 1, OrderType.PRIORITY).cart
    cart.updated_at = datetime.now(timezone.utc) - timedelta(days=30)
    repo.upsert(cart)
    monkeypatch.setattr(purge, "SessionLocal", session_factory)

    assert purge.purge_guest_carts_task() == {"removed": 1}
    assert repo.load_by_identity(stale) is None
