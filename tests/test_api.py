from grocery_cart.utils.settings import GUEST_SESSION_COOKIE


def test_new_guest_gets_session_cookie(client):
    resp = client.get("/cart")

    assert resp.status_code == 200
    token = resp.cookies.get(GUEST_SESSION_COOKIE)
    assert token
    assert resp.json()["cart"]["id"] == f"guest:{token}"


def test_user_cart_via_header(client):
    resp = client.get("/cart", headers={"X-User-Id": "u-7"})

    assert resp.status_code == 200
    assert resp.json()["cart"]["user_id"] == "u-7"
    assert GUEST_SESSION_COOKIE not in resp.cookies


def test_add_update_remove_flow(client):
    headers = {"X-User-Id": "u-7"}

    added = client.post(
        "/cart/items",
        json={"product_id": "brown-eggs", "quantity": 2, "order_type": "group", "group_order_id": "go-1"},
        headers=headers,
    )
    assert added.status_code == 200
    cart = added.json()["cart"]
    assert cart["total_items"] == 2
    item_id = cart["items"][0]["id"]

    updated = client.patch(f"/cart/items/{item_id}", json={"quantity": 4}, headers=headers)
    assert updated.json()["cart"]["items"][0]["quantity"] == 4

    removed = client.delete(f"/cart/items/{item_id}", headers=headers)
    assert removed.json()["cart"]["items"] == []


def test_policy_rejection_has_structured_detail(client):
    resp = client.post(
        "/cart/items",
        json={"product_id": "toned-milk", "quantity": 9, "order_type": "priority"},
        headers={"X-User-Id": "u-7"},
    )

    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["reason"] == "ABOVE_MAXIMUM"
    assert detail["limit"] == 5
    assert detail["difference"] == 4


def test_group_order_id_is_required_for_group_lines(client):
    resp = client.post(
        "/cart/items",
        json={"product_id": "brown-eggs", "quantity": 1, "order_type": "group"},
        headers={"X-User-Id": "u-7"},
    )
    assert resp.status_code == 422


def test_unknown_item_is_404(client):
    resp = client.patch("/cart/items/missing", json={"quantity": 1}, headers={"X-User-Id": "u-7"})

    assert resp.status_code == 404
    assert resp.json()["detail"]["reason"] == "ITEM_NOT_FOUND"


def test_mutation_without_identity_is_400(client):
    resp = client.delete("/cart")
    assert resp.status_code == 400


def test_clear_cart(client):
    headers = {"X-User-Id": "u-7"}
    client.post("/cart/items", json={"product_id": "basmati-rice", "quantity": 1, "order_type": "priority"}, headers=headers)

    resp = client.delete("/cart", headers=headers)

    assert resp.status_code == 200
    assert resp.json()["cart"]["total_amount"] == "0.00"


def test_merge_after_login(client):
    guest = client.post("/cart/items", json={"product_id": "basmati-rice", "quantity": 2, "order_type": "priority"})
    token = guest.cookies.get(GUEST_SESSION_COOKIE)

    merged = client.post("/cart/merge", json={"session_token": token}, headers={"X-User-Id": "u-7"})

    assert merged.status_code == 200
    assert merged.json()["cart"]["id"] == "user:u-7"
    assert merged.json()["cart"]["items"][0]["quantity"] == 2

    again = client.post("/cart/merge", json={"session_token": token}, headers={"X-User-Id": "u-7"})
    assert again.json()["cart"]["items"][0]["quantity"] == 2


def test_merge_requires_login(client):
    resp = client.post("/cart/merge", json={"session_token": "tok"})
    assert resp.status_code == 401


def test_store_outage_is_generic_503(client, monkeypatch):
    from grocery_cart.domain.errors import DurableStoreUnavailable
    from grocery_cart.services.cart_store import CartStore

    def broken(self, *args, **kwargs):
        raise DurableStoreUnavailable("db down")

    monkeypatch.setattr(CartStore, "load_or_create", broken)

    resp = client.get("/cart", headers={"X-User-Id": "u-7"})

    assert resp.status_code == 503
    assert "retry" in resp.json()["detail"]


def test_health_reports_degraded_without_redis(client, fake_redis):
    assert client.get("/health").json()["status"] == "ok"

    fake_redis.down = True
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "degraded", "database": "up", "redis": "down"}
