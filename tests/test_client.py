from decimal import Decimal

import httpx
import pytest

from storefront.client import (
    ApiClient,
    ApiRequestError,
    AuthContext,
    CartContext,
    FetchResult,
    JsonFileSessionStore,
    MemorySessionStore,
    SearchContext,
    use_category,
)
from storefront.client.cart import clean_items, format_usd, remove_first


def snapshot(pid, price):
    return {"_id": pid, "name": pid, "price": price}


def test_memory_store_round_trip():
    store = MemorySessionStore()
    assert store.load() is None
    store.save({"token": "t"})
    assert store.load() == {"token": "t"}
    store.clear()
    assert store.load() is None


def test_memory_store_rejects_non_json():
    with pytest.raises(TypeError):
        MemorySessionStore().save({"price": Decimal("1.00")})


def test_file_store_shares_one_file(tmp_path):
    path = str(tmp_path / "session.json")
    auth = JsonFileSessionStore(path, "auth")
    cart = JsonFileSessionStore(path, "cart")
    auth.save({"token": "t"})
    cart.save([snapshot("a", "1.00")])
    assert JsonFileSessionStore(path, "auth").load() == {"token": "t"}
    cart.clear()
    assert cart.load() is None
    assert auth.load() == {"token": "t"}


def test_file_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json")
    assert JsonFileSessionStore(str(path), "cart").load() is None


def test_state_survives_reload():
    store = MemorySessionStore()
    AuthContext(store).set_state({"user": {"name": "Daniel", "role": 1}, "token": "abc"})
    auth = AuthContext(store)
    assert auth.token == "abc"
    assert auth.is_admin
    assert auth.auth_headers() == {"Authorization": "abc"}


def test_state_defaults_and_reset():
    auth = AuthContext()
    assert auth.state == {"user": None, "token": ""}
    assert auth.auth_headers() == {}
    search = SearchContext()
    state, set_state = search.use()
    assert state == {"keyword": "", "results": []}
    set_state(lambda s: {**s, "keyword": "laptop"})
    assert search.state["keyword"] == "laptop"
    search.reset()
    assert search.state["keyword"] == ""


def test_updater_receives_a_copy():
    cart = CartContext()
    cart.add(snapshot("a", "1.00"))
    before = cart.state

    def mutate(items):
        items.append(snapshot("b", "2.00"))
        return items

    cart.set_state(mutate)
    assert len(before) == 1
    assert len(cart.state) == 2


def test_cart_remove_drops_first_duplicate_only():
    cart = CartContext()
    for item in (snapshot("a", "1.00"), snapshot("b", "2.50"), snapshot("a", "1.00")):
        cart.add(item)
    cart.remove("a")
    assert [i["_id"] for i in cart.state] == ["b", "a"]
    cart.remove("zzz")
    assert len(cart.state) == 2


def test_cart_total_and_display():
    cart = CartContext()
    cart.add(snapshot("laptop", "1499.99"))
    cart.add(snapshot("novel", 14.99))
    assert cart.total() == Decimal("1514.98")
    assert cart.total_display() == "$1,514.98"
    assert format_usd(Decimal("0")) == "$0.00"
    assert remove_first([], "a") == []


@pytest.mark.parametrize("value", [5, "cart", {"_id": "a"}, None])
def test_clean_items_rejects_non_lists(value):
    assert clean_items(value) is None


def test_clean_items_keeps_usable_snapshots():
    good = snapshot("novel", "14.99")
    items = [good, {"price": "1"}, {"_id": "", "price": "1"}, snapshot("x", "abc"), snapshot("y", "-1"), snapshot("z", "NaN"), 7]
    assert clean_items(items) == [good]


def api_client(client):
    return ApiClient(auth=AuthContext(), cart=CartContext(), http=client)


def test_login_stores_token_and_guards_pass(client, shopper):
    api = api_client(client)
    assert api.check_user() is False
    body = api.login(shopper.email, "secret123")
    assert body["success"] is True
    assert api.auth.token == body["token"]
    assert api.auth.user["email"] == shopper.email
    assert api.check_user() is True
    assert api.check_admin() is False
    api.logout()
    assert api.auth.token == ""
    assert api.check_user() is False


def test_failed_login_leaves_auth_untouched(client, shopper):
    api = api_client(client)
    body = api.login(shopper.email, "wrong")
    assert body["success"] is False
    assert api.auth.token == ""


def test_api_errors_raise(client):
    api = api_client(client)
    with pytest.raises(ApiRequestError) as info:
        api.orders()
    assert info.value.status_code == 401
    assert info.value.message == "UnAuthorized Access"


def test_browse_and_checkout(client, db_session, gateway, shopper, catalog):
    api = api_client(client)
    api.login(shopper.email, "secret123")
    assert api.product_count() == 6
    novel = api.product("novel")
    assert api.product_photo(novel["_id"]) is None
    assert [p["name"] for p in api.search("novel")] == ["Novel"]

    api.cart.add(novel)
    api.cart.add(novel)
    assert api.checkout("fake-valid-nonce") == {"ok": True}
    assert api.cart.state == []
    orders = api.orders()
    assert len(orders) == 1
    assert len(orders[0]["products"]) == 2
    assert gateway.sales[0][0] == Decimal("29.98")


def test_profile_update_refreshes_user(client, shopper):
    api = api_client(client)
    api.login(shopper.email, "secret123")
    api.update_profile(name="Dan")
    assert api.auth.user["name"] == "Dan"
    assert api.auth.token


def test_admin_flow(client, admin, catalog):
    api = api_client(client)
    api.login(admin.email, "secret123")
    assert api.check_admin() is True
    created = api.create_category("Toys")
    assert created["category"]["slug"] == "toys"
    product = api.create_product(
        {"name": "Yo-yo", "description": "Classic", "price": "3.50", "category": created["category"]["_id"], "quantity": "5"},
        photo=("yoyo.png", b"png", "image/png"),
    )["products"]
    assert api.product_photo(product["_id"]) == b"png"
    assert [p["name"] for p in api.category_products("toys")["products"]] == ["Yo-yo"]


def test_use_category_returns_list(client, catalog):
    result = use_category(api_client(client))
    assert isinstance(result, FetchResult)
    assert result.error is None
    assert [c["name"] for c in result.data] == ["Book", "Clothing", "Electronics"]


def test_use_category_swallows_failures():
    def handler(request):
        return httpx.Response(500, json={"success": False, "message": "Error while getting all categories"})

    http = httpx.Client(base_url="http://storefront.test", transport=httpx.MockTransport(handler))
    result = use_category(ApiClient(http=http))
    assert result.data == []
    assert isinstance(result.error, ApiRequestError)


def test_use_category_swallows_network_errors():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.Client(base_url="http://storefront.test", transport=httpx.MockTransport(handler))
    result = use_category(ApiClient(http=http))
    assert result.data == []
    assert isinstance(result.error, httpx.ConnectError)
