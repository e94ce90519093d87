from decimal import Decimal

import pytest

from storefront import crud, models
from storefront.auth import create_access_token, decode_access_token, extract_token
from storefront.config import get_settings, set_settings
from storefront.enums import OrderStatus
from storefront.payments import payment_result
from storefront.seed import seed
from storefront.utils import is_valid_email, is_valid_id, sanitize_input, slugify


def test_sanitize_removes_script_tags():
    s = "<script>alert(1)</script>Bob"
    out = sanitize_input(s)
    assert "<script>" not in out.lower()
    assert "bob" in out.lower()


@pytest.mark.parametrize("keyword", ["C--", "a;b", "laptop; DROP TABLE products; --"])
def test_sanitize_keeps_punctuation(keyword):
    assert sanitize_input(keyword) == keyword


def test_sanitize_returns_plain_text():
    assert sanitize_input("Books & Comics") == "Books & Comics"
    assert sanitize_input("<b>novel</b>") == "novel"


def test_sanitize_none_and_whitespace():
    assert sanitize_input(None) == ""
    assert sanitize_input("  novel \x00 ") == "novel"


@pytest.mark.parametrize("name,slug", [
    ("Electronics", "electronics"),
    ("NUS T-shirt", "nus-t-shirt"),
    ("Men's T-Shirts & Tops", "mens-t-shirts-and-tops"),
    ("  Café  Crème ", "cafe-creme"),
    ("", ""),
])
def test_slugify(name, slug):
    assert slugify(name) == slug


def test_id_and_email_checks():
    assert is_valid_id(models.new_id())
    assert not is_valid_id("123")
    assert not is_valid_id(None)
    assert is_valid_email("daniel@test.com")
    assert not is_valid_email("daniel@")


def test_round_amount_half_up():
    assert crud.round_amount(Decimal("10.125")) == Decimal("10.13")
    assert crud.round_amount(Decimal("4.994")) == Decimal("4.99")


def test_order_status_values():
    assert OrderStatus.values() == ["Not Process", "Processing", "Shipped", "delivered", "cancel"]


def test_token_round_trip():
    token = create_access_token("abc123")
    assert decode_access_token(token)["sub"] == "abc123"
    assert extract_token(f"Bearer {token}") == token
    assert extract_token(None) == ""


def test_token_expiry_follows_settings():
    previous = get_settings()
    try:
        set_settings(jwt_expires_days=1)
        claims = decode_access_token(create_access_token("abc123"))
        assert claims["exp"] - claims["iat"] == 24 * 60 * 60
    finally:
        set_settings(**previous._asdict())


def test_payment_result_shape():
    blob = payment_result(True, "Payment Success", Decimal("12.50"), "nonce-1", transaction_id="t1")
    assert blob["success"] is True
    assert blob["params"]["transaction"] == {
        "amount": "12.50",
        "paymentMethodNonce": "nonce-1",
        "options": {"submitForSettlement": True},
        "type": "sale",
    }
    assert blob["transaction"] == {"id": "t1"}
    assert "transaction" not in payment_result(False, "declined", Decimal("1"), "n")


def test_negative_quantity_rejected():
    with pytest.raises(ValueError):
        models.Product(name="Broken", quantity=-1)


def test_negative_price_rejected(db_session):
    category = crud.create_category(db_session, "Book")
    with pytest.raises(ValueError):
        crud.create_product(
            db_session, name="Refund", description="x", price=Decimal("-1.00"),
            category_id=category.id, quantity=1,
        )


def test_unknown_status_rejected_by_model():
    order = models.Order()
    with pytest.raises(ValueError):
        order.status = "Lost"
    order.status = "Shipped"
    assert order.status == "Shipped"


def test_order_keeps_cart_order_and_duplicates(db_session, shopper):
    category = crud.create_category(db_session, "Book")
    a = crud.create_product(db_session, name="A", description="a", price=Decimal("1"), category_id=category.id, quantity=1)
    b = crud.create_product(db_session, name="B", description="b", price=Decimal("2"), category_id=category.id, quantity=1)
    order = crud.create_order(db_session, shopper, crud.resolve_cart(db_session, [b.id, a.id, b.id]), {"success": True})
    assert [p.name for p in order.products] == ["B", "A", "B"]
    assert [item.position for item in order.items] == [0, 1, 2]


def test_update_profile_ignores_blank_fields(db_session, shopper):
    from storefront import schemas
    crud.update_profile(db_session, shopper, schemas.ProfileUpdate(name="", address="2 College Ave"))
    assert shopper.name == "Shopper"
    assert shopper.address == "2 College Ave"


def test_seed_is_idempotent(db_session):
    assert seed(db_session) == {"users": 2, "categories": 3, "products": 6}
    assert seed(db_session) == {"users": 0, "categories": 0, "products": 0}
    admin = crud.get_user_by_email(db_session, "admin@test.sg")
    assert admin.is_admin
    assert crud.count_products(db_session) == 6
