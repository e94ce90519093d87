import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from . import models, schemas
from .auth import hash_password
from .utils import slugify

logger = logging.getLogger(__name__)

# Business rule: prices stored rounded to 2 decimals, non-negative
PRODUCT_LIST_LIMIT = 12
PRODUCTS_PER_PAGE = 6
RELATED_LIMIT = 3


def round_amount(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# -------------------- Users --------------------

def get_user(db: Session, user_id: str) -> Optional[models.User]:
    return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.scalars(select(models.User).where(models.User.email == email)).first()


def create_user(db: Session, data: schemas.RegisterRequest, role: models.Role = models.Role.SHOPPER) -> models.User:
    user = models.User(
        name=data.name,
        email=data.email,
        password=hash_password(data.password),
        phone=data.phone,
        address=data.address,
        answer=data.answer,
        role=int(role),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def find_user_by_answer(db: Session, email: str, answer: str) -> Optional[models.User]:
    stmt = select(models.User).where(models.User.email == email, models.User.answer == answer)
    return db.scalars(stmt).first()


def reset_password(db: Session, user: models.User, new_password: str) -> models.User:
    user.password = hash_password(new_password)
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: models.User, data: schemas.ProfileUpdate) -> models.User:
    # Blank fields keep their stored values; email is not changeable here
    if data.name:
        user.name = data.name
    if data.password:
        user.password = hash_password(data.password)
    if data.phone:
        user.phone = data.phone
    if data.address:
        user.address = data.address
    db.commit()
    db.refresh(user)
    return user


# -------------------- Categories --------------------

def get_category(db: Session, category_id: str) -> Optional[models.Category]:
    return db.get(models.Category, category_id)


def get_category_by_name(db: Session, name: str, exclude_id: Optional[str] = None) -> Optional[models.Category]:
    stmt = select(models.Category).where(models.Category.name == name)
    if exclude_id is not None:
        stmt = stmt.where(models.Category.id != exclude_id)
    return db.scalars(stmt).first()


def find_category_conflict(db: Session, name: str, exclude_id: Optional[str] = None) -> Optional[models.Category]:
    """Another category already using this name or the slug it would get."""
    stmt = select(models.Category).where(
        or_(models.Category.name == name, models.Category.slug == slugify(name))
    )
    if exclude_id is not None:
        stmt = stmt.where(models.Category.id != exclude_id)
    return db.scalars(stmt).first()


def get_category_by_slug(db: Session, slug: str) -> Optional[models.Category]:
    return db.scalars(select(models.Category).where(models.Category.slug == slug)).first()


def list_categories(db: Session) -> List[models.Category]:
    return list(db.scalars(select(models.Category).order_by(models.Category.name)))


def create_category(db: Session, name: str) -> models.Category:
    category = models.Category(name=name, slug=slugify(name))
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def update_category(db: Session, category_id: str, name: str) -> Optional[models.Category]:
    category = db.get(models.Category, category_id)
    if not category:
        return None
    category.name = name
    category.slug = slugify(name)
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: str) -> bool:
    category = db.get(models.Category, category_id)
    if not category:
        return False
    db.delete(category)
    db.commit()
    return True


# -------------------- Products --------------------

def _products():
    return select(models.Product).options(selectinload(models.Product.category))


def list_products(db: Session, limit: int = PRODUCT_LIST_LIMIT) -> List[models.Product]:
    stmt = _products().order_by(models.Product.created_at.desc()).limit(limit)
    return list(db.scalars(stmt))


def list_products_page(db: Session, page: int, per_page: int = PRODUCTS_PER_PAGE) -> List[models.Product]:
    page = max(page, 1)
    stmt = _products().order_by(models.Product.created_at.desc()).offset((page - 1) * per_page).limit(per_page)
    return list(db.scalars(stmt))


def count_products(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(models.Product))


def get_product(db: Session, product_id: str) -> Optional[models.Product]:
    return db.get(models.Product, product_id)


def get_product_by_slug(db: Session, slug: str) -> Optional[models.Product]:
    return db.scalars(_products().where(models.Product.slug == slug)).first()


def filter_products(db: Session, checked: Iterable[str], radio: List[Decimal]) -> List[models.Product]:
    stmt = _products()
    checked = list(checked)
    if checked:
        stmt = stmt.where(models.Product.category_id.in_(checked))
    if len(radio) == 2:
        stmt = stmt.where(models.Product.price >= radio[0], models.Product.price <= radio[1])
    return list(db.scalars(stmt))


def search_products(db: Session, keyword: str) -> List[models.Product]:
    pattern = f"%{keyword.lower()}%"
    stmt = _products().where(
        or_(func.lower(models.Product.name).like(pattern), func.lower(models.Product.description).like(pattern))
    )
    return list(db.scalars(stmt))


def related_products(db: Session, product_id: str, category_id: str, limit: int = RELATED_LIMIT) -> List[models.Product]:
    stmt = (
        _products()
        .where(models.Product.category_id == category_id, models.Product.id != product_id)
        .limit(limit)
    )
    return list(db.scalars(stmt))


def products_in_category(db: Session, category: models.Category) -> List[models.Product]:
    return list(db.scalars(_products().where(models.Product.category_id == category.id)))


def create_product(
    db: Session,
    *,
    name: str,
    description: str,
    price: Decimal,
    category_id: str,
    quantity: int,
    shipping: bool = False,
    photo: Optional[bytes] = None,
    photo_content_type: Optional[str] = None,
) -> models.Product:
    price = round_amount(price)
    if price < 0:
        raise ValueError("price must be non-negative")
    product = models.Product(
        name=name,
        slug=slugify(name),
        description=description,
        price=price,
        category_id=category_id,
        quantity=quantity,
        shipping=shipping,
        photo_data=photo,
        photo_content_type=photo_content_type if photo else None,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def update_product(
    db: Session,
    product: models.Product,
    *,
    name: str,
    description: str,
    price: Decimal,
    category_id: str,
    quantity: int,
    shipping: bool = False,
    photo: Optional[bytes] = None,
    photo_content_type: Optional[str] = None,
) -> models.Product:
    price = round_amount(price)
    if price < 0:
        raise ValueError("price must be non-negative")
    product.name = name
    product.slug = slugify(name)
    product.description = description
    product.price = price
    product.category_id = category_id
    product.quantity = quantity
    product.shipping = shipping
    # keep the stored photo unless a new one was uploaded
    if photo:
        product.photo_data = photo
        product.photo_content_type = photo_content_type
    db.commit()
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: str) -> bool:
    product = db.get(models.Product, product_id)
    if not product:
        return False
    db.delete(product)
    db.commit()
    return True


# -------------------- Orders --------------------

def _orders():
    return select(models.Order).options(
        selectinload(models.Order.items)
        .selectinload(models.OrderItem.product)
        .selectinload(models.Product.category),
        selectinload(models.Order.buyer),
    )


def list_orders_for_buyer(db: Session, buyer_id: str) -> List[models.Order]:
    return list(db.scalars(_orders().where(models.Order.buyer_id == buyer_id)))


def list_all_orders(db: Session) -> List[models.Order]:
    return list(db.scalars(_orders().order_by(models.Order.created_at.desc())))


def get_order(db: Session, order_id: str) -> Optional[models.Order]:
    return db.scalars(_orders().where(models.Order.id == order_id)).first()


def update_order_status(db: Session, order: models.Order, status: str) -> models.Order:
    # Any allowed status may follow any other; only membership is checked
    order.status = status
    db.commit()
    return get_order(db, order.id)


def resolve_cart(db: Session, product_ids: List[str]) -> List[models.Product]:
    """Look up cart products in cart order; duplicates are kept."""
    found = {p.id: p for p in db.scalars(select(models.Product).where(models.Product.id.in_(sorted(set(product_ids)))))}
    missing = [pid for pid in product_ids if pid not in found]
    if missing:
        raise ValueError(f"unknown product: {missing[0]}")
    return [found[pid] for pid in product_ids]


def cart_total(products: Iterable[models.Product]) -> Decimal:
    return round_amount(sum((Decimal(p.price) for p in products), Decimal("0")))


def create_order(db: Session, buyer: models.User, products: List[models.Product], payment: dict) -> models.Order:
    order = models.Order(buyer=buyer, payment=payment)
    order.products.extend(products)
    db.add(order)
    try:
        db.commit()
    except (ValueError, SQLAlchemyError):
        db.rollback()
        raise
    return get_order(db, order.id)


def place_order(db: Session, gateway, buyer: models.User, product_ids: List[str], nonce: str):
    """Charge the cart through the gateway and record the order on success.

    Returns (order, payment); order is None when the gateway declined.
    """
    products = resolve_cart(db, product_ids)
    if not products:
        raise ValueError("Products array must not be empty")
    payment = gateway.sale(cart_total(products), nonce)
    if not payment.get("success"):
        return None, payment
    try:
        order = create_order(db, buyer, products, payment)
    except (ValueError, SQLAlchemyError):
        # the card is already charged at this point
        transaction = (payment.get("transaction") or {}).get("id")
        logger.exception("payment %s captured for %s but the order was not saved", transaction, buyer.id)
        raise
    return order, payment
