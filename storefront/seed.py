"""
Seed a storefront database with an admin, a shopper and a small catalog.

Usage:
  python -m storefront.seed [--admin-password secret]
"""
import argparse
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from . import crud, models, schemas
from .db import Base, SessionLocal, engine

logger = logging.getLogger(__name__)

CATEGORIES = ["Electronics", "Book", "Clothing"]

PRODUCTS = [
    ("Textbook", "A comprehensive textbook", "79.99", "Book", 50, False),
    ("Laptop", "A powerful laptop", "1499.99", "Electronics", 30, True),
    ("Smartphone", "A high-end smartphone", "999.99", "Electronics", 50, False),
    ("NUS T-shirt", "Plain NUS T-shirt for sale", "4.99", "Clothing", 200, True),
    ("Novel", "A bestselling novel", "14.99", "Book", 200, True),
    ("The Law of Contract in Singapore", "A bestselling book in singapore", "54.99", "Book", 200, True),
]


def seed(db: Session, admin_password: str = "admin123", user_password: str = "user1234") -> dict:
    """Idempotent: existing users, categories and products are left alone."""
    created = {"users": 0, "categories": 0, "products": 0}
    accounts = [
        ("Admin", "admin@test.sg", admin_password, models.Role.ADMIN),
        ("Daniel", "daniel@test.com", user_password, models.Role.SHOPPER),
    ]
    for name, email, password, role in accounts:
        if crud.get_user_by_email(db, email):
            continue
        data = schemas.RegisterRequest(
            name=name, email=email, password=password,
            phone="12341234", address="1 Computing Drive", answer="Football",
        )
        crud.create_user(db, data, role=role)
        created["users"] += 1

    by_name = {}
    for name in CATEGORIES:
        category = crud.get_category_by_name(db, name)
        if not category:
            category = crud.create_category(db, name)
            created["categories"] += 1
        by_name[name] = category

    existing = {p.name for p in db.query(models.Product).all()}
    for name, description, price, category, quantity, shipping in PRODUCTS:
        if name in existing:
            continue
        crud.create_product(
            db,
            name=name,
            description=description,
            price=Decimal(price),
            category_id=by_name[category].id,
            quantity=quantity,
            shipping=shipping,
        )
        created["products"] += 1
    return created


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--admin-password", default="admin123", help="Password for admin@test.sg")
    parser.add_argument("--user-password", default="user1234", help="Password for daniel@test.com")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = seed(db, args.admin_password, args.user_password)
    finally:
        db.close()
    logger.info("seeded %(users)d users, %(categories)d categories, %(products)d products", created)


if __name__ == "__main__":
    main()
