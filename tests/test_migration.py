import os
import sqlite3
import tempfile

import pytest

from migration.backfill_slugs import migrate


def create_unslugged_db(path: str):
    conn = sqlite3.connect(path)
    try:
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute("CREATE TABLE categories (id TEXT PRIMARY KEY, name TEXT NOT NULL)")
        conn.execute(
            "CREATE TABLE products (id TEXT PRIMARY KEY, name TEXT NOT NULL, category_id TEXT, FOREIGN KEY(category_id) REFERENCES categories(id) ON DELETE SET NULL)"
        )
        # Seed data
        conn.execute("INSERT INTO categories (id, name) VALUES ('c1', 'Electronics'), ('c2', 'Books & Comics')")
        conn.execute("INSERT INTO products (id, name, category_id) VALUES ('p1', 'NUS T-shirt', 'c1'), ('p2', 'Men''s Novel', 'c2')")
        conn.commit()
    finally:
        conn.close()


def test_migration_adds_slug_and_backfills():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "test.db")
        create_unslugged_db(db_path)

        # Run migration
        assert migrate(db_path) == {"categories": 2, "products": 2}

        # Validate
        conn = sqlite3.connect(db_path)
        try:
            cur = conn.execute("PRAGMA table_info(products)")
            cols = [r[1] for r in cur.fetchall()]
            assert "slug" in cols

            rows = conn.execute("SELECT slug FROM categories ORDER BY id").fetchall()
            assert [r[0] for r in rows] == ["electronics", "books-and-comics"]
            rows = conn.execute("SELECT slug FROM products ORDER BY id").fetchall()
            assert [r[0] for r in rows] == ["nus-t-shirt", "mens-novel"]
        finally:
            conn.close()


def test_migration_is_rerunnable():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "test.db")
        create_unslugged_db(db_path)
        migrate(db_path)
        assert migrate(db_path) == {"categories": 0, "products": 0}
        assert migrate(db_path, recompute=True) == {"categories": 2, "products": 2}


def test_migration_rejects_missing_db():
    with pytest.raises(FileNotFoundError):
        migrate("/nonexistent/storefront.db")
    with pytest.raises(ValueError):
        migrate(":memory:")


def test_migration_requires_tables():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "empty.db")
        sqlite3.connect(db_path).close()
        with pytest.raises(RuntimeError):
            migrate(db_path)


def test_migration_makes_category_slugs_unique():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "test.db")
        create_unslugged_db(db_path)
        migrate(db_path)

        conn = sqlite3.connect(db_path)
        try:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute("INSERT INTO categories (id, name, slug) VALUES ('c3', 'ELECTRONICS', 'electronics')")
        finally:
            conn.close()


def test_migration_refuses_shared_category_slugs():
    with tempfile.TemporaryDirectory() as tmp:
        db_path = os.path.join(tmp, "test.db")
        create_unslugged_db(db_path)
        conn = sqlite3.connect(db_path)
        conn.execute("INSERT INTO categories (id, name) VALUES ('c3', 'electronics')")
        conn.commit()
        conn.close()

        with pytest.raises(sqlite3.IntegrityError):
            migrate(db_path)
