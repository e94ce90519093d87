"""
Backfill URL slugs
- Adds a 'slug' column to categories and products if missing
- Fills empty slugs from the row's name
- Adds the unique index on category slugs

Usage:
  python -m migration.backfill_slugs --db path/to/storefront.db [--all]
"""
import argparse
import logging
import os
import sqlite3
from contextlib import closing

from storefront.utils import slugify

logger = logging.getLogger(__name__)

TABLES = ("categories", "products")


def has_column(conn: sqlite3.Connection, table: str, column: str) -> bool:
    cur = conn.execute(f"PRAGMA table_info({table})")
    return any(row[1] == column for row in cur.fetchall())


def migrate(db_path: str, recompute: bool = False) -> dict:
    """Returns the number of rows updated per table."""
    if db_path == ":memory:":
        raise ValueError("Use a file-backed DB for migration script")

    if not os.path.exists(db_path):
        raise FileNotFoundError(db_path)

    updated = {}
    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row

        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        missing = [t for t in TABLES if t not in tables]
        if missing:
            raise RuntimeError(f"{missing[0]} table missing; cannot migrate")

        for table in TABLES:
            if not has_column(conn, table, "slug"):
                conn.execute(f"ALTER TABLE {table} ADD COLUMN slug TEXT")
            query = f"SELECT id, name, slug FROM {table}"
            if not recompute:
                query += " WHERE slug IS NULL OR slug = ''"
            rows = conn.execute(query).fetchall()
            for row in rows:
                conn.execute(f"UPDATE {table} SET slug = ? WHERE id = ?", (slugify(row["name"]), row["id"]))
            updated[table] = len(rows)
        # fails on a DB whose categories already share a slug; rename one first
        conn.execute("CREATE UNIQUE INDEX IF NOT EXISTS ix_categories_slug ON categories (slug)")
        conn.commit()
    logger.info("slugs backfilled: %s", updated)
    return updated


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--db", required=True, help="Path to SQLite database file")
    parser.add_argument("--all", action="store_true", help="Recompute every slug, not only empty ones")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    migrate(args.db, recompute=args.all)


if __name__ == "__main__":
    main()
