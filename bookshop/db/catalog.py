from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from bookshop.constants import ALL_CATEGORIES, SORT_PRICE_ASC, SORT_PRICE_DESC
from bookshop.db.sqlite import Database, utc_now_str
from bookshop.errors import NotFoundError
from bookshop.utils.validators import validate_product

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = (
    "title",
    "author",
    "price",
    "category",
    "isbn",
    "description",
    "stock",
    "image",
    "rating",
    "pages",
    "language",
    "publisher",
    "publication_date",
)


def _row_values(data: Mapping[str, Any]) -> List[Any]:
    values = []
    for f in PRODUCT_FIELDS:
        v = data.get(f)
        if f in ("stock", "rating"):
            v = v or 0
        elif v == "":
            v = None
        values.append(v)
    return values


class CatalogStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    def add_product(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        clean = validate_product(data)
        now = utc_now_str()
        cols = ", ".join(PRODUCT_FIELDS)
        marks = ",".join("?" * (len(PRODUCT_FIELDS) + 2))
        with self.db.transaction() as conn:
            cur = conn.execute(
                f"INSERT INTO products({cols}, created_at, updated_at) VALUES({marks})",
                (*_row_values(clean), now, now),
            )
            product_id = int(cur.lastrowid)
        logger.info("Product added: #%s %s", product_id, clean["title"])
        return self.get_product(product_id)

    def update_product(self, product_id: int, data: Mapping[str, Any]) -> Dict[str, Any]:
        clean = validate_product(data)
        assignments = ", ".join(f"{f} = ?" for f in PRODUCT_FIELDS)
        with self.db.transaction() as conn:
            cur = conn.execute(
                f"UPDATE products SET {assignments}, updated_at = ? WHERE id = ?",
                (*_row_values(clean), utc_now_str(), product_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError("product", product_id)
        return self.get_product(product_id)

    def delete_product(self, product_id: int) -> None:
        # позиции заказов хранят свой снимок, историю не трогаем
        cur = self.db.execute("DELETE FROM products WHERE id = ?", (product_id,))
        if cur.rowcount == 0:
            raise NotFoundError("product", product_id)
        logger.info("Product deleted: #%s", product_id)

    def get_product(self, product_id: int) -> Optional[Dict[str, Any]]:
        return self.db.query_one("SELECT * FROM products WHERE id = ?", (product_id,))

    def list_products(self) -> List[Dict[str, Any]]:
        return self.db.query("SELECT * FROM products ORDER BY created_at DESC, id DESC")

    def count_products(self) -> int:
        return int(self.db.scalar("SELECT COUNT(*) FROM products"))

    def list_categories(self) -> List[str]:
        rows = self.db.query("SELECT DISTINCT category FROM products ORDER BY category")
        return [r["category"] for r in rows]

    def search_products(
        self,
        query: str = "",
        category: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        sql = "SELECT * FROM products WHERE 1=1"
        params: List[Any] = []

        q = (query or "").strip().lower()
        if q:
            sql += " AND (instr(lower(title), ?) > 0 OR instr(lower(author), ?) > 0)"
            params.extend([q, q])

        if category and category != ALL_CATEGORIES:
            sql += " AND category = ?"
            params.append(category)

        if sort == SORT_PRICE_ASC:
            sql += " ORDER BY price ASC, id ASC"
        elif sort == SORT_PRICE_DESC:
            sql += " ORDER BY price DESC, id ASC"
        else:
            sql += " ORDER BY created_at DESC, id DESC"

        return self.db.query(sql, params)
