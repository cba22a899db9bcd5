from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

from bookshop.constants import ORDER_PENDING
from bookshop.db.sqlite import Database, to_db_date, utc_now_str
from bookshop.errors import EmptyCartError, NotFoundError
from bookshop.services.cart import CartLine
from bookshop.services.pricing import calc_subtotal, calc_total

logger = logging.getLogger(__name__)


class ShippingDetails(Protocol):
    full_name: str
    email: str

    @property
    def full_address(self) -> str: ...


class OrderLedger:
    def __init__(self, db: Database, tax_rate: Optional[float] = None) -> None:
        self.db = db
        self.tax_rate = tax_rate

    def commit_order(
        self,
        shipping: ShippingDetails,
        cart_snapshot: Sequence[CartLine],
        user_id: int,
        placed_at: Optional[datetime] = None,
    ) -> int:
        """
        Writes one order and all of its items in a single transaction.

        The total is always recomputed from the lines. On any failure the
        whole order is rolled back and PersistenceError is raised.
        """
        lines = list(cart_snapshot)
        if not lines:
            raise EmptyCartError()

        subtotal = calc_subtotal(lines)
        total = calc_total(subtotal, self.tax_rate)
        order_date = to_db_date(placed_at) if placed_at else utc_now_str()

        with self.db.transaction() as conn:
            cur = conn.execute(
                """
                INSERT INTO orders(user_id, customer_name, customer_email, customer_address,
                                   total_amount, order_date, status)
                VALUES(?,?,?,?,?,?,?)
                """,
                (
                    user_id,
                    shipping.full_name,
                    shipping.email,
                    shipping.full_address,
                    total,
                    order_date,
                    ORDER_PENDING,
                ),
            )
            order_id = int(cur.lastrowid)

            for line in lines:
                conn.execute(
                    """
                    INSERT INTO order_items(order_id, product_id, product_title, quantity, price)
                    VALUES(?,?,?,?,?)
                    """,
                    (order_id, line.product_id, line.title, line.quantity, line.price),
                )

        logger.info("Order #%s committed: %s items, total=%.2f", order_id, len(lines), total)
        return order_id

    def delete_order(self, order_id: int) -> None:
        with self.db.transaction() as conn:
            row = conn.execute("SELECT id FROM orders WHERE id = ?", (order_id,)).fetchone()
            if not row:
                raise NotFoundError("order", order_id)
            # сначала позиции, потом сам заказ
            conn.execute("DELETE FROM order_items WHERE order_id = ?", (order_id,))
            conn.execute("DELETE FROM orders WHERE id = ?", (order_id,))
        logger.info("Order #%s deleted", order_id)

    def get_order(self, order_id: int) -> Optional[Dict[str, Any]]:
        order = self.db.query_one("SELECT * FROM orders WHERE id = ?", (order_id,))
        if not order:
            return None
        order["items"] = self.get_order_items(order_id)
        return order

    def get_order_items(self, order_id: int) -> List[Dict[str, Any]]:
        return self.db.query(
            "SELECT * FROM order_items WHERE order_id = ? ORDER BY id",
            (order_id,),
        )

    def list_orders(self) -> List[Dict[str, Any]]:
        return self.db.query("SELECT * FROM orders ORDER BY order_date DESC, id DESC")

    def clear(self) -> None:
        with self.db.transaction() as conn:
            conn.execute("DELETE FROM order_items")
            conn.execute("DELETE FROM orders")
        logger.warning("All orders cleared")
