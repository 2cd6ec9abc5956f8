"""Order, order item, payment and notification records."""

import sqlite3
from typing import Any, Dict, List, Optional

from ..core.db import Database, to_utc_iso, utcnow


def _now() -> str:
    return to_utc_iso(utcnow())


class OrderStore:
    def __init__(self, db: Database):
        self.db = db

    def find_order_by_session(self, session_id: str,
                              conn: Optional[sqlite3.Connection] = None) -> Optional[Dict[str, Any]]:
        with self.db.session(conn) as c:
            row = c.execute(
                "SELECT * FROM orders WHERE stripe_session_id = ?", (session_id,)
            ).fetchone()
        return dict(row) if row else None

    def create_order(self, user_id: int, total_amount: float, order_status: str, session_id: str,
                     conn: Optional[sqlite3.Connection] = None) -> int:
        with self.db.session(conn) as c:
            cur = c.execute(
                """
                INSERT INTO orders (user_id, total_amount, order_status, stripe_session_id, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user_id, total_amount, order_status, session_id, _now()),
            )
            return cur.lastrowid

    def add_order_item(self, order_id: int, product_id: str, quantity: int, price: float,
                       conn: Optional[sqlite3.Connection] = None) -> int:
        with self.db.session(conn) as c:
            cur = c.execute(
                "INSERT INTO order_items (order_id, product_id, quantity, price) VALUES (?, ?, ?, ?)",
                (order_id, str(product_id), quantity, price),
            )
            return cur.lastrowid

    def record_payment(self, order_id: int, payment_method: str, payment_status: str, amount: float,
                       conn: Optional[sqlite3.Connection] = None) -> int:
        with self.db.session(conn) as c:
            cur = c.execute(
                """
                INSERT INTO payments (order_id, payment_method, payment_status, amount, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (order_id, payment_method, payment_status, amount, _now()),
            )
            return cur.lastrowid

    def record_notification(self, order_id: int, customer_id: int, email_status: str,
                            conn: Optional[sqlite3.Connection] = None) -> int:
        with self.db.session(conn) as c:
            cur = c.execute(
                """
                INSERT INTO email_notifications (order_id, customer_id, email_status, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (order_id, customer_id, email_status, _now()),
            )
            return cur.lastrowid

    def get_order_items(self, order_id: int) -> List[Dict[str, Any]]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM order_items WHERE order_id = ? ORDER BY order_item_id", (order_id,)
            ).fetchall()
        return [dict(r) for r in rows]

    def get_payments(self, order_id: int) -> List[Dict[str, Any]]:
        with self.db.connect() as conn:
            rows = conn.execute("SELECT * FROM payments WHERE order_id = ?", (order_id,)).fetchall()
        return [dict(r) for r in rows]

    def get_notifications(self, order_id: int) -> List[Dict[str, Any]]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM email_notifications WHERE order_id = ?", (order_id,)
            ).fetchall()
        return [dict(r) for r in rows]

    def list_orders(self, user_id: int) -> List[Dict[str, Any]]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM orders WHERE user_id = ? ORDER BY order_id", (user_id,)
            ).fetchall()
        return [dict(r) for r in rows]

    def list_orders_with_items(self, user_id: int) -> List[Dict[str, Any]]:
        """Orders shaped for the profile page, newest last."""
        result = []
        for order in self.list_orders(user_id):
            items = self.get_order_items(order["order_id"])
            result.append({
                "orderId": order["order_id"],
                "totalAmount": order["total_amount"],
                "orderStatus": order["order_status"],
                "OrderedAt": order["created_at"],
                "items": [
                    {
                        "orderItemId": item["order_item_id"],
                        "productId": item["product_id"],
                        "quantity": item["quantity"],
                        "price": item["price"],
                    }
                    for item in items
                ],
            })
        return result

    def count_orders(self) -> int:
        with self.db.connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM orders").fetchone()[0]

    def count_payments(self) -> int:
        with self.db.connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM payments").fetchone()[0]

    def count_notifications(self) -> int:
        with self.db.connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM email_notifications").fetchone()[0]
