"""Cart lines per user."""

from typing import Any, Dict, List, Optional

from ..core.db import Database


class CartStore:
    def __init__(self, db: Database):
        self.db = db

    def list_lines(self, user_id: int) -> List[Dict[str, Any]]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT product_id, quantity FROM cart_items WHERE user_id = ? ORDER BY rowid",
                (user_id,),
            ).fetchall()
        return [dict(r) for r in rows]

    def get_line(self, user_id: int, product_id: str) -> Optional[Dict[str, Any]]:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT product_id, quantity FROM cart_items WHERE user_id = ? AND product_id = ?",
                (user_id, product_id),
            ).fetchone()
        return dict(row) if row else None

    def add(self, user_id: int, product_id: str) -> None:
        """New line with quantity 1, or one more of an existing line."""
        with self.db.connect() as conn:
            conn.execute(
                """
                INSERT INTO cart_items (user_id, product_id, quantity) VALUES (?, ?, 1)
                ON CONFLICT(user_id, product_id) DO UPDATE SET quantity = quantity + 1
                """,
                (user_id, product_id),
            )

    def set_quantity(self, user_id: int, product_id: str, quantity: int) -> None:
        """Set the quantity of an existing line; 0 removes it."""
        with self.db.connect() as conn:
            if quantity == 0:
                conn.execute(
                    "DELETE FROM cart_items WHERE user_id = ? AND product_id = ?",
                    (user_id, product_id),
                )
            else:
                conn.execute(
                    "UPDATE cart_items SET quantity = ? WHERE user_id = ? AND product_id = ?",
                    (quantity, user_id, product_id),
                )

    def remove(self, user_id: int, product_id: Optional[str] = None) -> None:
        """Remove one product, or every line when ``product_id`` is None."""
        with self.db.connect() as conn:
            if product_id is None:
                conn.execute("DELETE FROM cart_items WHERE user_id = ?", (user_id,))
            else:
                conn.execute(
                    "DELETE FROM cart_items WHERE user_id = ? AND product_id = ?",
                    (user_id, product_id),
                )
