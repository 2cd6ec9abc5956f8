"""Coupon (discount grant) records."""

import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..core.db import Database, to_utc_iso


def _row(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    data = dict(row)
    data["is_active"] = bool(data["is_active"])
    return data


class CouponStore:
    def __init__(self, db: Database):
        self.db = db

    def create(self, coupon_code: str, discount_percentage: int, expiration_date: datetime,
               user_id: int, usage_limit: int = 1) -> int:
        with self.db.connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO coupons (coupon_code, discount_percentage, expiration_date, user_id, usage_limit, is_active)
                VALUES (?, ?, ?, ?, ?, 1)
                """,
                (coupon_code, discount_percentage, to_utc_iso(expiration_date), user_id, usage_limit),
            )
            return cur.lastrowid

    def find_active_for_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM coupons WHERE user_id = ? AND is_active = 1 ORDER BY coupon_id LIMIT 1",
                (user_id,),
            ).fetchone()
        return _row(row)

    def find_active_by_code(self, coupon_code: str, user_id: int) -> Optional[Dict[str, Any]]:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT * FROM coupons WHERE coupon_code = ? AND user_id = ? AND is_active = 1 LIMIT 1",
                (coupon_code, user_id),
            ).fetchone()
        return _row(row)

    def find_redeemable(self, coupon_code: str, user_id: int, now: datetime) -> Optional[Dict[str, Any]]:
        """Active and unexpired coupon ``coupon_code`` owned by ``user_id``."""
        with self.db.connect() as conn:
            row = conn.execute(
                """
                SELECT * FROM coupons
                WHERE coupon_code = ? AND user_id = ? AND is_active = 1 AND expiration_date > ?
                LIMIT 1
                """,
                (coupon_code, user_id, to_utc_iso(now)),
            ).fetchone()
        return _row(row)

    def deactivate(self, coupon_id: int) -> None:
        with self.db.connect() as conn:
            conn.execute("UPDATE coupons SET is_active = 0 WHERE coupon_id = ?", (coupon_id,))

    def deactivate_code(self, coupon_code: str, user_id: int,
                        conn: Optional[sqlite3.Connection] = None) -> int:
        with self.db.session(conn) as c:
            cur = c.execute(
                "UPDATE coupons SET is_active = 0 WHERE coupon_code = ? AND user_id = ?",
                (coupon_code, user_id),
            )
            return cur.rowcount

    def list_for_user(self, user_id: int) -> List[Dict[str, Any]]:
        with self.db.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM coupons WHERE user_id = ? ORDER BY coupon_id", (user_id,)
            ).fetchall()
        return [_row(r) for r in rows]
