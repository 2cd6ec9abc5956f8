"""User storage on the relational store."""

import sqlite3
from typing import Optional

from ..auth.models import User
from ..core.db import Database, to_utc_iso, utcnow
from ..core.exceptions import ConflictError


class UserStore:
    def __init__(self, db: Database):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        return User(**dict(row)) if row else None

    def find_by_id(self, user_id: int) -> Optional[User]:
        with self.db.connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE user_id = ?", (user_id,)).fetchone()
        return User(**dict(row)) if row else None

    def email_taken(self, email: str, exclude_user_id: Optional[int] = None) -> bool:
        """True if another user already holds ``email``."""
        with self.db.connect() as conn:
            if exclude_user_id is None:
                row = conn.execute("SELECT 1 FROM users WHERE email = ?", (email,)).fetchone()
            else:
                row = conn.execute(
                    "SELECT 1 FROM users WHERE email = ? AND user_id != ?",
                    (email, exclude_user_id),
                ).fetchone()
        return row is not None

    def create_user(self, user_name: str, email: str, phone_number: str,
                    password_hash: str, role: str = "customer") -> User:
        """Insert a user; the UNIQUE email column backs up the caller's pre-check."""
        created_at = to_utc_iso(utcnow())
        try:
            with self.db.connect() as conn:
                cur = conn.execute(
                    """
                    INSERT INTO users (user_name, email, phone_number, user_password, user_role, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (user_name, email, phone_number, password_hash, role, created_at),
                )
                user_id = cur.lastrowid
        except sqlite3.IntegrityError:
            raise ConflictError("Email already exists. Please use a different email.")
        return User(
            user_id=user_id,
            user_name=user_name,
            email=email,
            phone_number=phone_number,
            user_password=password_hash,
            user_role=role,
            created_at=created_at,
        )

    def update_password(self, user_id: int, password_hash: str) -> None:
        with self.db.connect() as conn:
            conn.execute(
                "UPDATE users SET user_password = ? WHERE user_id = ?",
                (password_hash, user_id),
            )

    def update_profile(self, user_id: int, user_name: str, email: str, phone_number: str) -> None:
        try:
            with self.db.connect() as conn:
                conn.execute(
                    "UPDATE users SET user_name = ?, email = ?, phone_number = ? WHERE user_id = ?",
                    (user_name, email, phone_number, user_id),
                )
        except sqlite3.IntegrityError:
            raise ConflictError("This email already exists. Try a new one.")

    def count(self) -> int:
        with self.db.connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]
