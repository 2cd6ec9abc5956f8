"""Auth data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal

from pydantic import BaseModel

Role = Literal["customer", "admin"]


class User(BaseModel):
    """User record as stored in the users table."""

    user_id: int
    user_name: str
    email: str
    phone_number: str
    user_password: str
    user_role: Role = "customer"
    created_at: str

    model_config = {"frozen": True}

    def public(self) -> Dict[str, Any]:
        """Fields safe to return to the client (never the hash)."""
        return {
            "user_id": self.user_id,
            "user_name": self.user_name,
            "email": self.email,
            "phone_number": self.phone_number,
            "user_role": self.user_role,
        }


@dataclass(frozen=True)
class SessionPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class ResetGrant:
    user_id: int
    expires_at_ms: int


@dataclass(frozen=True)
class AuthResult:
    """A user together with the freshly issued session pair."""

    user: User
    session: SessionPair
