"""
Session registry: the one valid refresh token per user and outstanding
password-reset grants, kept in a key-value store.

Key layout:
    refresh_token:<user_id>   -> refresh token (TTL = refresh token lifetime)
    password_reset:<token>    -> {"userId": ..., "resetTokenExpires": <epoch ms>}
"""

from __future__ import annotations

import json
from typing import Optional

from ..core.logger import get_logger
from ..stores.kv import KeyValueStore
from .models import ResetGrant

logger = get_logger(__name__)


def refresh_key(user_id: int) -> str:
    return f"refresh_token:{user_id}"


def reset_key(token: str) -> str:
    return f"password_reset:{token}"


class SessionRegistry:
    def __init__(self, store: KeyValueStore):
        self.store = store

    # Refresh tokens

    def store_refresh_token(self, user_id: int, token: str, ttl_seconds: int) -> None:
        """Overwrite the user's refresh slot; any earlier token stops matching."""
        self.store.set(refresh_key(user_id), token, ttl_seconds)

    def get_refresh_token(self, user_id: int) -> Optional[str]:
        return self.store.get(refresh_key(user_id))

    def revoke_refresh_token(self, user_id: int) -> bool:
        return self.store.delete(refresh_key(user_id))

    def matches_refresh_token(self, user_id: int, token: str) -> bool:
        stored = self.get_refresh_token(user_id)
        return stored is not None and stored == token

    # Password-reset grants

    def store_reset_grant(self, token: str, grant: ResetGrant, ttl_seconds: int) -> None:
        payload = json.dumps({"userId": grant.user_id, "resetTokenExpires": grant.expires_at_ms})
        self.store.set(reset_key(token), payload, ttl_seconds)

    def get_reset_grant(self, token: str) -> Optional[ResetGrant]:
        raw = self.store.get(reset_key(token))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            return ResetGrant(user_id=int(data["userId"]), expires_at_ms=int(data["resetTokenExpires"]))
        except (ValueError, KeyError, TypeError):
            logger.warning("Dropping malformed password reset grant")
            self.store.delete(reset_key(token))
            return None

    def delete_reset_grant(self, token: str) -> bool:
        return self.store.delete(reset_key(token))
