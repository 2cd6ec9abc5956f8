"""
Signed session credentials.

Both credentials are itsdangerous timed payloads (HMAC over the payload and
the signing timestamp), so the expiry check is ``max_age`` against the signed
timestamp. Access and refresh tokens use different secrets and salts: a
refresh token can never pass as an access token and vice versa.
"""

from __future__ import annotations

import secrets
from typing import Any, Dict

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.exceptions import TokenError, TokenExpiredError
from .models import SessionPair

ACCESS_SALT = "storefront-access-token"
REFRESH_SALT = "storefront-refresh-token"


class TokenIssuer:
    """Issues and verifies access/refresh credentials for a user id."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl_seconds: int = 15 * 60,
        refresh_ttl_seconds: int = 7 * 24 * 60 * 60,
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("Access and refresh token secrets must be set")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh token secrets must differ")
        self.access_ttl_seconds = access_ttl_seconds
        self.refresh_ttl_seconds = refresh_ttl_seconds
        self._access = URLSafeTimedSerializer(secret_key=access_secret, salt=ACCESS_SALT)
        self._refresh = URLSafeTimedSerializer(secret_key=refresh_secret, salt=REFRESH_SALT)

    @staticmethod
    def _payload(user_id: int) -> Dict[str, Any]:
        # jti keeps two tokens minted in the same second distinct
        return {"userId": user_id, "jti": secrets.token_urlsafe(8)}

    def issue_access(self, user_id: int) -> str:
        return self._access.dumps(self._payload(user_id))

    def issue_refresh(self, user_id: int) -> str:
        return self._refresh.dumps(self._payload(user_id))

    def issue(self, user_id: int) -> SessionPair:
        return SessionPair(
            access_token=self.issue_access(user_id),
            refresh_token=self.issue_refresh(user_id),
        )

    @staticmethod
    def _verify(serializer: URLSafeTimedSerializer, token: str, max_age: int) -> int:
        if not token:
            raise TokenError("Token missing")
        try:
            data = serializer.loads(token, max_age=max_age)
        except SignatureExpired:
            raise TokenExpiredError("Token has expired")
        except BadSignature:
            raise TokenError("Token signature is invalid")
        if not isinstance(data, dict) or not isinstance(data.get("userId"), int):
            raise TokenError("Token payload is invalid")
        return data["userId"]

    def verify_access(self, token: str) -> int:
        """Return the user id embedded in a valid access token."""
        return self._verify(self._access, token, self.access_ttl_seconds)

    def verify_refresh(self, token: str) -> int:
        """Return the user id embedded in a valid refresh token."""
        return self._verify(self._refresh, token, self.refresh_ttl_seconds)
