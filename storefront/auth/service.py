"""
Authentication service layer.

- Email/password users with bcrypt hashes in the users table
- Signed access (15 min) and refresh (7 days) tokens from ``TokenIssuer``
- One live refresh token per user in the session registry; every login,
  signup and password reset overwrites it
- Password reset through single-use random grants with a one-hour expiry

The service never touches HTTP; routes turn ``AuthResult.session`` into
cookies.
"""

from __future__ import annotations

import secrets
import time
from typing import Any, Callable, Dict, List, Optional

import bcrypt
from email_validator import EmailNotValidError, validate_email

from ..core.config import AuthSettings
from ..core.exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    TokenError,
    TokenExpiredError,
    UnauthorizedError,
    ValidationError,
)
from ..core.logger import get_logger
from ..mail import templates
from ..mail.port import Mailer
from ..stores.orders import OrderStore
from ..stores.users import UserStore
from .models import AuthResult, ResetGrant, SessionPair, User
from .registry import SessionRegistry
from .tokens import TokenIssuer

logger = get_logger(__name__)

ROLES = ("customer", "admin")
INVALID_CREDENTIALS = "Invalid email or password"


def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email: Optional[str]) -> str:
    """Validate syntax and return the lower-cased address."""
    if not email or not email.strip():
        raise ValidationError("Valid email is required.")
    try:
        result = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Valid email is required.")
    return result.normalized.lower()


class AuthService:
    def __init__(
        self,
        users: UserStore,
        registry: SessionRegistry,
        issuer: TokenIssuer,
        mailer: Mailer,
        settings: AuthSettings,
        client_url: str,
        orders: Optional[OrderStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.users = users
        self.registry = registry
        self.issuer = issuer
        self.mailer = mailer
        self.settings = settings
        self.client_url = client_url.rstrip("/")
        self.orders = orders
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _hash(self, password: str) -> str:
        return hash_password(password, rounds=self.settings.bcrypt_rounds)

    def _check_password_length(self, password: Optional[str]) -> None:
        if not password:
            raise ValidationError("Password is required.")
        if len(password) < self.settings.min_password_length:
            raise ValidationError(
                f"Password must be at least {self.settings.min_password_length} characters long."
            )

    def _start_session(self, user_id: int) -> SessionPair:
        """Issue a token pair and make its refresh token the only valid one."""
        pair = self.issuer.issue(user_id)
        self.registry.store_refresh_token(user_id, pair.refresh_token, self.settings.refresh_token_ttl_seconds)
        return pair

    def signup(
        self,
        user_name: Optional[str],
        email: Optional[str],
        phone_number: Optional[str],
        password: Optional[str],
        role: Optional[str] = None,
    ) -> AuthResult:
        """
        Create a customer account and log it in.

        Every field is checked before anything is written, so a rejected
        signup never leaves a user row behind.
        """
        errors: List[str] = []
        if not user_name or not user_name.strip():
            errors.append("User name is required.")
        try:
            email = normalize_email(email)
        except ValidationError as e:
            errors.append(e.message)
        if not phone_number or not phone_number.strip():
            errors.append("Phone number is required.")
        try:
            self._check_password_length(password)
        except ValidationError as e:
            errors.append(e.message)
        role = role or "customer"
        if role not in ROLES:
            errors.append("Role must be customer or admin.")
        elif role == "admin" and not self.settings.allow_admin_signup:
            errors.append("Admin accounts cannot be created through signup.")
        if errors:
            raise ValidationError(", ".join(errors))

        if self.users.email_taken(email):
            raise ConflictError("Email already exists. Please use a different email.")

        user = self.users.create_user(
            user_name=user_name.strip(),
            email=email,
            phone_number=phone_number.strip(),
            password_hash=self._hash(password),
            role=role,
        )
        session = self._start_session(user.user_id)
        logger.info("User signed up", user_id=user.user_id, role=user.user_role)
        return AuthResult(user=user, session=session)

    def login(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        """Return user and fresh session if credentials are valid."""
        if not email or not password:
            raise UnauthorizedError(INVALID_CREDENTIALS)
        user = self.users.find_by_email(email.strip().lower())
        if not user or not verify_password(password, user.user_password):
            raise UnauthorizedError(INVALID_CREDENTIALS)
        session = self._start_session(user.user_id)
        logger.info("User logged in", user_id=user.user_id)
        return AuthResult(user=user, session=session)

    def logout(self, refresh_token: Optional[str]) -> None:
        """Revoke the stored refresh token if ``refresh_token`` verifies (idempotent)."""
        if not refresh_token:
            return
        try:
            user_id = self.issuer.verify_refresh(refresh_token)
        except TokenError:
            return
        self.registry.revoke_refresh_token(user_id)
        logger.info("User logged out", user_id=user_id)

    def refresh(self, refresh_token: Optional[str]) -> str:
        """Mint a new access token from the user's current refresh token."""
        if not refresh_token:
            raise UnauthorizedError("No refresh token provided")
        try:
            user_id = self.issuer.verify_refresh(refresh_token)
        except TokenError:
            raise ForbiddenError("Refresh token is invalid or expired")
        if not self.registry.matches_refresh_token(user_id, refresh_token):
            logger.warning("Refresh token does not match registry", user_id=user_id)
            raise UnauthorizedError("Refresh token is invalid")
        return self.issuer.issue_access(user_id)

    def authenticate(self, access_token: Optional[str]) -> User:
        """Resolve an access token to its user."""
        if not access_token:
            raise UnauthorizedError("Unauthorized - No access token provided")
        try:
            user_id = self.issuer.verify_access(access_token)
        except TokenExpiredError:
            raise UnauthorizedError("Unauthorized - Access token has expired")
        except TokenError:
            raise UnauthorizedError("Unauthorized - Invalid access token")
        user = self.users.find_by_id(user_id)
        if not user:
            raise UnauthorizedError("Unauthorized - User not found")
        return user

    def forgot_password(self, email: Optional[str]) -> str:
        """
        Create a reset grant and email its link.

        Unknown emails raise NotFoundError, which the frontend relies on; this
        does reveal whether an address is registered.
        """
        if not email:
            raise ValidationError("Email is required.")
        user = self.users.find_by_email(email.strip().lower())
        if not user:
            raise NotFoundError("Email not found")

        reset_token = secrets.token_hex(32)
        ttl = self.settings.reset_token_ttl_seconds
        grant = ResetGrant(user_id=user.user_id, expires_at_ms=self._now_ms() + ttl * 1000)
        self.registry.store_reset_grant(reset_token, grant, ttl)

        reset_link = f"{self.client_url}/reset-password?token={reset_token}"
        subject, text, html = templates.password_reset_email(reset_link, reset_token)
        if not self.mailer.send(to=user.email, subject=subject, text=text, html=html):
            raise InternalError("An error occurred while sending the password reset email")
        logger.info("Password reset requested", user_id=user.user_id)
        return reset_token

    def reset_password(self, reset_token: Optional[str], new_password: Optional[str]) -> AuthResult:
        """Redeem a reset grant: new hash, every other session revoked, new pair."""
        if not reset_token:
            raise ValidationError("Invalid or expired reset token")
        grant = self.registry.get_reset_grant(reset_token)
        if grant is None:
            raise ValidationError("Invalid or expired reset token")
        if self._now_ms() > grant.expires_at_ms:
            self.registry.delete_reset_grant(reset_token)
            raise ValidationError("Reset token has expired")
        self._check_password_length(new_password)

        user = self.users.find_by_id(grant.user_id)
        if not user:
            self.registry.delete_reset_grant(reset_token)
            raise ValidationError("Invalid or expired reset token")

        self.registry.revoke_refresh_token(user.user_id)
        self.users.update_password(user.user_id, self._hash(new_password))
        session = self._start_session(user.user_id)
        self.registry.delete_reset_grant(reset_token)
        logger.info("Password reset", user_id=user.user_id)
        return AuthResult(user=user, session=session)

    def user_profile(self, user: User) -> Dict[str, Any]:
        """Public user fields plus the user's orders with their items."""
        orders = self.orders.list_orders_with_items(user.user_id) if self.orders else []
        return {
            "user": {
                "user_name": user.user_name,
                "phone_number": user.phone_number,
                "email": user.email,
            },
            "orders": orders,
        }

    def update_profile(
        self,
        user: User,
        user_name: Optional[str],
        email: Optional[str],
        phone_number: Optional[str],
    ) -> User:
        if not user_name or not user_name.strip():
            raise ValidationError("User name is required.")
        if not phone_number or not phone_number.strip():
            raise ValidationError("Phone number is required.")
        email = normalize_email(email)
        if self.users.email_taken(email, exclude_user_id=user.user_id):
            raise ConflictError("This email already exists. Try a new one.")
        self.users.update_profile(user.user_id, user_name.strip(), email, phone_number.strip())
        logger.info("User profile updated", user_id=user.user_id)
        return self.users.find_by_id(user.user_id)
