"""Coupon lookup, validation and loyalty issuance."""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from ..core.config import CheckoutSettings
from ..core.db import from_utc_iso, utcnow
from ..core.exceptions import NotFoundError
from ..core.logger import get_logger
from ..stores.coupons import CouponStore

logger = get_logger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_coupon_code(prefix: str = "GIFT", length: int = 6) -> str:
    return prefix + "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class CouponService:
    def __init__(self, coupons: CouponStore, settings: CheckoutSettings,
                 now: Callable[[], datetime] = utcnow):
        self.coupons = coupons
        self.settings = settings
        self.now = now

    def get_coupon(self, user_id: int) -> Optional[Dict[str, Any]]:
        """The user's first active coupon, or None."""
        return self.coupons.find_active_for_user(user_id)

    def validate_coupon(self, user_id: int, code: Optional[str]) -> Dict[str, Any]:
        """
        Check that ``code`` is an active coupon of ``user_id``.

        An expired coupon is switched off on the spot, so the next attempt with
        the same code reports it as not found.
        """
        if not code:
            raise NotFoundError("Coupon not found")
        coupon = self.coupons.find_active_by_code(code, user_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        if from_utc_iso(coupon["expiration_date"]) < self.now():
            self.coupons.deactivate(coupon["coupon_id"])
            logger.info("Coupon expired and deactivated", coupon_id=coupon["coupon_id"], user_id=user_id)
            raise NotFoundError("Coupon expired")
        return {
            "message": "Coupon is valid",
            "code": coupon["coupon_code"],
            "discountPercentage": coupon["discount_percentage"],
        }

    def find_redeemable(self, user_id: int, code: str) -> Optional[Dict[str, Any]]:
        return self.coupons.find_redeemable(code, user_id, self.now())

    def issue_loyalty_coupon(self, user_id: int) -> str:
        """Grant a single-use percentage coupon valid for the configured days."""
        code = generate_coupon_code()
        expiration = self.now() + timedelta(days=self.settings.loyalty_valid_days)
        self.coupons.create(
            coupon_code=code,
            discount_percentage=self.settings.loyalty_discount_percentage,
            expiration_date=expiration,
            user_id=user_id,
            usage_limit=1,
        )
        logger.info("Loyalty coupon issued", user_id=user_id, coupon_code=code)
        return code
