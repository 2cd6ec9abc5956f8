"""
Coupon routes.

Prefix: /coupon
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.auth.models import User
from storefront.container import Services

from .auth_middleware import get_services, require_login

router = APIRouter(prefix="/coupon", tags=["coupon"])


class ValidateCouponRequest(BaseModel):
    code: Optional[str] = None


@router.get("")
def get_coupon(
    current_user: User = Depends(require_login),
    services: Services = Depends(get_services),
) -> Optional[Dict[str, Any]]:
    """The user's active coupon, or null."""
    coupon = services.coupons.get_coupon(current_user.user_id)
    if not coupon:
        return None
    return {
        "code": coupon["coupon_code"],
        "discountPercentage": coupon["discount_percentage"],
        "expirationDate": coupon["expiration_date"],
        "isActive": coupon["is_active"],
    }


@router.post("/validate")
def validate_coupon(
    body: ValidateCouponRequest,
    current_user: User = Depends(require_login),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    return services.coupons.validate_coupon(current_user.user_id, body.code)
