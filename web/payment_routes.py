"""
Checkout routes.

Prefix: /payments

The client posts its cart to ``/create-checkout-session``, sends the customer
to the returned gateway URL, and after the redirect back posts the session id
to ``/checkout-success`` to turn the paid session into an order.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.auth.models import User
from storefront.container import Services
from storefront.core.logger import get_logger

from .auth_middleware import get_services, require_login

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


class CreateCheckoutSessionRequest(BaseModel):
    products: Any = None
    couponCode: Optional[str] = None


class CheckoutSuccessRequest(BaseModel):
    sessionId: Optional[str] = None


@router.post("/create-checkout-session")
def create_checkout_session(
    body: CreateCheckoutSessionRequest,
    current_user: User = Depends(require_login),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    result = services.checkout.create_checkout_session(
        current_user.user_id, body.products, body.couponCode
    )
    return {"id": result.session_id, "totalAmount": result.total_amount, "url": result.url}


@router.post("/checkout-success")
def checkout_success(
    body: CheckoutSuccessRequest,
    current_user: User = Depends(require_login),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    confirmation = services.checkout.checkout_success(current_user.user_id, body.sessionId)
    if confirmation.already_processed:
        logger.info("Checkout already processed", order_id=confirmation.order_id)
    return {
        "success": True,
        "message": "Payment successful, order created, and coupon deactivated if used.",
        "orderId": confirmation.order_id,
    }
