"""
Checkout flow: payment session creation and order materialization.

Between ``create_checkout_session`` and ``checkout_success`` nothing is kept
locally; the gateway session (status, amount and metadata) is the only record
of what the customer is paying for.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Dict, List, Optional

from ..core.config import CheckoutSettings
from ..core.db import Database
from ..core.exceptions import ForbiddenError, GatewayError, ValidationError
from ..core.logger import get_logger
from ..gateway.port import GatewayLineItem, PaymentGateway
from ..mail import templates
from ..mail.port import Mailer
from ..stores.coupons import CouponStore
from ..stores.orders import OrderStore
from ..stores.users import UserStore
from .coupons import CouponService
from .models import CheckoutConfirmation, CheckoutSessionResult, parse_lines, percent_of

logger = get_logger(__name__)

PAYMENT_STATUS = "completed"


def metadata_products(metadata: Dict[str, str]) -> List[Dict[str, Any]]:
    """Decode the JSON product snapshot stored in session metadata."""
    try:
        products = json.loads(metadata.get("products") or "[]")
    except ValueError:
        raise GatewayError("Checkout session metadata is corrupt")
    if not isinstance(products, list):
        raise GatewayError("Checkout session metadata is corrupt")
    return products


class CheckoutService:
    def __init__(
        self,
        db: Database,
        orders: OrderStore,
        coupon_store: CouponStore,
        coupons: CouponService,
        users: UserStore,
        gateway: PaymentGateway,
        mailer: Mailer,
        settings: CheckoutSettings,
        client_url: str,
        currency: str = "usd",
    ):
        self.db = db
        self.orders = orders
        self.coupon_store = coupon_store
        self.coupons = coupons
        self.users = users
        self.gateway = gateway
        self.mailer = mailer
        self.settings = settings
        self.client_url = client_url.rstrip("/")
        self.currency = currency

    def create_checkout_session(self, user_id: int, products: Any,
                                coupon_code: Optional[str] = None) -> CheckoutSessionResult:
        """
        Price the cart, apply an optional coupon and open a gateway session.

        A cart whose subtotal reaches the loyalty threshold earns a new coupon
        right away, whether or not the customer goes on to pay.
        """
        lines = parse_lines(products)
        subtotal = sum(line.unit_amount * line.quantity for line in lines)

        total = subtotal
        gateway_coupon_id = None
        coupon_applied = False
        if coupon_code:
            coupon = self.coupons.find_redeemable(user_id, coupon_code)
            if coupon:
                percentage = coupon["discount_percentage"]
                total -= percent_of(subtotal, percentage)
                gateway_coupon_id = self.gateway.create_coupon(percentage)
                coupon_applied = True
            else:
                logger.info("Coupon not redeemable, charging full price", user_id=user_id)

        session = self.gateway.create_checkout_session(
            line_items=[
                GatewayLineItem(
                    name=line.product_name,
                    unit_amount=line.unit_amount,
                    quantity=line.quantity,
                    currency=self.currency,
                    image_url=line.image_url,
                )
                for line in lines
            ],
            success_url=f"{self.client_url}/purchase-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.client_url}/purchase-cancel",
            metadata={
                "userId": str(user_id),
                "couponCode": coupon_code if coupon_applied else "",
                "products": json.dumps([line.snapshot() for line in lines]),
            },
            coupon_id=gateway_coupon_id,
        )

        loyalty_code = None
        if subtotal >= self.settings.loyalty_threshold_cents:
            loyalty_code = self.coupons.issue_loyalty_coupon(user_id)

        logger.info(
            "Checkout session created",
            user_id=user_id,
            session_id=session.id,
            total_cents=total,
            coupon_applied=coupon_applied,
        )
        return CheckoutSessionResult(
            session_id=session.id,
            total_amount_cents=total,
            url=session.url,
            coupon_applied=coupon_applied,
            loyalty_coupon_code=loyalty_code,
        )

    def checkout_success(self, user_id: int, session_id: Optional[str]) -> CheckoutConfirmation:
        """
        Materialize the order for a paid session.

        Coupon deactivation, order, items and payment commit together; the
        confirmation email and its notification row follow the commit and
        never fail the call.
        """
        if not session_id:
            raise ValidationError("Session id is required")
        session = self.gateway.retrieve_checkout_session(session_id)
        if session.status != "complete":
            logger.info("Checkout not complete", session_id=session_id, status=session.status)
            raise ValidationError("Payment not successful")

        metadata = session.metadata
        try:
            owner_id = int(metadata.get("userId", ""))
        except ValueError:
            raise GatewayError("Checkout session metadata is corrupt")
        if owner_id != user_id:
            raise ForbiddenError("Checkout session belongs to another user")

        existing = self.orders.find_order_by_session(session_id)
        if existing:
            notifications = self.orders.get_notifications(existing["order_id"])
            email_status = notifications[-1]["email_status"] if notifications else "failed"
            return CheckoutConfirmation(order_id=existing["order_id"], email_status=email_status,
                                        already_processed=True)

        products = metadata_products(metadata)
        coupon_code = metadata.get("couponCode") or ""
        amount = session.amount_total / 100
        payment_method = session.payment_method_types[0] if session.payment_method_types else "card"

        try:
            with self.db.connect() as conn:
                if coupon_code:
                    self.coupon_store.deactivate_code(coupon_code, owner_id, conn=conn)
                order_id = self.orders.create_order(
                    owner_id, amount, self.settings.order_status, session_id, conn=conn
                )
                for product in products:
                    self.orders.add_order_item(
                        order_id,
                        product["id"],
                        int(product["quantity"]),
                        float(product["price"]),
                        conn=conn,
                    )
                self.orders.record_payment(order_id, payment_method, PAYMENT_STATUS, amount, conn=conn)
        except sqlite3.IntegrityError:
            # a concurrent confirmation of the same session committed first
            existing = self.orders.find_order_by_session(session_id)
            if not existing:
                raise
            return CheckoutConfirmation(order_id=existing["order_id"], email_status=None,
                                        already_processed=True)
        logger.info("Order created", order_id=order_id, user_id=owner_id, session_id=session_id)

        email_status = self._send_confirmation(owner_id, order_id)
        self.orders.record_notification(order_id, owner_id, email_status)
        return CheckoutConfirmation(order_id=order_id, email_status=email_status)

    def _send_confirmation(self, user_id: int, order_id: int) -> str:
        """Send the order confirmation; returns "sent" or "failed"."""
        user = self.users.find_by_id(user_id)
        if not user:
            logger.warning("Confirmation email skipped, user missing", user_id=user_id, order_id=order_id)
            return "failed"
        subject, text, html = templates.order_confirmation_email(user.user_name, order_id)
        try:
            sent = self.mailer.send(to=user.email, subject=subject, text=text, html=html)
        except Exception as e:
            logger.error("Error sending confirmation email", order_id=order_id, error=str(e))
            sent = False
        if not sent:
            logger.warning("Confirmation email failed", order_id=order_id, user_id=user_id)
        return "sent" if sent else "failed"
