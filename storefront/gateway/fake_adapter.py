"""Configurable fake payment gateway for development and testing.

Sessions live in memory. They start ``open``; ``complete_session`` (or
``configure(auto_complete=True)``) plays the part of the customer paying on
the hosted page.
"""

from dataclasses import replace
from typing import Dict, List, Optional
from uuid import uuid4

from ..core.exceptions import GatewayError
from .port import CheckoutSession, GatewayLineItem, PaymentGateway


class FakeGateway(PaymentGateway):
    """In-memory payment gateway."""

    def __init__(self) -> None:
        self.sessions: Dict[str, CheckoutSession] = {}
        self.coupons: Dict[str, int] = {}
        self.calls: List[dict] = []
        self.auto_complete = False

    def configure(self, auto_complete: bool) -> None:
        """Mark new sessions complete immediately."""
        self.auto_complete = auto_complete

    def create_checkout_session(
        self,
        line_items: List[GatewayLineItem],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        coupon_id: Optional[str] = None,
    ) -> CheckoutSession:
        self.calls.append({
            "method": "create_checkout_session",
            "line_items": line_items,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": dict(metadata),
            "coupon_id": coupon_id,
        })
        subtotal = sum(item.unit_amount * item.quantity for item in line_items)
        discount = 0
        if coupon_id is not None:
            if coupon_id not in self.coupons:
                raise GatewayError(f"No such coupon: {coupon_id}", gateway_code="resource_missing")
            discount = (subtotal * self.coupons[coupon_id] + 50) // 100
        session_id = f"cs_test_{uuid4().hex}"
        session = CheckoutSession(
            id=session_id,
            status="complete" if self.auto_complete else "open",
            amount_total=subtotal - discount,
            metadata=dict(metadata),
            payment_method_types=["card"],
            url=f"https://checkout.fake/pay/{session_id}",
        )
        self.sessions[session_id] = session
        return session

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        self.calls.append({"method": "retrieve_checkout_session", "session_id": session_id})
        session = self.sessions.get(session_id)
        if session is None:
            raise GatewayError(f"No such checkout.session: {session_id}", gateway_code="resource_missing")
        return session

    def create_coupon(self, percent_off: int) -> str:
        self.calls.append({"method": "create_coupon", "percent_off": percent_off})
        coupon_id = f"fake_coupon_{uuid4().hex[:12]}"
        self.coupons[coupon_id] = percent_off
        return coupon_id

    def complete_session(self, session_id: str) -> CheckoutSession:
        """Simulate the customer paying."""
        session = replace(self.retrieve_checkout_session(session_id), status="complete")
        self.sessions[session_id] = session
        return session

    def expire_session(self, session_id: str) -> CheckoutSession:
        session = replace(self.retrieve_checkout_session(session_id), status="expired")
        self.sessions[session_id] = session
        return session
