"""Payment gateway port (abstract interface).

Defines the contract that gateway adapters implement so the checkout flow can
run against FakeGateway (development/tests) or StripeGateway (production)
without change.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class GatewayLineItem:
    """One priced line sent to the gateway."""

    name: str
    unit_amount: int  # cents
    quantity: int
    currency: str = "usd"
    image_url: Optional[str] = None


@dataclass(frozen=True)
class CheckoutSession:
    """Gateway-side view of a checkout session."""

    id: str
    status: str  # open | complete | expired
    amount_total: int  # cents, after discounts
    metadata: Dict[str, str] = field(default_factory=dict)
    payment_method_types: List[str] = field(default_factory=lambda: ["card"])
    url: Optional[str] = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_checkout_session(
        self,
        line_items: List[GatewayLineItem],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        coupon_id: Optional[str] = None,
    ) -> CheckoutSession:
        """Create a hosted checkout session for ``line_items``."""
        ...

    @abstractmethod
    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        """Fetch the current state of a checkout session."""
        ...

    @abstractmethod
    def create_coupon(self, percent_off: int) -> str:
        """Register a one-time percentage discount. Returns the gateway coupon id."""
        ...
