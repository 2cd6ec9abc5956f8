"""Checkout data models."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from ..core.exceptions import ValidationError


def to_cents(price: Any) -> int:
    """Convert a currency amount (number or numeric string) to integer cents, half-up."""
    try:
        value = Decimal(str(price))
        if not value.is_finite():
            raise ValidationError("Invalid product structure")
        # quantize raises InvalidOperation past the context precision (e.g. "1e30")
        return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except (InvalidOperation, ValueError):
        raise ValidationError("Invalid product structure")


def percent_of(cents: int, percentage: int) -> int:
    """``percentage`` % of ``cents`` rounded half-up to whole cents."""
    return (cents * percentage + 50) // 100


@dataclass(frozen=True)
class CheckoutLine:
    """A validated cart line as sent by the client."""

    product_id: str
    product_name: str
    price: Any
    unit_amount: int  # cents
    quantity: int
    image_url: Optional[str] = None

    @classmethod
    def parse(cls, raw: Any) -> "CheckoutLine":
        """Validate one client-supplied product entry."""
        if not isinstance(raw, dict):
            raise ValidationError("Invalid product structure")
        product_id = raw.get("product_id")
        product_name = raw.get("product_name")
        price = raw.get("price")
        quantity = raw.get("quantity")
        if product_id in (None, "") or not product_name or price in (None, "", 0):
            raise ValidationError("Invalid product structure")
        # bool is an int subclass; reject it explicitly
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Invalid product structure")
        unit_amount = to_cents(price)
        if unit_amount <= 0:
            raise ValidationError("Invalid product structure")
        image_url = raw.get("image_url")
        return cls(
            product_id=str(product_id),
            product_name=str(product_name),
            price=price,
            unit_amount=unit_amount,
            quantity=quantity,
            image_url=image_url if isinstance(image_url, str) and image_url else None,
        )

    def snapshot(self) -> Dict[str, Any]:
        """The compact form kept in gateway metadata."""
        return {"id": self.product_id, "quantity": self.quantity, "price": self.price}


def parse_lines(products: Any) -> List[CheckoutLine]:
    if not isinstance(products, list) or not products:
        raise ValidationError("Invalid or empty products array")
    return [CheckoutLine.parse(p) for p in products]


@dataclass(frozen=True)
class CheckoutSessionResult:
    session_id: str
    total_amount_cents: int
    url: Optional[str] = None
    coupon_applied: bool = False
    loyalty_coupon_code: Optional[str] = None

    @property
    def total_amount(self) -> float:
        return self.total_amount_cents / 100


@dataclass(frozen=True)
class CheckoutConfirmation:
    order_id: int
    email_status: Optional[str]  # sent | failed; None while another request is still sending
    already_processed: bool = False
