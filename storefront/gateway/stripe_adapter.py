"""Stripe payment gateway adapter over the Stripe HTTP API.

Stripe takes form-encoded bodies with bracketed keys
(``line_items[0][price_data][unit_amount]=2500``); ``encode_form`` flattens
nested dicts/lists into that shape.
"""

from typing import Any, Dict, List, Optional, Tuple

import requests

from ..core.exceptions import GatewayError
from ..core.logger import get_logger
from .port import CheckoutSession, GatewayLineItem, PaymentGateway

logger = get_logger(__name__)

STRIPE_API_BASE = "https://api.stripe.com/v1"


def encode_form(data: Dict[str, Any], prefix: str = "") -> List[Tuple[str, str]]:
    """Flatten nested params into Stripe's bracketed form keys."""
    pairs: List[Tuple[str, str]] = []
    for key, value in data.items():
        full_key = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, dict):
            pairs.extend(encode_form(value, full_key))
        elif isinstance(value, list):
            for i, item in enumerate(value):
                item_key = f"{full_key}[{i}]"
                if isinstance(item, dict):
                    pairs.extend(encode_form(item, item_key))
                else:
                    pairs.append((item_key, str(item)))
        elif isinstance(value, bool):
            pairs.append((full_key, "true" if value else "false"))
        else:
            pairs.append((full_key, str(value)))
    return pairs


def _session_from_payload(data: Dict[str, Any]) -> CheckoutSession:
    return CheckoutSession(
        id=data["id"],
        status=data.get("status") or "open",
        amount_total=int(data.get("amount_total") or 0),
        metadata={k: str(v) for k, v in (data.get("metadata") or {}).items()},
        payment_method_types=list(data.get("payment_method_types") or ["card"]),
        url=data.get("url"),
    )


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, api_base: str = STRIPE_API_BASE, timeout: int = 30,
                 session: Optional[requests.Session] = None):
        if not api_key:
            raise ValueError("Stripe secret key is required for the stripe gateway")
        self.api_key = api_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.api_base}{path}"
        try:
            r = self.http.request(
                method,
                url,
                data=encode_form(params) if params else None,
                auth=(self.api_key, ""),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Stripe request failed", path=path, error=str(e))
            raise GatewayError(f"Payment gateway unreachable: {e}")
        try:
            data = r.json()
        except ValueError:
            raise GatewayError(f"Payment gateway returned non-JSON response (HTTP {r.status_code})")
        if r.status_code >= 400 or "error" in data:
            err = data.get("error") or {}
            msg = err.get("message", str(err)) if isinstance(err, dict) else str(err)
            code = err.get("code") if isinstance(err, dict) else None
            logger.error("Stripe API error", path=path, status=r.status_code, code=code, error=msg)
            raise GatewayError(msg or f"Payment gateway error (HTTP {r.status_code})", gateway_code=code)
        return data

    def create_checkout_session(
        self,
        line_items: List[GatewayLineItem],
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        coupon_id: Optional[str] = None,
    ) -> CheckoutSession:
        params: Dict[str, Any] = {
            "payment_method_types": ["card"],
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "line_items": [
                {
                    "price_data": {
                        "currency": item.currency,
                        "product_data": {
                            "name": item.name,
                            "images": [item.image_url] if item.image_url else None,
                        },
                        "unit_amount": item.unit_amount,
                    },
                    "quantity": item.quantity,
                }
                for item in line_items
            ],
            "metadata": metadata,
        }
        if coupon_id:
            params["discounts"] = [{"coupon": coupon_id}]
        data = self._request("POST", "/checkout/sessions", params)
        return _session_from_payload(data)

    def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        data = self._request("GET", f"/checkout/sessions/{session_id}")
        return _session_from_payload(data)

    def create_coupon(self, percent_off: int) -> str:
        data = self._request("POST", "/coupons", {"percent_off": percent_off, "duration": "once"})
        return data["id"]

