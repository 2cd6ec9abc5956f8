"""
Cart routes for the logged-in user.

Prefix: /cart
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends

from storefront.auth.models import User
from storefront.container import Services

from .auth_middleware import get_services, require_login

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("")
def get_cart(
    current_user: User = Depends(require_login),
    services: Services = Depends(get_services),
) -> List[Dict[str, Any]]:
    return services.cart.get_cart(current_user.user_id)


@router.post("")
def add_to_cart(
    body: Optional[Dict[str, Any]] = Body(default=None),
    current_user: User = Depends(require_login),
    services: Services = Depends(get_services),
) -> List[Dict[str, Any]]:
    """Add one unit of ``productId``."""
    return services.cart.add_to_cart(current_user.user_id, (body or {}).get("productId"))


@router.delete("")
def remove_from_cart(
    body: Optional[Dict[str, Any]] = Body(default=None),
    current_user: User = Depends(require_login),
    services: Services = Depends(get_services),
) -> List[Dict[str, Any]]:
    """Remove ``productId``; without one the whole cart is emptied."""
    product_id = (body or {}).get("productId")
    return services.cart.remove_from_cart(current_user.user_id, product_id)


@router.put("/{product_id}")
def update_quantity(
    product_id: str,
    body: Optional[Dict[str, Any]] = Body(default=None),
    current_user: User = Depends(require_login),
    services: Services = Depends(get_services),
) -> List[Dict[str, Any]]:
    return services.cart.update_quantity(current_user.user_id, product_id, (body or {}).get("quantity"))
