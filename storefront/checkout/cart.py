"""Cart operations for the logged-in user."""

from typing import Any, Dict, List, Optional

from ..core.exceptions import NotFoundError, ValidationError
from ..stores.cart import CartStore


def _product_key(product_id: Any) -> str:
    if product_id is None or str(product_id).strip() == "":
        raise ValidationError("Product id is required.")
    return str(product_id).strip()


class CartService:
    def __init__(self, cart: CartStore):
        self.cart = cart

    def get_cart(self, user_id: int) -> List[Dict[str, Any]]:
        return self.cart.list_lines(user_id)

    def add_to_cart(self, user_id: int, product_id: Any) -> List[Dict[str, Any]]:
        self.cart.add(user_id, _product_key(product_id))
        return self.cart.list_lines(user_id)

    def remove_from_cart(self, user_id: int, product_id: Optional[Any] = None) -> List[Dict[str, Any]]:
        """Remove one product, or empty the cart when no product is given."""
        key = None if product_id in (None, "") else _product_key(product_id)
        self.cart.remove(user_id, key)
        return self.cart.list_lines(user_id)

    def update_quantity(self, user_id: int, product_id: Any, quantity: Any) -> List[Dict[str, Any]]:
        key = _product_key(product_id)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError("Quantity must be a non-negative integer.")
        if self.cart.get_line(user_id, key) is None:
            raise NotFoundError("Product not found in cart")
        self.cart.set_quantity(user_id, key, quantity)
        return self.cart.list_lines(user_id)
