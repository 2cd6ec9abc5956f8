"""Cart, coupons and the payment checkout flow."""
