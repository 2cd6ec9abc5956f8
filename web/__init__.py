"""
HTTP layer for the storefront.

Routers are mounted by ``web.main.create_app`` under the configured API prefix:
- web.auth_routes.router
- web.cart_routes.router
- web.coupon_routes.router
- web.payment_routes.router
"""
