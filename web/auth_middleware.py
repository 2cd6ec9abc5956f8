"""
FastAPI dependencies for authentication.

require_login() reads the access token from the ``access_token`` cookie
(falling back to ``Authorization: Bearer``), verifies it through the auth
service and returns the user. Failures surface as UnauthorizedError, which
the app's exception handlers turn into a 401.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request

from storefront.auth.models import User
from storefront.container import Services

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"


def get_services(request: Request) -> Services:
    return request.app.state.services


def _extract_token(request: Request) -> Optional[str]:
    # Prefer cookie for browser flows
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()
    return None


def require_login(request: Request, services: Services = Depends(get_services)) -> User:
    """Dependency for protected routes."""
    return services.auth.authenticate(_extract_token(request))
