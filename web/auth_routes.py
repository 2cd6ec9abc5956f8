"""
FastAPI routes for authentication and account management.

Prefix: /auth (mounted under the app's API prefix)

Tokens travel only as HTTP-only cookies: ``access_token`` (15 minutes) and
``refresh_token`` (7 days), SameSite strict, Secure in production.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.auth.models import SessionPair, User
from storefront.container import Services

from .auth_middleware import ACCESS_COOKIE, REFRESH_COOKIE, get_services, require_login

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupRequest(BaseModel):
    user_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    user_password: Optional[str] = None
    user_role: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    user_password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    resetToken: Optional[str] = None
    newPassword: Optional[str] = None


class UpdateProfileRequest(BaseModel):
    user_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None


def _set_access_cookie(response: JSONResponse, token: str, services: Services) -> None:
    response.set_cookie(
        key=ACCESS_COOKIE,
        value=token,
        max_age=services.settings.auth.access_token_ttl_seconds,
        httponly=True,
        secure=services.settings.app.is_production,
        samesite="strict",
    )


def _set_auth_cookies(response: JSONResponse, session: SessionPair, services: Services) -> None:
    """Attach both session cookies."""
    _set_access_cookie(response, session.access_token, services)
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=session.refresh_token,
        max_age=services.settings.auth.refresh_token_ttl_seconds,
        httponly=True,
        secure=services.settings.app.is_production,
        samesite="strict",
    )


def _clear_auth_cookies(response: JSONResponse, services: Services) -> None:
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key=key,
            httponly=True,
            secure=services.settings.app.is_production,
            samesite="strict",
        )


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, services: Services = Depends(get_services)) -> Any:
    """Register a customer and log them in."""
    result = services.auth.signup(
        user_name=body.user_name,
        email=body.email,
        phone_number=body.phone_number,
        password=body.user_password,
        role=body.user_role,
    )
    response = JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"message": "User has been created successfully", "user": result.user.public()},
    )
    _set_auth_cookies(response, result.session, services)
    return response


@router.post("/login")
def login(body: LoginRequest, services: Services = Depends(get_services)) -> Any:
    result = services.auth.login(body.email, body.user_password)
    user = result.user.public()
    user.pop("phone_number")
    response = JSONResponse(content=user)
    _set_auth_cookies(response, result.session, services)
    return response


@router.post("/logout")
def logout(request: Request, services: Services = Depends(get_services)) -> Any:
    """Log out; succeeds even without a valid refresh cookie."""
    services.auth.logout(request.cookies.get(REFRESH_COOKIE))
    response = JSONResponse({"message": "Logged out successfully"})
    _clear_auth_cookies(response, services)
    return response


@router.post("/refresh-token")
def refresh_token(request: Request, services: Services = Depends(get_services)) -> Any:
    """Issue a new access cookie from the refresh cookie."""
    access_token = services.auth.refresh(request.cookies.get(REFRESH_COOKIE))
    response = JSONResponse({"message": "Token refreshed successfully"})
    _set_access_cookie(response, access_token, services)
    return response


@router.get("/profile")
def profile(current_user: User = Depends(require_login)) -> Dict[str, Any]:
    user = current_user.public()
    user.pop("phone_number")
    return user


@router.post("/forgot-password")
def forgot_password(body: ForgotPasswordRequest, services: Services = Depends(get_services)) -> Dict[str, str]:
    services.auth.forgot_password(body.email)
    return {"message": "Password reset email sent"}


@router.put("/reset-password")
def reset_password(body: ResetPasswordRequest, services: Services = Depends(get_services)) -> Any:
    result = services.auth.reset_password(body.resetToken, body.newPassword)
    response = JSONResponse({"message": "Password reset successful"})
    _set_auth_cookies(response, result.session, services)
    return response


@router.get("/user-profile")
def user_profile(
    current_user: User = Depends(require_login),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Current user's contact details and order history."""
    data = services.auth.user_profile(current_user)
    if not data["orders"]:
        data["message"] = "No orders found for this user."
    return data


@router.put("/update-user-profile")
def update_user_profile(
    body: UpdateProfileRequest,
    current_user: User = Depends(require_login),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    user = services.auth.update_profile(current_user, body.user_name, body.email, body.phone_number)
    return {"message": "User profile updated successfully.", "user": user.public()}
