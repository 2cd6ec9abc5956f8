"""Custom exceptions for the storefront backend"""

from typing import Optional


class StorefrontError(Exception):
    """Base exception for the storefront; carries the HTTP status it maps to"""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        super().__init__(message)


class ValidationError(StorefrontError):
    """Malformed or missing input"""

    status_code = 400


class ConflictError(StorefrontError):
    """Unique value already taken (e.g. a registered email).

    Reported as 400 because the storefront frontend treats every
    signup/profile rejection as a 400.
    """

    status_code = 400


class UnauthorizedError(StorefrontError):
    """Missing, invalid, expired or mismatched credential"""

    status_code = 401


class ForbiddenError(StorefrontError):
    """Credential present but not acceptable for this action"""

    status_code = 403


class NotFoundError(StorefrontError):
    """Unknown email, coupon, cart line or order"""

    status_code = 404


class InternalError(StorefrontError):
    """Collaborator failure (database, gateway, mail)"""

    status_code = 500


class GatewayError(InternalError):
    """Error returned by the payment gateway"""

    def __init__(self, message: str, gateway_code: Optional[str] = None):
        self.gateway_code = gateway_code
        super().__init__(message)


class ConfigError(InternalError):
    """Configuration error"""
    pass


class TokenError(Exception):
    """Signed credential failed verification"""
    pass


class TokenExpiredError(TokenError):
    """Signed credential is authentic but past its max age"""
    pass
