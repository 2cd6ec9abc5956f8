"""
Service wiring.

``build_services`` turns a ``Settings`` object into the set of collaborators
the HTTP layer uses. Tests build their own ``Services`` with fakes instead of
patching module globals.
"""

from dataclasses import dataclass
from typing import Optional

from .auth.registry import SessionRegistry
from .auth.service import AuthService
from .auth.tokens import TokenIssuer
from .checkout.cart import CartService
from .checkout.coupons import CouponService
from .checkout.service import CheckoutService
from .core.config import Settings
from .core.db import Database
from .core.exceptions import ConfigError
from .core.logger import get_logger
from .gateway.fake_adapter import FakeGateway
from .gateway.port import PaymentGateway
from .gateway.stripe_adapter import StripeGateway
from .mail.fake_adapter import FakeMailer
from .mail.port import Mailer
from .mail.smtp_adapter import SmtpMailer
from .stores.cart import CartStore
from .stores.coupons import CouponStore
from .stores.kv import KeyValueStore, SqliteKeyValueStore
from .stores.orders import OrderStore
from .stores.users import UserStore

logger = get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    db: Database
    kv: KeyValueStore
    gateway: PaymentGateway
    mailer: Mailer
    auth: AuthService
    cart: CartService
    coupons: CouponService
    checkout: CheckoutService


def build_gateway(settings: Settings) -> PaymentGateway:
    payments = settings.payments
    if payments.gateway == "fake":
        return FakeGateway()
    if payments.gateway == "stripe":
        if not payments.stripe_secret_key:
            raise ConfigError("STRIPE_SECRET_KEY must be set when PAYMENT_GATEWAY=stripe")
        return StripeGateway(
            api_key=payments.stripe_secret_key,
            api_base=payments.stripe_api_base,
            timeout=payments.timeout_seconds,
        )
    raise ConfigError(f"Unknown payment gateway: {payments.gateway}")


def build_mailer(settings: Settings) -> Mailer:
    mail = settings.mail
    if mail.backend == "fake":
        return FakeMailer()
    if mail.backend == "smtp":
        if not mail.smtp_host:
            raise ConfigError("SMTP_HOST must be set when MAIL_BACKEND=smtp")
        return SmtpMailer(
            host=mail.smtp_host,
            port=mail.smtp_port,
            username=mail.smtp_user,
            password=mail.smtp_password,
            from_email=mail.from_email,
            use_tls=mail.use_tls,
        )
    raise ConfigError(f"Unknown mail backend: {mail.backend}")


def build_services(
    settings: Settings,
    db: Optional[Database] = None,
    kv: Optional[KeyValueStore] = None,
    gateway: Optional[PaymentGateway] = None,
    mailer: Optional[Mailer] = None,
) -> Services:
    """Build every collaborator; explicit arguments replace the configured ones."""
    auth_settings = settings.auth
    if settings.app.is_production and any(
        secret.startswith("change-me") for secret in (auth_settings.access_token_secret, auth_settings.refresh_token_secret)
    ):
        raise ConfigError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must be set in production")

    db = db or Database(settings.database.path)
    db.init_schema()
    kv = kv or SqliteKeyValueStore(db)
    # drop entries (unredeemed reset grants, stale refresh slots) left by earlier runs
    purged = kv.purge_expired()
    if purged:
        logger.info("Expired key-value entries purged", count=purged)
    gateway = gateway or build_gateway(settings)
    mailer = mailer or build_mailer(settings)

    users = UserStore(db)
    orders = OrderStore(db)
    coupon_store = CouponStore(db)

    try:
        issuer = TokenIssuer(
            access_secret=settings.auth.access_token_secret,
            refresh_secret=settings.auth.refresh_token_secret,
            access_ttl_seconds=settings.auth.access_token_ttl_seconds,
            refresh_ttl_seconds=settings.auth.refresh_token_ttl_seconds,
        )
    except ValueError as e:
        raise ConfigError(str(e))

    auth = AuthService(
        users=users,
        registry=SessionRegistry(kv),
        issuer=issuer,
        mailer=mailer,
        settings=settings.auth,
        client_url=settings.app.client_url,
        orders=orders,
    )
    coupons = CouponService(coupon_store, settings.checkout)
    checkout = CheckoutService(
        db=db,
        orders=orders,
        coupon_store=coupon_store,
        coupons=coupons,
        users=users,
        gateway=gateway,
        mailer=mailer,
        settings=settings.checkout,
        client_url=settings.app.client_url,
        currency=settings.payments.currency,
    )
    return Services(
        settings=settings,
        db=db,
        kv=kv,
        gateway=gateway,
        mailer=mailer,
        auth=auth,
        cart=CartService(CartStore(db)),
        coupons=coupons,
        checkout=checkout,
    )
