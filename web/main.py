"""
FastAPI application for the storefront API.

Run with ``uvicorn web.main:create_app --factory`` or through the root
``main.py``. Tests call ``create_app(services)`` with fakes wired in.
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.container import Services, build_services
from storefront.core.config import load_settings
from storefront.core.logger import configure_logging, get_logger

from .auth_routes import router as auth_router
from .cart_routes import router as cart_router
from .coupon_routes import router as coupon_router
from .errors import register_exception_handlers
from .payment_routes import router as payment_router

logger = get_logger(__name__)


def create_app(services: Optional[Services] = None) -> FastAPI:
    if services is None:
        settings = load_settings()
        configure_logging(settings.logging)
        services = build_services(settings)
    settings = services.settings

    app = FastAPI(
        title=settings.app.name,
        description="Storefront API: accounts, cart, coupons and checkout",
        version=settings.app.version,
    )
    app.state.services = services

    # Cookies carry the session, so origins must be explicit
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    prefix = settings.app.api_prefix
    for router in (auth_router, cart_router, coupon_router, payment_router):
        app.include_router(router, prefix=prefix)

    @app.get(f"{prefix}/health")
    def health() -> Any:
        db_ok = services.db.ping()
        body: Dict[str, Any] = {
            "status": "ok" if db_ok else "degraded",
            "environment": settings.app.environment,
            "database": db_ok,
        }
        return JSONResponse(status_code=200 if db_ok else 503, content=body)

    logger.info("Storefront app created", environment=settings.app.environment, api_prefix=prefix)
    return app
