"""FastAPI application factory."""

from __future__ import annotations

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ardhiflow.config.logging import setup_logging
from ardhiflow.config.settings import get_settings
from ardhiflow.payments.store import PaymentStatusStore
from ardhiflow.web.dependencies import get_payment_store
from ardhiflow.web.middleware import RequestIDMiddleware, TenantGateMiddleware
from ardhiflow.web.routes.auth import router as auth_router
from ardhiflow.web.routes.payments import router as payments_router
from ardhiflow.web.routes.tenant import router as tenant_router

logger = structlog.get_logger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    setup_logging(
        log_level=settings.log_level,
        json_output=not settings.debug,
        environment=settings.environment,
    )

    app = FastAPI(
        title="ArdhiFlow",
        description="Multi-tenant real estate management backend",
        version="0.1.0",
    )

    # Middleware: last added runs first
    app.add_middleware(TenantGateMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)

    @app.get("/api/health")
    async def health_check(
        store: PaymentStatusStore = Depends(get_payment_store),
    ) -> dict[str, object]:
        from ardhiflow.web.health import check_health

        return await check_health(store)

    app.include_router(auth_router)
    app.include_router(tenant_router)
    app.include_router(payments_router)

    logger.info("app_created", environment=settings.environment)
    return app
