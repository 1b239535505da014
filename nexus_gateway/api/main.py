"""FastAPI application factory"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from nexus_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from nexus_gateway.api.v1 import admin, cards, payees, payments, validation
from nexus_gateway.domain.exceptions import PrivilegeError
from nexus_gateway.infrastructure.observability.logging import setup_logging
from nexus_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Nexus Payments Gateway",
        description="Payment rail selection, payee checks and card tokenization",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(PrivilegeError)
    async def privilege_error_handler(request: Request, exc: PrivilegeError):
        return JSONResponse(status_code=403, content={"detail": "Forbidden"})

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(validation.router, prefix="/v1", tags=["validation"])
    app.include_router(payees.router, prefix="/v1", tags=["payees"])
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(cards.router, prefix="/v1", tags=["cards"])
    app.include_router(admin.router, prefix="/v1/admin", tags=["admin"])

    return app


app = create_app()
