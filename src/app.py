"""Storefront FastAPI application.

One catalog store and one workflow engine are built per application and kept
on ``app.state``; routers reach them through dependencies. Each request runs
inside the protean domain context that owns its URL prefix.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import structlog
from catalogue.api import product_router
from catalogue.domain import catalogue
from catalogue.product.store import CatalogStore
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.api.routes import cart_router, order_router
from ordering.domain import ordering
from ordering.workflow.engine import OrderWorkflow
from protean.exceptions import ObjectNotFoundError, ValidationError
from shared.config import Settings
from shared.exceptions import (
    EmptyCart,
    InsufficientStock,
    InvalidTransition,
    LineNotFound,
)
from shared.logging import add_context, clear_context, configure_logging

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Logging is configured first so protean leaves the root logger alone.
_settings = Settings()
configure_logging(_settings)

catalogue.init()
ordering.init()

_ROUTE_DOMAIN_MAP = {
    "/products": catalogue,
    "/carts": ordering,
    "/orders": ordering,
}

# Error kind → HTTP status. Anything else is a 422.
_STATUS_CODES = [
    (ObjectNotFoundError, 404),
    (LineNotFound, 404),
    (EmptyCart, 409),
    (InsufficientStock, 409),
    (InvalidTransition, 409),
]


def _resolve_domain(path: str):
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


def _status_code_for(exc: Exception) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 422


async def storefront_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = _status_code_for(exc)
    logger.info(
        "Request rejected",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=status_code,
    )
    messages = getattr(exc, "messages", None) or {"error": [str(exc)]}
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "messages": messages},
    )


def create_app(settings=None, catalog=None, workflow=None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)

    if catalog is None:
        catalog = CatalogStore()
        if settings.seed_catalog:
            catalog.seed()
    if workflow is None:
        workflow = OrderWorkflow(catalog, settings=settings)

    app = FastAPI(
        title="Storefront API",
        description="In-memory storefront with catalogue, carts and orders",
    )
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.workflow = workflow

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ValidationError, storefront_error_handler)
    app.add_exception_handler(ObjectNotFoundError, storefront_error_handler)

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the correct protean domain context for each request."""
        clear_context()
        add_context(method=request.method, path=request.url.path)
        domain = _resolve_domain(request.url.path)
        if domain is not None:
            with domain.domain_context():
                return await call_next(request)
        # Health check, docs
        return await call_next(request)

    app.include_router(product_router)
    app.include_router(cart_router)
    app.include_router(order_router)

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "environment": settings.environment,
            "domains": [catalogue.name, ordering.name],
        }

    return app


app = create_app(_settings)
