"""Marketplace stock FastAPI application.

Multi-domain web server that processes commands synchronously via HTTP.
Each request is wrapped in the correct domain context based on URL prefix.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Domains are initialized at module level so uvicorn workers share them.
from uuid import uuid4

from catalogue.domain import catalogue  # noqa: E402
from catalogue.utils.logging import add_context, clear_context
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from inventory.domain import inventory  # noqa: E402
from ordering.domain import ordering  # noqa: E402
from shared.http import register_error_handlers

catalogue.init()
inventory.init()
ordering.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/products": catalogue,
    "/inventory": inventory,
    "/carts": ordering,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Marketstock API",
    description="Marketplace core — product variants, stock reservation and carts",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Bind a request id to the log context and push the Protean domain for the path.

    Paths outside the three contexts (health check, docs) run without a domain.
    The request id is echoed back in ``X-Request-ID``.
    """
    request_id = request.headers.get("x-request-id") or uuid4().hex
    domain = _resolve_domain(request.url.path)

    clear_context()
    add_context(request_id=request_id, path=request.url.path)
    try:
        if domain is None:
            response = await call_next(request)
        else:
            add_context(domain=domain.name)
            with domain.domain_context():
                response = await call_next(request)
    finally:
        clear_context()

    response.headers["X-Request-ID"] = request_id
    return response


register_error_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from catalogue.api import product_router  # noqa: E402
from inventory.api import inventory_router  # noqa: E402
from ordering.api.routes import cart_router  # noqa: E402

app.include_router(product_router)
app.include_router(inventory_router)
app.include_router(cart_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "catalogue": {"name": catalogue.name},
                "inventory": {"name": inventory.name},
                "ordering": {"name": ordering.name},
            },
        }
    )
