"""HTTP error mapping shared by the context routers.

Protean's own handlers cover ``ValidationError`` (400) and
``ObjectNotFoundError`` (404). Stock ledger failures that escape the
reservation engine and cart rejections are mapped here.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

logger = structlog.get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    from inventory.stock.exceptions import (
        InsufficientStock,
        InvariantViolation,
        StockLedgerUnavailable,
        StockNotFound,
    )
    from ordering.cart.guard import CartRejected

    register_exception_handlers(app)

    @app.exception_handler(CartRejected)
    async def cart_rejected(request: Request, exc: CartRejected):
        return JSONResponse(status_code=400, content={"error": exc.rejection.to_dict()})

    @app.exception_handler(InsufficientStock)
    async def insufficient_stock(request: Request, exc: InsufficientStock):
        return JSONResponse(
            status_code=409,
            content={
                "error": "insufficient_stock",
                "available": exc.available,
                "message": f"Only {exc.available} available",
            },
        )

    @app.exception_handler(StockNotFound)
    async def stock_not_found(request: Request, exc: StockNotFound):
        return JSONResponse(status_code=404, content={"error": "not_found", "message": str(exc)})

    @app.exception_handler(StockLedgerUnavailable)
    async def ledger_unavailable(request: Request, exc: StockLedgerUnavailable):
        return JSONResponse(
            status_code=503,
            content={"error": "unavailable", "message": "Stock service is temporarily unavailable"},
        )

    @app.exception_handler(InvariantViolation)
    async def invariant_violation(request: Request, exc: InvariantViolation):
        logger.error("Stock invariant violated", entity_id=exc.entity_id, path=request.url.path)
        return JSONResponse(status_code=500, content={"error": "invariant_violation", "message": str(exc)})
