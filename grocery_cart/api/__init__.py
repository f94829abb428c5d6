# grocery_cart/api/__init__.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from requests import RequestException

from grocery_cart.api.routers import carts, health
from grocery_cart.domain.errors import CartVersionConflict, DurableStoreUnavailable, InvalidIdentity
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)


async def _invalid_identity(request: Request, exc: InvalidIdentity):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def _store_unavailable(request: Request, exc: DurableStoreUnavailable):
    return JSONResponse(
        status_code=503,
        content={"detail": "Cart service temporarily unavailable, please retry"},
    )


async def _conflict(request: Request, exc: CartVersionConflict):
    return JSONResponse(
        status_code=409,
        content={"detail": "Cart was modified concurrently, please retry"},
    )


async def _collaborator_down(request: Request, exc: RequestException):
    logger.error(f"Serwis zewnetrzny niedostepny: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Catalog temporarily unavailable, please retry"},
    )


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(
        title="Grocery Cart Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(carts.router)

    app.add_exception_handler(InvalidIdentity, _invalid_identity)
    app.add_exception_handler(DurableStoreUnavailable, _store_unavailable)
    app.add_exception_handler(CartVersionConflict, _conflict)
    app.add_exception_handler(RequestException, _collaborator_down)

    return app
