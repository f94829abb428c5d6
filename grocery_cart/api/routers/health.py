# grocery_cart/api/routers/health.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from grocery_cart.api.dependencies import get_cache
from grocery_cart.data.database import get_db
from grocery_cart.repos.cart_repo import CartRepo
from grocery_cart.services.cart_cache import CartCache

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db), cache: CartCache = Depends(get_cache)):
    database_ok = CartRepo(db).ping()
    redis_ok = cache.ping()

    if not database_ok:
        status = "unhealthy"
    elif not redis_ok:
        # bez cache dzialamy dalej, tylko wolniej
        status = "degraded"
    else:
        status = "ok"

    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={
            "status": status,
            "database": "up" if database_ok else "down",
            "redis": "up" if redis_ok else "down",
        },
    )
