# grocery_cart/main.py
from contextlib import asynccontextmanager

import uvicorn

from grocery_cart.api import create_app
from grocery_cart.data.database import Base, engine
from grocery_cart.utils.logging import get_logger

# import modeli przed create_all, zeby byly w Base.metadata
from grocery_cart.data.models import CartModel, CartItemModel  # noqa: F401

logger = get_logger(__name__)


def init_db():
    logger.info(f"Inicjalizacja bazy, tabele: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Nie udalo sie utworzyc tabel: {e}")
        raise


@asynccontextmanager
async def lifespan(app):
    init_db()
    yield


app = create_app(lifespan=lifespan)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
