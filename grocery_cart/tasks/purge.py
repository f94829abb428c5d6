# grocery_cart/tasks/purge.py
from datetime import datetime, timezone, timedelta

from grocery_cart.celery_worker import celery_app
from grocery_cart.data.database import SessionLocal
from grocery_cart.repos.cart_repo import CartRepo
from grocery_cart.utils.settings import GUEST_CART_RETENTION_SECONDS
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="grocery_cart.tasks.purge.purge_guest_carts_task")
def purge_guest_carts_task():
    # wpisy w redisie wygasaja same (TTL), w bazie trzeba je posprzatac
    logger.info("Purge guest carts task started")

    cutoff = datetime.now(timezone.utc) - timedelta(seconds=GUEST_CART_RETENTION_SECONDS)
    db = SessionLocal()
    try:
        removed = CartRepo(db).purge_guest_carts(updated_before=cutoff)
    finally:
        db.close()

    logger.info(f"Removed {removed} stale guest carts")
    return {"removed": removed}
