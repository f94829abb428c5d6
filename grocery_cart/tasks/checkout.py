# grocery_cart/tasks/checkout.py
from grocery_cart.celery_worker import celery_app
from grocery_cart.data.database import SessionLocal
from grocery_cart.domain.identity import UserIdentity
from grocery_cart.services.cart_service import build_cart_service
from grocery_cart.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="grocery_cart.tasks.checkout.clear_cart_after_checkout_task")
def clear_cart_after_checkout_task(user_id: str):
    """
    Wolany przez checkout po udanym zamowieniu.
    Koszyk uzytkownika zostaje (wiersz w bazie), znikaja tylko pozycje.
    """
    logger.info(f"Checkout zakonczony dla uzytkownika {user_id}, czyszcze koszyk")

    db = SessionLocal()
    try:
        cart = build_cart_service(db).clear_cart(UserIdentity(user_id=user_id))
        return {"cart_id": cart.id, "total_items": cart.total_items}
    finally:
        db.close()
