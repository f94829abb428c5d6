# grocery_cart/celery_worker.py
from celery import Celery

from grocery_cart.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "grocery_cart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski importowane jawnie, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "grocery_cart.tasks.checkout",
    "grocery_cart.tasks.purge",
)

celery_app.conf.beat_schedule = {
    "purge-guest-carts-hourly": {
        "task": "grocery_cart.tasks.purge.purge_guest_carts_task",
        "schedule": 60.0 * 60,
    },
}

celery_app.conf.timezone = "UTC"
