"""
Celery application configuration for background tasks.

Scheduled tasks:
- Every price_update_interval_minutes: record_token_prices - Store a price history snapshot per token
- Every balance_sync_interval_minutes: sync_wallet_balances - Refresh balances of connected wallets
"""
from datetime import timedelta

from celery import Celery
from oeconomia.config import settings

# Create Celery instance
celery_app = Celery(
    "oeconomia",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "oeconomia.tasks.price_updates",
        "oeconomia.tasks.balance_sync",
    ]
)

# Celery configuration
celery_app.conf.update(
    timezone="UTC",
    enable_utc=True,

    # Task configuration
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    result_expires=86400,  # 24 hours

    # Worker configuration
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,

    # Retry configuration
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Beat schedule
    beat_schedule={
        "record-token-prices": {
            "task": "oeconomia.tasks.price_updates.record_token_prices",
            "schedule": timedelta(minutes=settings.price_update_interval_minutes),
            "options": {
                "expires": settings.price_update_interval_minutes * 60,
            }
        },
        "sync-wallet-balances": {
            "task": "oeconomia.tasks.balance_sync.sync_wallet_balances",
            "schedule": timedelta(minutes=settings.balance_sync_interval_minutes),
            "options": {
                "expires": settings.balance_sync_interval_minutes * 60,
            }
        },
    },
)

if __name__ == "__main__":
    celery_app.start()
