"""
python -m scripts.check_subscriptions

Runs the subscription expiry check and the payment reminders once, for
deployments that schedule jobs with cron instead of calling /api/cron.
"""

import sys

sys.path.insert(0, ".")

from dotenv import load_dotenv
load_dotenv()

from fastapi import BackgroundTasks
from app.database import SessionLocal
from app.services.subscription import subscription_service


def check_subscriptions():
    db = SessionLocal()
    tasks = BackgroundTasks()

    try:
        expiry = subscription_service.check_expired_subscriptions(db, tasks)
        reminders = subscription_service.send_payment_reminders(db)
    finally:
        db.close()

    # Expiry emails were queued as tasks; send them now
    for task in tasks.tasks:
        task.func(*task.args, **task.kwargs)

    print(f"Expiry check: {expiry.model_dump()}")
    print(f"Payment reminders: {reminders.model_dump()}")


if __name__ == "__main__":
    check_subscriptions()
