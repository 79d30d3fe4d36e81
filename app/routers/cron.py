from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.config import settings
from app.schemas.subscription import ExpiryCheckResponse, ReminderResponse
from app.services.subscription import subscription_service
from app.utils.dates import utcnow


def verify_cron_token(authorization: Optional[str] = Header(None)):
    """Check the scheduler's bearer token. Open when CRON_SECRET_TOKEN is unset."""
    if settings.CRON_SECRET_TOKEN and authorization != f"Bearer {settings.CRON_SECRET_TOKEN}":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )


router = APIRouter(dependencies=[Depends(verify_cron_token)])


@router.api_route("/expiry-checker", methods=["GET", "POST"], response_model=ExpiryCheckResponse)
def run_expiry_checker(background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    """
    Expire and suspend lapsed subscriptions.

    Meant to be called daily by an external scheduler.
    """
    results = subscription_service.check_expired_subscriptions(db, background_tasks)
    return ExpiryCheckResponse(
        message="Subscription expiry check completed",
        results=results,
        timestamp=utcnow(),
    )


@router.api_route("/payment-reminders", methods=["GET", "POST"], response_model=ReminderResponse)
def run_payment_reminders(db: Session = Depends(get_db)):
    results = subscription_service.send_payment_reminders(db)
    return ReminderResponse(
        message="Payment reminders processed",
        results=results,
        timestamp=utcnow(),
    )
