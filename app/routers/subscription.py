from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.logging_config import logger
from app.core.permissions import require_tenant_admin
from app.core.tenant_context import get_current_tenant
from app.models.tenant import Tenant
from app.schemas.subscription import ActivateSubscriptionRequest, ActivateSubscriptionResponse, BillingResponse
from app.services.subscription import subscription_service

router = APIRouter(dependencies=[Depends(require_tenant_admin)])


@router.post("/activate", response_model=ActivateSubscriptionResponse)
def activate_subscription(
    data: ActivateSubscriptionRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    """
    Subscribe the store to a plan, or renew the current one.

    A subscription that is still running is extended from its current
    expiry date; otherwise the new term starts now.

    Args:
        data: Plan to activate
        background_tasks: FastAPI background task queue
        db: Database session
        tenant: Current store (auto-set from JWT)

    Returns:
        Updated subscription state and the plan
    """
    try:
        logger.info(f"Activating subscription: tenant_id={tenant.id}, plan_id={data.plan_id}")
        return subscription_service.activate(db, tenant, data.plan_id, background_tasks)
    except Exception as e:
        logger.error(f"Error activating subscription: {type(e).__name__}: {str(e)}")
        raise


@router.get("/billing", response_model=BillingResponse)
def get_billing(
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    return subscription_service.get_billing(db, tenant)
