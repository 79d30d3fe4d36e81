from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from fastapi import BackgroundTasks
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.logging_config import logger
from app.crud.tenant import tenant as tenant_crud
from app.models.price_plan import PricePlan
from app.models.tenant import Tenant, TenantStatus
from app.schemas.subscription import ExpiryCheckResults, ReminderResults
from app.services.email import email_service, tenant_snapshot, plan_snapshot
from app.services.plan_limits import plan_limit_service
from app.services.price_plan import price_plan_service
from app.utils.dates import utcnow, as_utc, add_days, add_months, days_since, days_until


def initial_expire_date(plan: PricePlan, now: datetime) -> datetime:
    """First expiry for a fresh subscription: the trial if the plan has one, else a full term."""
    if plan.trial_days and plan.trial_days > 0:
        return add_days(now, plan.trial_days)
    return add_months(now, plan.duration_months)


def compute_expire_date(tenant: Tenant, plan: PricePlan, now: datetime) -> datetime:
    """
    Expiry after activating ``plan`` for ``tenant``.

    A subscription that is still running is extended from its current
    expire_date by the plan duration, so paying early never loses days.
    Otherwise the new term starts now.
    """
    current_expiry = as_utc(tenant.expire_date)
    if tenant.plan_id and current_expiry and current_expiry > now:
        return add_months(current_expiry, plan.duration_months)
    return initial_expire_date(plan, now)


class SubscriptionService:
    """
    Subscription activation, billing overview and the periodic expiry jobs.
    """

    def activate(
        self,
        db: Session,
        tenant: Tenant,
        plan_id: int,
        background_tasks: Optional[BackgroundTasks] = None
    ) -> Dict[str, Any]:
        """
        Put a tenant on a plan or renew the current one.

        Args:
            db: Database session
            tenant: Tenant being billed
            plan_id: Plan to activate
            background_tasks: Where to queue the notification emails

        Returns:
            Dict with message, tenant and plan

        Raises:
            HTTPException 404: If the plan does not exist
            HTTPException 400: If the plan is inactive
        """
        plan = price_plan_service.get_active_plan(db, plan_id)
        now = utcnow()

        previous_plan = tenant.plan if tenant.plan_id else None
        new_expire_date = compute_expire_date(tenant, plan, now)

        fields = {
            "plan_id": plan.id,
            "expire_date": new_expire_date,
            "status": TenantStatus.active,
        }
        if previous_plan is None or not tenant.start_date:
            fields["start_date"] = now

        tenant = tenant_crud.update(db, db_obj=tenant, fields=fields)
        logger.info(
            f"Subscription activated: tenant_id={tenant.id}, plan_id={plan.id}, "
            f"expire_date={new_expire_date.isoformat()}"
        )

        if background_tasks is not None:
            tenant_data = tenant_snapshot(tenant)
            if previous_plan is None:
                background_tasks.add_task(
                    email_service.send_subscription_activated_email,
                    tenant_data, plan_snapshot(plan), new_expire_date
                )
            elif float(plan.price) > float(previous_plan.price):
                background_tasks.add_task(
                    email_service.send_plan_upgraded_email,
                    tenant_data, plan_snapshot(previous_plan), plan_snapshot(plan), new_expire_date
                )

        return {
            "message": "Subscription activated successfully",
            "tenant": tenant,
            "plan": plan,
        }

    def get_billing(self, db: Session, tenant: Tenant) -> Dict[str, Any]:
        expire_date = as_utc(tenant.expire_date)
        return {
            "plan": tenant.plan,
            "status": tenant.status,
            "start_date": tenant.start_date,
            "expire_date": tenant.expire_date,
            "days_remaining": max(0, days_until(expire_date)) if expire_date else None,
            "usage": plan_limit_service.get_usage(db, tenant),
        }

    def check_expired_subscriptions(
        self,
        db: Session,
        background_tasks: Optional[BackgroundTasks] = None,
        now: Optional[datetime] = None
    ) -> ExpiryCheckResults:
        """
        Move lapsed tenants to expired, then to suspended after the grace period.

        A tenant past its expire_date by up to SUBSCRIPTION_GRACE_PERIOD_DAYS
        days is marked expired (and emailed once, on the transition).
        Beyond that it is suspended.
        """
        now = now or utcnow()
        grace_days = settings.SUBSCRIPTION_GRACE_PERIOD_DAYS
        tenants = tenant_crud.get_expired(db, now)
        results = ExpiryCheckResults(checked=len(tenants))

        for tenant in tenants:
            try:
                expired_for = days_since(tenant.expire_date, now)

                if expired_for <= grace_days:
                    if tenant.status != TenantStatus.expired:
                        tenant_crud.update(db, db_obj=tenant, fields={"status": TenantStatus.expired})
                        results.expired += 1
                        results.grace_period += 1
                        if background_tasks is not None:
                            background_tasks.add_task(
                                email_service.send_subscription_expired_email,
                                tenant_snapshot(tenant), plan_snapshot(tenant.plan)
                            )
                elif tenant.status != TenantStatus.suspended:
                    tenant_crud.update(db, db_obj=tenant, fields={"status": TenantStatus.suspended})
                    results.suspended += 1
            except Exception as e:
                db.rollback()
                message = f"Failed to process tenant {tenant.id}: {e}"
                logger.error(message)
                results.errors.append(message)

        logger.info(
            f"Expiry check done: checked={results.checked}, expired={results.expired}, "
            f"suspended={results.suspended}, errors={len(results.errors)}"
        )
        return results

    def send_payment_reminders(self, db: Session, now: Optional[datetime] = None) -> ReminderResults:
        """
        Remind tenants whose subscription ends within PAYMENT_REMINDER_DAYS.

        A renewal reminder goes out while days remain, and a payment-due
        reminder for every tenant in the window.
        """
        now = now or utcnow()
        window = settings.PAYMENT_REMINDER_DAYS
        tenants = tenant_crud.get_expiring_between(db, now, now + timedelta(days=window))
        results = ReminderResults(checked=len(tenants))

        for tenant in tenants:
            if not tenant.expire_date or not tenant.plan:
                continue

            days_left = days_until(tenant.expire_date, now)
            tenant_data = tenant_snapshot(tenant)
            plan_data = plan_snapshot(tenant.plan)
            expire_date = as_utc(tenant.expire_date)

            if 0 < days_left <= window:
                if email_service.send_renewal_reminder_email(tenant_data, plan_data, expire_date, days_left):
                    results.renewal_reminders_sent += 1
                else:
                    results.errors.append(f"Failed to send renewal reminder to tenant {tenant.id}")

            if days_left <= window:
                if email_service.send_payment_due_email(tenant_data, plan_data, plan_data["price"], expire_date):
                    results.payment_reminders_sent += 1
                else:
                    results.errors.append(f"Failed to send payment reminder to tenant {tenant.id}")

        logger.info(
            f"Payment reminders done: checked={results.checked}, "
            f"renewal={results.renewal_reminders_sent}, payment={results.payment_reminders_sent}"
        )
        return results


# Create a singleton instance
subscription_service = SubscriptionService()
