from typing import List, Tuple
from fastapi import BackgroundTasks, HTTPException, status
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.logging_config import logger
from app.crud.tenant import tenant as tenant_crud
from app.crud.user import user as user_crud
from app.models.tenant import Tenant, TenantStatus
from app.models.user import User
from app.schemas.tenant import TenantCreate, TenantUpdate
from app.services.email import email_service, tenant_snapshot, plan_snapshot
from app.services.price_plan import price_plan_service
from app.services.subscription import initial_expire_date
from app.services.vercel import VercelAPIError, vercel_client
from app.utils.dates import utcnow, add_months
from app.utils.subdomain import validate_subdomain, normalize_subdomain, tenant_host


def register_store_domain(subdomain: str) -> None:
    """Background task: attach <subdomain>.<ROOT_DOMAIN> to the Vercel project."""
    if not vercel_client.is_configured:
        logger.warning(f"Vercel not configured, skipping domain registration: subdomain={subdomain}")
        return
    host = tenant_host(subdomain, settings.ROOT_DOMAIN)
    try:
        vercel_client.add_domain(host)
        logger.info(f"Store domain registered: {host}")
    except VercelAPIError as e:
        logger.error(f"Failed to register store domain: domain={host}, error={e}")


def unregister_store_domain(subdomain: str) -> None:
    """Background task: detach <subdomain>.<ROOT_DOMAIN> from the Vercel project."""
    if not vercel_client.is_configured:
        logger.warning(f"Vercel not configured, skipping domain removal: subdomain={subdomain}")
        return
    host = tenant_host(subdomain, settings.ROOT_DOMAIN)
    try:
        vercel_client.remove_domain(host)
        logger.info(f"Store domain removed: {host}")
    except VercelAPIError as e:
        logger.error(f"Failed to remove store domain: domain={host}, error={e}")


class TenantService:
    """
    Landlord-side tenant lifecycle: provisioning, edits, soft delete and
    subdomain changes.
    """

    def __init__(self):
        self.crud = tenant_crud

    def get_tenant(self, db: Session, tenant_id: int) -> Tenant:
        tenant = self.crud.get(db, tenant_id)
        if not tenant:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Tenant not found"
            )
        return tenant

    def list_tenants(self, db: Session, skip: int = 0, limit: int = 100) -> List[Tenant]:
        return self.crud.get_multi(db, skip=skip, limit=limit)

    def _validate_subdomain(self, subdomain: str) -> str:
        valid, error = validate_subdomain(subdomain)
        if not valid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=error
            )
        return normalize_subdomain(subdomain)

    def create_tenant(
        self,
        db: Session,
        tenant_data: TenantCreate,
        background_tasks: BackgroundTasks
    ) -> Tuple[Tenant, User]:
        """
        Provision a store together with its tenant_admin account.

        Raises:
            HTTPException 400: Invalid subdomain or inactive plan
            HTTPException 404: Unknown plan
            HTTPException 409: Subdomain or admin email already taken
        """
        subdomain = self._validate_subdomain(tenant_data.subdomain)

        if self.crud.subdomain_taken(db, subdomain):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Subdomain already exists"
            )

        if user_crud.get_by_email(db, tenant_data.admin_email):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )

        plan = None
        start_date = None
        expire_date = None
        if tenant_data.plan_id is not None:
            plan = price_plan_service.get_active_plan(db, tenant_data.plan_id)
            start_date = utcnow()
            expire_date = initial_expire_date(plan, start_date)

        try:
            tenant, admin = self.crud.create_with_user(
                db,
                name=tenant_data.name,
                subdomain=subdomain,
                contact_email=tenant_data.contact_email,
                admin_email=tenant_data.admin_email,
                admin_password=tenant_data.admin_password,
                admin_name=tenant_data.admin_name,
                plan_id=plan.id if plan else None,
                start_date=start_date,
                expire_date=expire_date,
            )
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(e)
            )

        logger.info(f"Tenant created: id={tenant.id}, subdomain={tenant.subdomain}, admin_id={admin.id}")

        background_tasks.add_task(
            email_service.send_welcome_email,
            tenant_snapshot(tenant), admin.email, admin.name, plan_snapshot(plan)
        )
        background_tasks.add_task(register_store_domain, tenant.subdomain)

        return tenant, admin

    def update_tenant(self, db: Session, tenant_id: int, tenant_data: TenantUpdate) -> Tenant:
        """
        Apply landlord edits.

        Assigning a plan restarts the term from now. Clearing the plan clears
        expire_date. An explicit expire_date in the same request wins.
        """
        tenant = self.get_tenant(db, tenant_id)
        update_data = tenant_data.model_dump(exclude_unset=True)
        fields = {}

        for key in ("name", "custom_domain"):
            if key in update_data:
                fields[key] = update_data[key]
        if update_data.get("status"):
            fields["status"] = TenantStatus(update_data["status"])

        if "plan_id" in update_data:
            if update_data["plan_id"] is None:
                fields["plan_id"] = None
                fields["expire_date"] = None
            else:
                plan = price_plan_service.get_plan(db, update_data["plan_id"])
                fields["plan_id"] = plan.id
                fields["expire_date"] = add_months(utcnow(), plan.duration_months)

        if update_data.get("expire_date") is not None:
            fields["expire_date"] = update_data["expire_date"]

        if "custom_domain" in fields and fields["custom_domain"]:
            existing = self.crud.get_by_custom_domain(db, fields["custom_domain"])
            if existing and existing.id != tenant.id:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Domain is already in use by another store"
                )

        logger.info(f"Updating tenant: id={tenant_id}, fields={sorted(fields)}")
        return self.crud.update(db, db_obj=tenant, fields=fields)

    def delete_tenant(self, db: Session, tenant_id: int, background_tasks: BackgroundTasks) -> Tenant:
        """Soft delete: the row stays with status=deleted, the store domain is detached."""
        tenant = self.get_tenant(db, tenant_id)
        tenant = self.crud.update(db, db_obj=tenant, fields={"status": TenantStatus.deleted})
        logger.info(f"Tenant soft-deleted: id={tenant_id}")
        background_tasks.add_task(unregister_store_domain, tenant.subdomain)
        return tenant

    def change_subdomain(
        self,
        db: Session,
        tenant_id: int,
        new_subdomain: str,
        background_tasks: BackgroundTasks
    ) -> Tuple[Tenant, str]:
        """
        Move a store to a new subdomain.

        Returns:
            (updated tenant, old subdomain)

        Raises:
            HTTPException 400: Invalid, or same as the current subdomain
            HTTPException 409: Taken by another tenant
        """
        tenant = self.get_tenant(db, tenant_id)
        subdomain = self._validate_subdomain(new_subdomain)

        if subdomain == tenant.subdomain:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="New subdomain must be different from the current subdomain"
            )
        if self.crud.subdomain_taken(db, subdomain, exclude_id=tenant.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Subdomain already exists"
            )

        old_subdomain = tenant.subdomain
        tenant = self.crud.update(db, db_obj=tenant, fields={"subdomain": subdomain})
        logger.info(f"Tenant subdomain changed: id={tenant_id}, {old_subdomain} -> {subdomain}")

        background_tasks.add_task(unregister_store_domain, old_subdomain)
        background_tasks.add_task(register_store_domain, subdomain)

        return tenant, old_subdomain


# Create a singleton instance
tenant_service = TenantService()
