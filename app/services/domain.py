from typing import Any, Dict, Optional
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from app.core.logging_config import logger
from app.crud.tenant import tenant as tenant_crud
from app.models.tenant import Tenant
from app.services.vercel import VercelAPIError, vercel_client
from app.utils.subdomain import is_valid_custom_domain


class DomainService:
    """Custom domains of a tenant, kept in step with the Vercel project."""

    def __init__(self, client=None):
        self.client = client or vercel_client

    def _require_project(self) -> None:
        if not self.client.project_id:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Vercel project ID not configured"
            )

    @staticmethod
    def _vercel_failure(action: str, error: VercelAPIError) -> HTTPException:
        logger.error(f"Vercel request failed: action={action}, status={error.status_code}, error={error}")
        return HTTPException(
            status_code=error.status_code if error.status_code in (403, 404, 502) else status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(error)
        )

    def add_domain(self, db: Session, tenant: Tenant, domain: str) -> Dict[str, Any]:
        """
        Attach a custom domain to the store.

        Raises:
            HTTPException 400: Invalid domain format
            HTTPException 409: Domain used by another store
            HTTPException 500: Vercel not configured or failing
            HTTPException 502: Vercel unreachable
        """
        if not is_valid_custom_domain(domain):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid domain format"
            )
        self._require_project()

        existing = tenant_crud.get_by_custom_domain(db, domain)
        if existing and existing.id != tenant.id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Domain is already in use by another store"
            )

        try:
            result = self.client.add_domain(domain)
        except VercelAPIError as e:
            raise self._vercel_failure("add_domain", e)

        tenant_crud.update(db, db_obj=tenant, fields={"custom_domain": domain})
        logger.info(f"Custom domain added: tenant_id={tenant.id}, domain={domain}")
        return {"message": "Domain added successfully", "domain": domain, "vercel": result}

    def remove_domain(self, db: Session, tenant: Tenant, domain: str) -> Dict[str, Any]:
        """
        Detach the store's custom domain.

        Raises:
            HTTPException 403: The domain is not this store's
        """
        if not tenant.custom_domain or tenant.custom_domain.lower() != domain:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Domain does not belong to this tenant"
            )
        self._require_project()

        try:
            self.client.remove_domain(domain)
        except VercelAPIError as e:
            raise self._vercel_failure("remove_domain", e)

        tenant_crud.update(db, db_obj=tenant, fields={"custom_domain": None})
        logger.info(f"Custom domain removed: tenant_id={tenant.id}, domain={domain}")
        return {"message": "Domain removed successfully", "domain": domain}

    def get_domain_info(self, tenant: Tenant, domain: Optional[str] = None) -> Dict[str, Any]:
        """Vercel info, verification state and DNS records for a domain (the store's own by default)."""
        domain = (domain or tenant.custom_domain or "").strip().lower()
        if not domain:
            return {"domain": None, "verified": False, "message": "No custom domain configured"}
        self._require_project()

        try:
            info = self.client.get_domain(domain)
            dns_config = self.client.get_dns_configuration(domain) if info else None
        except VercelAPIError as e:
            raise self._vercel_failure("get_domain", e)
        verification = self.client.verify_domain(domain)

        return {
            "domain": domain,
            "verified": verification["verified"],
            "info": info,
            "verification": verification,
            "dns_config": dns_config,
        }


# Create a singleton instance
domain_service = DomainService()
