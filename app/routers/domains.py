from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.logging_config import logger
from app.core.permissions import require_tenant_admin
from app.core.tenant_context import get_current_tenant
from app.models.tenant import Tenant
from app.schemas.domain import DomainInfoResponse, DomainMutationResponse, DomainRequest
from app.services.domain import domain_service

router = APIRouter(dependencies=[Depends(require_tenant_admin)])


@router.get("", response_model=DomainInfoResponse)
def get_domain_info(
    domain: Optional[str] = None,
    tenant: Tenant = Depends(get_current_tenant)
):
    """
    Verification status and DNS setup of a custom domain.

    Args:
        domain: Domain to inspect (defaults to the store's custom domain)
        tenant: Current store (auto-set from JWT)

    Returns:
        Vercel domain info, verification and DNS configuration
    """
    try:
        return domain_service.get_domain_info(tenant, domain)
    except Exception as e:
        logger.error(f"Error fetching domain info: tenant_id={tenant.id}, {type(e).__name__}: {str(e)}")
        raise


@router.post("", response_model=DomainMutationResponse)
def add_domain(
    data: DomainRequest,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    try:
        return domain_service.add_domain(db, tenant, data.domain)
    except Exception as e:
        logger.error(f"Error adding domain: tenant_id={tenant.id}, domain={data.domain}, {type(e).__name__}: {str(e)}")
        raise


@router.delete("", response_model=DomainMutationResponse)
def remove_domain(
    domain: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_current_tenant)
):
    try:
        return domain_service.remove_domain(db, tenant, domain.strip().lower())
    except Exception as e:
        logger.error(f"Error removing domain: tenant_id={tenant.id}, domain={domain}, {type(e).__name__}: {str(e)}")
        raise
