"""
Vercel REST API client for tenant domain management.

Every store is served from ``<subdomain>.<ROOT_DOMAIN>`` and optionally a
custom domain, and each of those has to be attached to the Vercel project.
"""

import httpx
from typing import Any, Dict, List, Optional
from app.core.config import settings
from app.core.logging_config import logger


class VercelAPIError(Exception):
    """Raised when Vercel rejects a request or is misconfigured."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class VercelClient:
    """Thin client around the v9/v10 domain endpoints."""

    def __init__(
        self,
        token: Optional[str] = None,
        project_id: Optional[str] = None,
        team_id: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            token: API token (defaults to VERCEL_TOKEN)
            project_id: Project the domains belong to (defaults to VERCEL_PROJECT_ID)
            team_id: Optional team scope (defaults to VERCEL_TEAM_ID)
            base_url: API root (defaults to VERCEL_API_URL)
            transport: Custom httpx transport, used by tests
        """
        self.token = token if token is not None else settings.VERCEL_TOKEN
        self.project_id = project_id if project_id is not None else settings.VERCEL_PROJECT_ID
        self.team_id = team_id if team_id is not None else settings.VERCEL_TEAM_ID
        self.base_url = base_url or settings.VERCEL_API_URL
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.token and self.project_id)

    def _require_project(self) -> str:
        if not self.project_id:
            raise VercelAPIError("VERCEL_PROJECT_ID is not configured", status_code=500)
        return self.project_id

    def _request(self, method: str, path: str, json: Optional[dict] = None) -> httpx.Response:
        if not self.token:
            raise VercelAPIError("VERCEL_TOKEN environment variable is not set", status_code=500)

        params = {"teamId": self.team_id} if self.team_id else None
        headers = {"Authorization": f"Bearer {self.token}"}

        try:
            with httpx.Client(base_url=self.base_url, transport=self.transport, timeout=15.0) as client:
                return client.request(method, path, json=json, params=params, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"Vercel request failed: {method} {path}, {type(e).__name__}: {e}")
            raise VercelAPIError(f"Vercel request failed: {e}", status_code=502)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            error = response.json().get("error") or {}
        except ValueError:
            error = {}
        return error.get("message") or f"HTTP {response.status_code}: {response.reason_phrase}"

    @staticmethod
    def _error_code(response: httpx.Response) -> Optional[str]:
        try:
            return (response.json().get("error") or {}).get("code")
        except ValueError:
            return None

    def _authorization_error(self, message: str) -> VercelAPIError:
        return VercelAPIError(
            f'Vercel API authorization failed. Ensure your VERCEL_TOKEN has access to project '
            f'"{self.project_id}". Error: {message}',
            status_code=403,
        )

    def add_domain(self, domain: str) -> Dict[str, Any]:
        """
        Attach a domain to the project.

        A domain that is already attached is not an error: its current info
        is returned instead.
        """
        project_id = self._require_project()
        logger.info(f"Adding domain to Vercel: domain={domain}, project={project_id}")

        response = self._request("POST", f"/v10/projects/{project_id}/domains", json={"name": domain})
        if response.is_success:
            return response.json()

        message = self._error_message(response)
        if "already exists" in message.lower() or self._error_code(response) == "domain_already_exists":
            existing = self.get_domain(domain)
            if existing:
                return existing
            raise VercelAPIError(f"Domain {domain} already exists but could not be retrieved", response.status_code)

        if response.status_code == 403:
            raise self._authorization_error(message)

        logger.error(f"Failed to add domain to Vercel: domain={domain}, error={message}")
        raise VercelAPIError(f"Failed to add domain: {message}", response.status_code)

    def remove_domain(self, domain: str) -> bool:
        """Detach a domain. A domain Vercel doesn't know about counts as removed."""
        project_id = self._require_project()
        logger.info(f"Removing domain from Vercel: domain={domain}, project={project_id}")

        response = self._request("DELETE", f"/v10/projects/{project_id}/domains/{domain}")
        if response.is_success:
            return True

        message = self._error_message(response)
        if (
            response.status_code == 404
            or self._error_code(response) == "domain_not_found"
            or "not found" in message.lower()
        ):
            return True
        if response.status_code == 403 or "not authorized" in message.lower():
            raise self._authorization_error(message)

        logger.error(f"Failed to remove domain from Vercel: domain={domain}, error={message}")
        raise VercelAPIError(f"Failed to remove domain: {message}", response.status_code)

    def get_domain(self, domain: str) -> Optional[Dict[str, Any]]:
        """Domain info, or None when Vercel doesn't know the domain."""
        if self.project_id:
            path = f"/v10/projects/{self.project_id}/domains/{domain}"
        else:
            path = f"/v9/domains/{domain}"

        response = self._request("GET", path)
        if response.is_success:
            return response.json()
        if response.status_code == 404 or self._error_code(response) == "domain_not_found":
            return None

        message = self._error_message(response)
        if response.status_code == 403:
            raise self._authorization_error(message)
        raise VercelAPIError(message, response.status_code)

    def verify_domain(self, domain: str) -> Dict[str, Any]:
        """
        Verification state of a domain.

        Never raises: failures are reported as ``verified: False`` with a reason.
        """
        try:
            self._require_project()
            info = self.get_domain(domain)
        except VercelAPIError as e:
            logger.error(f"Failed to verify domain: domain={domain}, error={e}")
            return {"verified": False, "verification": None, "configuration_issue": None, "reason": str(e)}

        if not info:
            return {
                "verified": False,
                "verification": None,
                "configuration_issue": None,
                "reason": "Domain not found in Vercel",
            }

        return {
            "verified": bool(info.get("verified")),
            "verification": info.get("verification"),
            "configuration_issue": info.get("configurationIssue"),
            "reason": None,
        }

    def get_dns_configuration(self, domain: str) -> Dict[str, Any]:
        """DNS records the store owner has to set up for the domain."""
        self._require_project()
        info = self.get_domain(domain)
        if not info:
            raise VercelAPIError("Domain not found", status_code=404)

        return {
            "nameservers": info.get("nameservers"),
            "intended_nameservers": info.get("intendedNameservers"),
            "cnames": info.get("cnames"),
            "cname_target": info.get("cnameTarget"),
            "verification": info.get("verification"),
        }

    def list_project_domains(self) -> List[Dict[str, Any]]:
        project_id = self._require_project()
        response = self._request("GET", f"/v10/projects/{project_id}/domains")
        if not response.is_success:
            raise VercelAPIError(self._error_message(response), response.status_code)
        data = response.json()
        return data.get("domains", []) if isinstance(data, dict) else data


vercel_client = VercelClient()
