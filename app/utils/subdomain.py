import re
from typing import Optional, Tuple

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
CUSTOM_DOMAIN_PATTERN = re.compile(r"^([a-z0-9]+(-[a-z0-9]+)*\.)+[a-z]{2,}$", re.IGNORECASE)

MIN_LENGTH = 3
MAX_LENGTH = 63

# Names held back for platform use
RESERVED_SUBDOMAINS = frozenset({
    "www", "admin", "api", "app", "dashboard", "landlord", "system", "root",
    "mail", "email", "smtp", "pop", "imap", "ftp", "sftp", "ssh", "dns",
    "ns1", "ns2", "mx", "secure", "ssl", "tls", "vpn", "proxy", "gateway",
    "firewall", "cdn", "static", "assets", "media", "images", "uploads",
    "files", "downloads", "blog", "forum", "shop", "store", "cart",
    "checkout", "payment", "billing", "invoice", "account", "profile",
    "settings", "help", "support", "docs", "documentation", "login",
    "logout", "signin", "signout", "signup", "register", "auth", "oauth",
    "sso", "dev", "development", "staging", "test", "testing", "demo",
    "sandbox", "preview", "status", "health", "metrics", "analytics",
    "stats", "monitoring", "news", "about", "contact", "terms", "privacy",
    "legal",
})


def normalize_subdomain(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def validate_subdomain(value: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Check a tenant subdomain.

    Returns:
        (True, None) when valid, otherwise (False, reason)
    """
    subdomain = normalize_subdomain(value)

    if not subdomain:
        return False, "Subdomain is required"
    if len(subdomain) < MIN_LENGTH:
        return False, f"Subdomain must be at least {MIN_LENGTH} characters"
    if len(subdomain) > MAX_LENGTH:
        return False, f"Subdomain must be no more than {MAX_LENGTH} characters"
    if not SUBDOMAIN_PATTERN.match(subdomain):
        return False, (
            "Subdomain can only contain lowercase letters, numbers, and hyphens. "
            "It cannot start or end with a hyphen."
        )
    if subdomain in RESERVED_SUBDOMAINS:
        return False, "This subdomain is reserved and cannot be used"
    if "--" in subdomain:
        return False, "Subdomain cannot contain consecutive hyphens"

    return True, None


def is_valid_custom_domain(value: Optional[str]) -> bool:
    return bool(value) and bool(CUSTOM_DOMAIN_PATTERN.match(value))


def tenant_host(subdomain: str, root_domain: str) -> str:
    return f"{subdomain}.{root_domain}"
