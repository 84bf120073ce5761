"""Per-request tenant gate: sign-in, organization, and subdomain checks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from ardhiflow.auth.claims import AuthState
from ardhiflow.tenancy.context import TenantContext, tenant_from_auth
from ardhiflow.tenancy.hosts import get_hostname_parts
from ardhiflow.tenancy.routing import SELECT_ORGANIZATION_PATH, SIGN_IN_PATH

PUBLIC_ROUTES = (
    re.compile(r"^/$"),
    re.compile(r"^/sign-in.*"),
    re.compile(r"^/sign-up.*"),
    re.compile(r"^/api/webhooks.*"),
    re.compile(r"^/api/health$"),
    re.compile(r"^/auth/callback$"),
)

ONBOARDING_ROUTES = (
    re.compile(r"^/select-organization.*"),
    re.compile(r"^/onboarding.*"),
)

# Shared entry host; never a tenant
ENTRY_SUBDOMAIN = "app"


@dataclass(frozen=True, slots=True)
class GateOutcome:
    """Either let the request through (optionally with a tenant) or redirect."""

    redirect_url: str | None = None
    tenant: TenantContext | None = None

    @property
    def allowed(self) -> bool:
        return self.redirect_url is None


def _matches(path: str, patterns: tuple[re.Pattern[str], ...]) -> bool:
    return any(p.match(path) for p in patterns)


def _with_redirect_back(path: str, url: str) -> str:
    return f"{path}?{urlencode({'redirect_url': url})}"


def _on_host(url: str, hostname: str) -> str:
    parts = urlsplit(url)
    netloc = hostname if parts.port is None else f"{hostname}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def needs_tenant(path: str) -> bool:
    return not (_matches(path, PUBLIC_ROUTES) or _matches(path, ONBOARDING_ROUTES))


def requested_tenant_slug(url: str, host: str) -> str | None:
    """The organization a request addresses, if any.

    Locally that is the ``?org=`` parameter (or a ``slug.localhost`` host);
    elsewhere it is the subdomain, except the shared ``app.`` entry host.
    """
    parts = get_hostname_parts(host)
    if parts.is_localhost:
        org = parse_qs(urlsplit(url).query).get("org")
        return org[0] if org and org[0] else parts.subdomain
    if parts.subdomain == ENTRY_SUBDOMAIN:
        return None
    return parts.subdomain


def enforce_tenant_access(
    path: str,
    url: str,
    host: str,
    auth: AuthState,
    selected: TenantContext | None = None,
) -> GateOutcome:
    """Decide whether a request may proceed on this host.

    Args:
        path: request path.
        url: full request URL, used for redirect-back parameters.
        host: the Host header.
        auth: identity for the request.
        selected: a tenant the user was confirmed to belong to, for a
            request addressing an organization other than the active one.
            It wins when its slug is the one the request addresses.
    """
    if _matches(path, PUBLIC_ROUTES):
        return GateOutcome()

    if not auth.is_authenticated:
        return GateOutcome(redirect_url=_with_redirect_back(SIGN_IN_PATH, url))

    if _matches(path, ONBOARDING_ROUTES):
        return GateOutcome()

    if selected is not None and selected.org_slug == requested_tenant_slug(url, host):
        return GateOutcome(tenant=selected)

    tenant = tenant_from_auth(auth)
    if tenant is None:
        return GateOutcome(redirect_url=_with_redirect_back(SELECT_ORGANIZATION_PATH, url))

    parts = get_hostname_parts(host)
    # IP addresses cannot carry a tenant subdomain
    if parts.is_localhost or parts.is_ip_address:
        return GateOutcome(tenant=tenant)

    if parts.subdomain != tenant.org_slug:
        # Covers the shared "app." entry host and other tenants' hosts
        base_host = parts.base_host if parts.subdomain else parts.hostname
        return GateOutcome(redirect_url=_on_host(url, f"{tenant.org_slug}.{base_host}"))

    return GateOutcome(tenant=tenant)
