"""Tenant context for multi-tenant request scoping."""

from __future__ import annotations

from dataclasses import dataclass

from ardhiflow.auth.claims import AuthState
from ardhiflow.exceptions import MissingTenantContextError
from ardhiflow.tenancy.directory import OrganizationDirectory
from ardhiflow.tenancy.resolver import OrganizationResolver

DEFAULT_ORG_ROLE = "member"


@dataclass(frozen=True, slots=True)
class TenantContext:
    """Immutable tenant context carried through each request."""

    org_id: str
    org_slug: str
    org_role: str | None = None
    org_name: str = ""


def tenant_from_auth(auth: AuthState) -> TenantContext | None:
    """Build an unhydrated context from the active organization in the claims."""
    claims = auth.claims
    if claims is None or not claims.org_id or not claims.slug:
        return None
    return TenantContext(
        org_id=claims.org_id,
        org_slug=claims.slug,
        org_role=claims.role or DEFAULT_ORG_ROLE,
    )


async def require_tenant_context(
    auth: AuthState,
    directory: OrganizationDirectory,
    attached: TenantContext | None = None,
) -> TenantContext:
    """Return the request's tenant with its display name filled in.

    ``attached`` is the context the tenant gate put on the request; when
    it is missing (internal calls that bypass the gate) the session claims
    are used instead.

    Raises:
        MissingTenantContextError: neither source names an organization.
        DirectoryUnavailableError: the organization lookup failed.
    """
    tenant = attached or tenant_from_auth(auth)
    if tenant is None:
        raise MissingTenantContextError

    org = await directory.get_organization(tenant.org_id)
    return TenantContext(
        org_id=tenant.org_id,
        org_slug=tenant.org_slug,
        org_role=tenant.org_role,
        org_name=org.name,
    )


async def select_member_tenant(
    resolver: OrganizationResolver, user_id: str, slug: str
) -> TenantContext | None:
    """Return the tenant for ``slug`` when the user is one of its members.

    Used when a request addresses an organization other than the session's
    active one, e.g. right after a pick in the organization chooser.

    Raises:
        DirectoryUnavailableError: the membership lookup failed.
    """
    for membership in await resolver.list_memberships(user_id):
        if membership.organization_slug == slug:
            return TenantContext(
                org_id=membership.organization_id,
                org_slug=slug,
                org_role=membership.role,
                org_name=membership.organization_name,
            )
    return None
