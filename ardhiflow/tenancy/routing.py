"""Post sign-in routing: onboarding, straight to a tenant, or a picker."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

import structlog

from ardhiflow.exceptions import DirectoryUnavailableError
from ardhiflow.tenancy.directory import OrganizationMembership

if TYPE_CHECKING:
    from ardhiflow.tenancy.resolver import OrganizationResolver

logger = structlog.get_logger(__name__)

DEFAULT_TARGET_PATH = "/dashboard"
ONBOARDING_PATH = "/onboarding/create-organization"
SELECT_ORGANIZATION_PATH = "/select-organization"
SIGN_IN_PATH = "/sign-in"


@dataclass(frozen=True, slots=True)
class NeedsOnboarding:
    """The user belongs to no organization and must create one."""


@dataclass(frozen=True, slots=True)
class DirectToTenant:
    url: str


@dataclass(frozen=True, slots=True)
class NeedsSelection:
    """Several memberships; the user has to pick one in a later request."""

    organizations: tuple[OrganizationMembership, ...]


@dataclass(frozen=True, slots=True)
class AuthFailed:
    """Memberships could not be resolved; the user must sign in again."""

    reason: str


RoutingDecision = Union[NeedsOnboarding, DirectToTenant, NeedsSelection, AuthFailed]


def build_tenant_url(
    slug: str | None,
    path: str = DEFAULT_TARGET_PATH,
    *,
    is_development: bool,
    base_host: str,
) -> str:
    """Address ``path`` inside the tenant identified by ``slug``.

    Production uses the tenant subdomain. Development uses an ``org`` query
    parameter because wildcard subdomains are rarely available locally.
    Without a slug the bare path is returned.
    """
    if not slug:
        return path
    if is_development:
        return f"{path}?org={slug}"
    return f"https://{slug}.{base_host}{path}"


def decide_route(
    memberships: Sequence[OrganizationMembership],
    *,
    is_development: bool,
    base_host: str,
    target_path: str = DEFAULT_TARGET_PATH,
) -> RoutingDecision:
    """Classify a membership list into a routing decision. Pure."""
    if len(memberships) == 0:
        return NeedsOnboarding()
    if len(memberships) == 1:
        return DirectToTenant(
            url=build_tenant_url(
                memberships[0].organization_slug,
                target_path,
                is_development=is_development,
                base_host=base_host,
            )
        )
    return NeedsSelection(organizations=tuple(memberships))


async def resolve_destination(
    resolver: OrganizationResolver,
    user_id: str | None,
    *,
    is_development: bool,
    base_host: str,
    target_path: str = DEFAULT_TARGET_PATH,
) -> RoutingDecision:
    """Resolve memberships and decide where the user goes next.

    Anonymous callers and directory failures both end in ``AuthFailed``.
    """
    if not user_id:
        return AuthFailed(reason="unauthenticated")

    try:
        memberships = await resolver.list_memberships(user_id)
    except DirectoryUnavailableError as exc:
        logger.warning("route_auth_failed", user_id=user_id, error=str(exc))
        return AuthFailed(reason="directory_unavailable")

    decision = decide_route(
        memberships,
        is_development=is_development,
        base_host=base_host,
        target_path=target_path,
    )
    logger.info(
        "route_decided",
        user_id=user_id,
        decision=type(decision).__name__,
        membership_count=len(memberships),
    )
    return decision


def redirect_location(decision: RoutingDecision) -> str:
    """Map a decision to the location an HTTP redirect should point at."""
    if isinstance(decision, DirectToTenant):
        return decision.url
    if isinstance(decision, NeedsOnboarding):
        return ONBOARDING_PATH
    if isinstance(decision, NeedsSelection):
        return SELECT_ORGANIZATION_PATH
    return SIGN_IN_PATH
