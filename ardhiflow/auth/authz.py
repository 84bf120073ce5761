"""Role checks against the organization-scoped session claims."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass

import structlog

from ardhiflow.auth.claims import SessionClaims
from ardhiflow.exceptions import ForbiddenError, MalformedClaimsError, UnauthorizedError

logger = structlog.get_logger(__name__)

DEFAULT_STAFF_ROLES: frozenset[str] = frozenset({"admin", "super_admin"})


@dataclass(frozen=True, slots=True)
class RoleGrant:
    """The role that satisfied a ``require_role`` check."""

    role: str


def require_role(
    claims: SessionClaims | None,
    allowed_roles: Collection[str] = DEFAULT_STAFF_ROLES,
) -> RoleGrant:
    """Permit the caller only if their current organization role is allowed.

    The role always comes from the active organization membership, never
    from a user-level claim: the same user can be ``admin`` in one tenant
    and ``member`` in another.

    Raises:
        UnauthorizedError: no session claims at all.
        MalformedClaimsError: claims without an organization role.
        ForbiddenError: the role is not in ``allowed_roles``.
    """
    if claims is None:
        raise UnauthorizedError

    role = claims.role
    if role is None:
        logger.info("authz_role_unknown", org_id=claims.org_id)
        raise MalformedClaimsError

    if role not in allowed_roles:
        logger.info("authz_role_denied", org_id=claims.org_id, role=role)
        raise ForbiddenError

    return RoleGrant(role=role)
