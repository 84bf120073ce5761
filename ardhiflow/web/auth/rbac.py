"""Role-based access control dependencies for tenant-scoped requests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import structlog
from fastapi import Depends, HTTPException, Request

from ardhiflow.auth.authz import DEFAULT_STAFF_ROLES, RoleGrant, require_role
from ardhiflow.auth.claims import AuthState
from ardhiflow.exceptions import (
    DirectoryUnavailableError,
    ForbiddenError,
    MissingTenantContextError,
    UnauthorizedError,
)
from ardhiflow.tenancy.context import TenantContext, require_tenant_context
from ardhiflow.tenancy.directory import OrganizationDirectory
from ardhiflow.web.auth.session import get_auth
from ardhiflow.web.dependencies import get_directory

logger = structlog.get_logger(__name__)


async def require_user(auth: AuthState = Depends(get_auth)) -> AuthState:
    """Require a signed-in user."""
    if not auth.is_authenticated:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return auth


def require_staff(*roles: str) -> Callable[..., Awaitable[RoleGrant]]:
    """Build a dependency that admits only the given organization roles.

    With no arguments the default staff roles (admin, super_admin) apply.
    """
    allowed = frozenset(roles) if roles else DEFAULT_STAFF_ROLES

    async def _dependency(auth: AuthState = Depends(get_auth)) -> RoleGrant:
        try:
            return require_role(auth.claims, allowed)
        except UnauthorizedError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        except ForbiddenError as exc:
            raise HTTPException(status_code=403, detail=str(exc)) from exc

    return _dependency


async def get_tenant(
    request: Request,
    auth: AuthState = Depends(require_user),
    directory: OrganizationDirectory = Depends(get_directory),
) -> TenantContext:
    """Resolve the current tenant, hydrated with its organization name."""
    attached = getattr(request.state, "tenant", None)
    try:
        return await require_tenant_context(auth, directory, attached=attached)
    except MissingTenantContextError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DirectoryUnavailableError as exc:
        logger.warning("tenant_hydration_failed", error=str(exc))
        raise HTTPException(status_code=503, detail="Organization directory unavailable") from exc
