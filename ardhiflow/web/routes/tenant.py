"""Tenant-scoped API routes."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends

from ardhiflow.auth.authz import RoleGrant
from ardhiflow.tenancy.context import TenantContext
from ardhiflow.web.auth.rbac import get_tenant, require_staff

router = APIRouter(prefix="/api", tags=["tenant"])


@router.get("/tenant")
async def current_tenant(tenant: TenantContext = Depends(get_tenant)) -> dict[str, Any]:
    return asdict(tenant)


@router.get("/admin/organization")
async def admin_organization(
    grant: RoleGrant = Depends(require_staff()),
    tenant: TenantContext = Depends(get_tenant),
) -> dict[str, Any]:
    """Organization details for staff of the current tenant."""
    return {"role": grant.role, "organization": asdict(tenant)}
