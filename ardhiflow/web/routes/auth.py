"""Post sign-in routes: auth callback and organization picker."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse

from ardhiflow.auth.claims import AuthState
from ardhiflow.config.settings import get_settings
from ardhiflow.exceptions import DirectoryUnavailableError
from ardhiflow.tenancy.resolver import OrganizationResolver
from ardhiflow.tenancy.routing import (
    DEFAULT_TARGET_PATH,
    SIGN_IN_PATH,
    build_tenant_url,
    redirect_location,
    resolve_destination,
)
from ardhiflow.web.auth.rbac import require_user
from ardhiflow.web.auth.session import get_auth
from ardhiflow.web.dependencies import get_resolver

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/auth/callback")
async def auth_callback(
    auth: AuthState = Depends(get_auth),
    resolver: OrganizationResolver = Depends(get_resolver),
) -> RedirectResponse:
    """Send a freshly signed-in user to onboarding, their tenant, or the picker."""
    settings = get_settings()
    decision = await resolve_destination(
        resolver,
        auth.user_id,
        is_development=settings.is_development,
        base_host=settings.base_domain,
    )
    return RedirectResponse(url=redirect_location(decision), status_code=307)


@router.get("/select-organization")
async def select_organization(
    auth: AuthState = Depends(require_user),
    resolver: OrganizationResolver = Depends(get_resolver),
) -> dict[str, Any]:
    """List the caller's organizations with the URL each one opens at."""
    settings = get_settings()
    try:
        memberships = await resolver.list_memberships(auth.user_id or "")
    except DirectoryUnavailableError as exc:
        raise HTTPException(status_code=503, detail="Organization directory unavailable") from exc

    return {
        "organizations": [
            {
                "id": m.organization_id,
                "name": m.organization_name,
                "slug": m.organization_slug,
                "image_url": m.organization_image_url,
                "role": m.role,
                "url": build_tenant_url(
                    m.organization_slug,
                    DEFAULT_TARGET_PATH,
                    is_development=settings.is_development,
                    base_host=settings.base_domain,
                ),
            }
            for m in memberships
        ],
    }


@router.get("/select-organization/{slug}")
async def choose_organization(
    slug: str,
    auth: AuthState = Depends(require_user),
    resolver: OrganizationResolver = Depends(get_resolver),
) -> RedirectResponse:
    """Open the dashboard of the organization the user picked."""
    settings = get_settings()
    try:
        memberships = await resolver.list_memberships(auth.user_id or "")
    except DirectoryUnavailableError:
        return RedirectResponse(url=SIGN_IN_PATH, status_code=307)

    if not any(m.organization_slug == slug for m in memberships):
        raise HTTPException(status_code=404, detail="Organization not found")

    logger.info("organization_selected", user_id=auth.user_id, slug=slug)
    url = build_tenant_url(
        slug,
        DEFAULT_TARGET_PATH,
        is_development=settings.is_development,
        base_host=settings.base_domain,
    )
    return RedirectResponse(url=url, status_code=307)
