"""FastAPI middleware: request ID injection and tenant gating."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse, RedirectResponse

from ardhiflow.auth.claims import AuthState, SessionOrgClaims, with_active_organization
from ardhiflow.exceptions import DirectoryUnavailableError
from ardhiflow.tenancy.context import TenantContext, select_member_tenant, tenant_from_auth
from ardhiflow.tenancy.enforcement import (
    enforce_tenant_access,
    needs_tenant,
    requested_tenant_slug,
)
from ardhiflow.tenancy.resolver import OrganizationResolver
from ardhiflow.web.auth.session import authenticate
from ardhiflow.web.dependencies import get_directory

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response

logger = structlog.get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Adds a unique X-Request-ID header to every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")
        response.headers["x-request-id"] = request_id
        return response


class TenantGateMiddleware(BaseHTTPMiddleware):
    """Authenticates the request and keeps it on the right tenant host.

    Sets ``request.state.auth`` and, for tenant-scoped paths,
    ``request.state.tenant``. A request addressing one of the user's other
    organizations runs as that organization. API paths get JSON errors
    instead of sign-in or picker redirects.
    """

    def __init__(self, app: object, api_prefix: str = "/api/") -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._api_prefix = api_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        auth = await authenticate(request)
        request.state.auth = auth

        url = str(request.url)
        host = request.headers.get("host", "")
        selected = await self._select_tenant(request, auth, url, host)

        outcome = enforce_tenant_access(
            path=request.url.path,
            url=url,
            host=host,
            auth=auth,
            selected=selected,
        )

        if not outcome.allowed:
            if request.url.path.startswith(self._api_prefix):
                if not auth.is_authenticated:
                    return JSONResponse({"detail": "Unauthorized"}, status_code=401)
                if tenant_from_auth(auth) is None:
                    return JSONResponse({"detail": "No active organization"}, status_code=403)
            logger.info("tenant_gate_redirect", path=request.url.path, to=outcome.redirect_url)
            return RedirectResponse(url=outcome.redirect_url or "/", status_code=307)

        tenant = outcome.tenant
        if selected is not None and tenant is selected:
            # Role checks downstream must see the addressed organization
            request.state.auth = with_active_organization(
                auth, SessionOrgClaims(id=selected.org_id, role=selected.org_role, slug=selected.org_slug)
            )
        request.state.tenant = tenant
        return await call_next(request)

    async def _select_tenant(
        self, request: Request, auth: AuthState, url: str, host: str
    ) -> TenantContext | None:
        """Look up membership when the request addresses a non-active organization."""
        if not auth.is_authenticated or not needs_tenant(request.url.path):
            return None

        slug = requested_tenant_slug(url, host)
        active = tenant_from_auth(auth)
        if slug is None or (active is not None and active.org_slug == slug):
            return None

        # Middleware sits outside DI, so apply directory overrides by hand
        provider = request.app.dependency_overrides.get(get_directory, get_directory)
        try:
            return await select_member_tenant(OrganizationResolver(provider()), auth.user_id or "", slug)
        except DirectoryUnavailableError as exc:
            logger.warning("tenant_selection_failed", slug=slug, error=str(exc))
            return None
