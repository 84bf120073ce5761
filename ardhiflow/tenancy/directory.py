"""Clerk Backend API client for organization membership lookups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
import structlog

from ardhiflow.auth.claims import normalize_role
from ardhiflow.exceptions import DirectoryUnavailableError

logger = structlog.get_logger(__name__)

# Clerk caps list endpoints at 500 items per page
_PAGE_LIMIT = 500


@dataclass(frozen=True, slots=True)
class OrganizationMembership:
    """One user-organization pair as reported by the identity provider."""

    organization_id: str
    organization_name: str
    organization_slug: str | None
    organization_image_url: str | None
    role: str


@dataclass(frozen=True, slots=True)
class Organization:
    id: str
    name: str
    slug: str | None = None
    image_url: str | None = None


class OrganizationDirectory(Protocol):
    """The identity provider's organization lookups."""

    async def list_organization_memberships(
        self, user_id: str
    ) -> list[OrganizationMembership]: ...

    async def get_organization(self, org_id: str) -> Organization: ...


def _parse_membership(item: dict[str, Any]) -> OrganizationMembership:
    org = item["organization"]
    return OrganizationMembership(
        organization_id=org["id"],
        organization_name=org.get("name") or "",
        organization_slug=org.get("slug") or None,
        organization_image_url=org.get("image_url") or None,
        role=normalize_role(item.get("role")) or "member",
    )


def _parse_organization(data: dict[str, Any]) -> Organization:
    return Organization(
        id=data["id"],
        name=data.get("name") or "",
        slug=data.get("slug") or None,
        image_url=data.get("image_url") or None,
    )


class ClerkDirectory:
    """Organization directory backed by the Clerk Backend API.

    Every failure (transport, timeout, non-2xx status, unexpected body)
    is raised as ``DirectoryUnavailableError``.
    """

    def __init__(
        self,
        secret_key: str,
        api_url: str = "https://api.clerk.com/v1",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._headers = {"Authorization": f"Bearer {secret_key}"}
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._api_url,
            headers=self._headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            async with self._client() as client:
                resp = await client.get(path, params=params)
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("clerk_request_failed", path=path, error=str(exc))
            msg = f"Clerk request failed: {path}"
            raise DirectoryUnavailableError(msg) from exc

    async def list_organization_memberships(self, user_id: str) -> list[OrganizationMembership]:
        """Return every organization membership of ``user_id``, in Clerk's order."""
        memberships: list[OrganizationMembership] = []
        offset = 0
        while True:
            body = await self._get(
                f"/users/{user_id}/organization_memberships",
                params={"limit": _PAGE_LIMIT, "offset": offset},
            )
            try:
                page = [_parse_membership(item) for item in body["data"]]
                total = int(body.get("total_count", len(page)))
            except (KeyError, TypeError, ValueError) as exc:
                msg = "Unexpected membership list payload from Clerk"
                raise DirectoryUnavailableError(msg) from exc

            memberships.extend(page)
            offset += len(page)
            if not page or offset >= total:
                return memberships

    async def get_organization(self, org_id: str) -> Organization:
        body = await self._get(f"/organizations/{org_id}")
        try:
            return _parse_organization(body)
        except (KeyError, TypeError) as exc:
            msg = "Unexpected organization payload from Clerk"
            raise DirectoryUnavailableError(msg) from exc
