"""Organization resolution for an authenticated user."""

from __future__ import annotations

import structlog

from ardhiflow.exceptions import DirectoryUnavailableError
from ardhiflow.tenancy.directory import OrganizationDirectory, OrganizationMembership

logger = structlog.get_logger(__name__)


class OrganizationResolver:
    """Fetches a user's memberships fresh from the directory on every call."""

    def __init__(self, directory: OrganizationDirectory) -> None:
        self._directory = directory

    async def list_memberships(self, user_id: str) -> list[OrganizationMembership]:
        """Return the user's memberships exactly as the directory orders them.

        A failed lookup is never reported as "no memberships": that would
        send a user who already belongs to a tenant to onboarding.

        Raises:
            ValueError: ``user_id`` is empty.
            DirectoryUnavailableError: the directory call failed.
        """
        if not user_id:
            msg = "user_id is required"
            raise ValueError(msg)

        try:
            memberships = await self._directory.list_organization_memberships(user_id)
        except DirectoryUnavailableError:
            logger.warning("directory_unavailable", user_id=user_id)
            raise
        except Exception as exc:
            logger.warning("directory_unavailable", user_id=user_id, error=str(exc))
            msg = "Organization directory lookup failed"
            raise DirectoryUnavailableError(msg) from exc

        logger.debug("memberships_resolved", user_id=user_id, count=len(memberships))
        return list(memberships)
