"""Session claims issued by Clerk for the current principal."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

# Clerk prefixes custom org roles with "org:" in v1 tokens
_ROLE_PREFIX = "org:"


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def normalize_role(role: str | None) -> str | None:
    """Strip Clerk's ``org:`` prefix so ``org:admin`` reads as ``admin``."""
    if not role:
        return None
    if role.startswith(_ROLE_PREFIX):
        return role[len(_ROLE_PREFIX) :] or None
    return role


@dataclass(frozen=True, slots=True)
class SessionOrgClaims:
    """The active organization of a session. ``id`` is always set."""

    id: str
    role: str | None = None
    slug: str | None = None


@dataclass(frozen=True, slots=True)
class SessionClaims:
    """Read-only view of a verified Clerk session token.

    Every field may be absent depending on the Clerk instance's session
    token template. Absence means "unknown", never an error.
    """

    first_name: str | None = None
    organization_name: str | None = None
    organization_logo: str | None = None
    organization: SessionOrgClaims | None = None

    @property
    def org_id(self) -> str | None:
        return self.organization.id if self.organization else None

    @property
    def role(self) -> str | None:
        return self.organization.role if self.organization else None

    @property
    def slug(self) -> str | None:
        return self.organization.slug if self.organization else None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> SessionClaims:
        """Build claims from a decoded token payload.

        Accepts the compact v2 ``o: {id, rol, slg}`` block and falls back to
        the flat v1 ``org_id`` / ``org_role`` / ``org_slug`` keys.
        """
        organization: SessionOrgClaims | None = None
        compact = payload.get("o")
        if isinstance(compact, dict):
            org_id = _optional_str(compact.get("id"))
            if org_id:
                organization = SessionOrgClaims(
                    id=org_id,
                    role=normalize_role(_optional_str(compact.get("rol"))),
                    slug=_optional_str(compact.get("slg")),
                )
        elif _optional_str(payload.get("org_id")):
            organization = SessionOrgClaims(
                id=payload["org_id"],
                role=normalize_role(_optional_str(payload.get("org_role"))),
                slug=_optional_str(payload.get("org_slug")),
            )

        return cls(
            first_name=_optional_str(payload.get("firstName")),
            organization_name=_optional_str(payload.get("orgName")),
            organization_logo=_optional_str(payload.get("orgLogo")),
            organization=organization,
        )


@dataclass(frozen=True, slots=True)
class AuthState:
    """What the identity boundary knows about a request.

    ``user_id`` and ``claims`` are both ``None`` for anonymous requests.
    """

    user_id: str | None = None
    claims: SessionClaims | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = AuthState()


def with_active_organization(auth: AuthState, organization: SessionOrgClaims) -> AuthState:
    """Return ``auth`` acting for ``organization`` instead of the session's own."""
    claims = auth.claims or SessionClaims()
    return AuthState(user_id=auth.user_id, claims=replace(claims, organization=organization))
