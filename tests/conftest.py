"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from httpx import ASGITransport, AsyncClient

from ardhiflow.auth.claims import AuthState, SessionClaims, SessionOrgClaims
from ardhiflow.config.settings import get_settings
from ardhiflow.exceptions import DirectoryUnavailableError
from ardhiflow.payments.store import InMemoryPaymentStatusStore
from ardhiflow.tenancy.directory import Organization, OrganizationMembership
from ardhiflow.tenancy.resolver import OrganizationResolver
from ardhiflow.web.app import create_app
from ardhiflow.web.dependencies import (
    get_directory,
    get_payment_store,
    get_resolver,
)


class FakeDirectory:
    """Organization directory with canned answers."""

    def __init__(
        self,
        memberships: list[OrganizationMembership] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.memberships = memberships or []
        self.error = error
        self.calls: list[str] = []

    async def list_organization_memberships(self, user_id: str) -> list[OrganizationMembership]:
        self.calls.append(user_id)
        if self.error is not None:
            raise self.error
        return list(self.memberships)

    async def get_organization(self, org_id: str) -> Organization:
        if self.error is not None:
            raise self.error
        for m in self.memberships:
            if m.organization_id == org_id:
                return Organization(id=org_id, name=m.organization_name, slug=m.organization_slug)
        msg = f"unknown organization {org_id}"
        raise DirectoryUnavailableError(msg)


def make_membership(
    slug: str | None = "acme",
    role: str = "admin",
    org_id: str | None = None,
    name: str | None = None,
) -> OrganizationMembership:
    return OrganizationMembership(
        organization_id=org_id or f"org_{slug or 'noslug'}",
        organization_name=name or (slug or "No Slug").title(),
        organization_slug=slug,
        organization_image_url=None,
        role=role,
    )


def make_auth(
    user_id: str | None = "user_1",
    org_id: str | None = "org_acme",
    role: str | None = "admin",
    slug: str | None = "acme",
) -> AuthState:
    if user_id is None:
        return AuthState()
    org = SessionOrgClaims(id=org_id, role=role, slug=slug) if org_id else None
    return AuthState(user_id=user_id, claims=SessionClaims(first_name="Asha", organization=org))


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Fresh settings and shared clients for every test."""
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("BASE_DOMAIN", "example.com")
    monkeypatch.setenv("PAYMENT_POLL_INTERVAL_SECONDS", "0")
    for var in ("CLERK_SECRET_KEY", "CLERK_JWKS_URL", "CLERK_ISSUER", "REDIS_URL"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    get_directory.cache_clear()
    get_payment_store.cache_clear()
    yield
    get_settings.cache_clear()
    get_directory.cache_clear()
    get_payment_store.cache_clear()


@pytest.fixture()
def membership_factory() -> Callable[..., OrganizationMembership]:
    return make_membership


@pytest.fixture()
def auth_factory() -> Callable[..., AuthState]:
    return make_auth


@pytest.fixture()
def directory() -> FakeDirectory:
    return FakeDirectory(memberships=[make_membership("acme")])


@pytest.fixture()
def directory_factory() -> type[FakeDirectory]:
    return FakeDirectory


@pytest.fixture()
def payment_store() -> InMemoryPaymentStatusStore:
    return InMemoryPaymentStatusStore()


@pytest.fixture()
def signed_in(monkeypatch: pytest.MonkeyPatch) -> Callable[[AuthState], None]:
    """Make every request authenticate as the given identity."""

    def _sign_in(auth: AuthState) -> None:
        async def _authenticate(_request: object) -> AuthState:
            return auth

        monkeypatch.setattr("ardhiflow.web.middleware.authenticate", _authenticate)

    return _sign_in


@pytest.fixture()
def app(directory: FakeDirectory, payment_store: InMemoryPaymentStatusStore):
    """Create a fresh app wired to fake collaborators."""
    application = create_app()
    application.dependency_overrides[get_directory] = lambda: directory
    application.dependency_overrides[get_resolver] = lambda: OrganizationResolver(directory)
    application.dependency_overrides[get_payment_store] = lambda: payment_store
    return application


@pytest.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://localhost") as c:
        yield c
