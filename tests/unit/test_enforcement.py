"""Unit tests for the per-request tenant gate."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from ardhiflow.tenancy.context import TenantContext
from ardhiflow.tenancy.enforcement import enforce_tenant_access, requested_tenant_slug


def _redirect_back(redirect_url: str) -> tuple[str, str]:
    parts = urlsplit(redirect_url)
    return parts.path, parse_qs(parts.query)["redirect_url"][0]


@pytest.mark.unit
class TestPublicRoutes:
    @pytest.mark.parametrize(
        "path",
        ["/", "/sign-in", "/sign-in/factor-one", "/sign-up", "/api/webhooks/clickpesa", "/auth/callback", "/api/health"],
    )
    def test_public_paths_pass_anonymously(self, path: str, auth_factory) -> None:
        outcome = enforce_tenant_access(path, f"http://acme.example.com{path}", "acme.example.com", auth_factory(None))
        assert outcome.allowed
        assert outcome.tenant is None


@pytest.mark.unit
class TestSignInRequired:
    def test_anonymous_redirects_to_sign_in(self, auth_factory) -> None:
        url = "https://acme.example.com/contracts?page=2"
        outcome = enforce_tenant_access("/contracts", url, "acme.example.com", auth_factory(None))
        assert not outcome.allowed
        assert _redirect_back(outcome.redirect_url) == ("/sign-in", url)

    @pytest.mark.parametrize("path", ["/select-organization", "/onboarding/create-organization"])
    def test_onboarding_needs_user_but_no_org(self, path: str, auth_factory) -> None:
        outcome = enforce_tenant_access(
            path, f"http://localhost{path}", "localhost", auth_factory(org_id=None)
        )
        assert outcome.allowed


@pytest.mark.unit
class TestOrganizationRequired:
    def test_no_active_org_redirects_to_picker(self, auth_factory) -> None:
        url = "http://localhost:3000/dashboard"
        outcome = enforce_tenant_access("/dashboard", url, "localhost:3000", auth_factory(org_id=None))
        assert _redirect_back(outcome.redirect_url) == ("/select-organization", url)

    def test_org_without_slug_redirects_to_picker(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "http://localhost/dashboard", "localhost", auth_factory(slug=None)
        )
        assert urlsplit(outcome.redirect_url).path == "/select-organization"


@pytest.mark.unit
class TestHostEnforcement:
    def test_localhost_passes_with_tenant(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "http://localhost:3000/dashboard", "localhost:3000", auth_factory()
        )
        assert outcome.allowed
        assert outcome.tenant == TenantContext(org_id="org_acme", org_slug="acme", org_role="admin")

    def test_missing_role_defaults_to_member(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "http://localhost/dashboard", "localhost", auth_factory(role=None)
        )
        assert outcome.tenant is not None
        assert outcome.tenant.org_role == "member"

    def test_matching_subdomain_passes(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "https://acme.example.com/dashboard", "acme.example.com", auth_factory()
        )
        assert outcome.allowed
        assert outcome.tenant is not None
        assert outcome.tenant.org_slug == "acme"

    def test_app_subdomain_forwards_to_tenant(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "https://app.example.com/dashboard?x=1", "app.example.com", auth_factory()
        )
        assert outcome.redirect_url == "https://acme.example.com/dashboard?x=1"

    def test_other_tenant_subdomain_forwards_to_own(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/contracts", "https://beta.example.com/contracts", "beta.example.com", auth_factory()
        )
        assert outcome.redirect_url == "https://acme.example.com/contracts"

    def test_root_domain_forwards_to_tenant(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "https://example.com/dashboard", "example.com", auth_factory()
        )
        assert outcome.redirect_url == "https://acme.example.com/dashboard"

    def test_port_is_preserved(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "http://app.example.com:8080/dashboard", "app.example.com:8080", auth_factory()
        )
        assert outcome.redirect_url == "http://acme.example.com:8080/dashboard"


@pytest.mark.unit
class TestSelectedTenant:
    BETA = TenantContext(org_id="org_beta", org_slug="beta", org_role="member", org_name="Beta")

    def test_selected_tenant_wins_on_its_subdomain(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "https://beta.example.com/dashboard", "beta.example.com", auth_factory(), self.BETA
        )
        assert outcome.allowed
        assert outcome.tenant == self.BETA

    def test_selected_tenant_without_active_org(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard",
            "https://beta.example.com/dashboard",
            "beta.example.com",
            auth_factory(org_id=None),
            self.BETA,
        )
        assert outcome.tenant == self.BETA

    def test_selected_tenant_ignored_on_other_host(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "https://gamma.example.com/dashboard", "gamma.example.com", auth_factory(), self.BETA
        )
        assert outcome.redirect_url == "https://acme.example.com/dashboard"

    def test_selected_tenant_needs_sign_in(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "https://beta.example.com/dashboard", "beta.example.com", auth_factory(None), self.BETA
        )
        assert urlsplit(outcome.redirect_url).path == "/sign-in"


@pytest.mark.unit
class TestRequestedTenantSlug:
    @pytest.mark.parametrize(
        ("url", "host", "expected"),
        [
            ("https://beta.example.com/dashboard", "beta.example.com", "beta"),
            ("https://app.example.com/dashboard", "app.example.com", None),
            ("https://example.com/dashboard", "example.com", None),
            ("http://localhost:3000/dashboard?org=beta", "localhost:3000", "beta"),
            ("http://localhost:3000/dashboard", "localhost:3000", None),
            ("http://beta.localhost:3000/dashboard", "beta.localhost:3000", "beta"),
            ("http://10.0.0.5/dashboard", "10.0.0.5", None),
        ],
    )
    def test_requested_slug(self, url: str, host: str, expected: str | None) -> None:
        assert requested_tenant_slug(url, host) == expected


@pytest.mark.unit
class TestIpHosts:
    def test_ip_host_passes_with_active_tenant(self, auth_factory) -> None:
        outcome = enforce_tenant_access(
            "/dashboard", "http://10.0.0.5:8000/dashboard", "10.0.0.5:8000", auth_factory()
        )
        assert outcome.allowed
        assert outcome.tenant is not None
        assert outcome.tenant.org_slug == "acme"
