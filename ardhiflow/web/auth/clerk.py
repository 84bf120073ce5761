"""Clerk session JWT validation and JWKS key management."""

from __future__ import annotations

import asyncio
import time
from typing import Any
from urllib.parse import urlsplit

import httpx
import jwt
import structlog

from ardhiflow.auth.claims import AuthState, SessionClaims
from ardhiflow.config.settings import get_settings
from ardhiflow.exceptions import ConfigError

logger = structlog.get_logger(__name__)

# Clerk rotates signing keys rarely; refetch hourly
_JWKS_CACHE_TTL = 3600.0


class SigningKeyCache:
    """Clerk's published JWKS, refetched after ``ttl`` seconds.

    A failed refresh keeps serving the previous keys; only a cold cache
    lets the fetch error through.
    """

    def __init__(
        self,
        ttl: float = _JWKS_CACHE_TTL,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._ttl = ttl
        self._timeout = timeout
        self._transport = transport
        self._keys: list[dict[str, Any]] = []
        self._fetched_at = 0.0
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        return bool(self._keys) and time.monotonic() - self._fetched_at <= self._ttl

    async def get(self, jwks_url: str) -> list[dict[str, Any]]:
        if self._is_fresh():
            return self._keys

        async with self._lock:
            if self._is_fresh():
                return self._keys
            try:
                async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                    resp = await client.get(jwks_url)
                    resp.raise_for_status()
                    keys: list[dict[str, Any]] = resp.json().get("keys", [])
            except (httpx.HTTPError, KeyError, ValueError) as exc:
                if not self._keys:
                    raise
                logger.warning("jwks_refresh_failed", error=str(exc), stale_keys=len(self._keys))
                return self._keys

            self._keys = keys
            self._fetched_at = time.monotonic()
            logger.debug("jwks_fetched", key_count=len(keys))
            return keys


_signing_keys = SigningKeyCache()


async def _get_signing_keys() -> list[dict[str, Any]]:
    jwks_url = get_settings().clerk_jwks_url
    if not jwks_url:
        msg = "CLERK_JWKS_URL is not configured"
        raise ConfigError(msg)
    return await _signing_keys.get(jwks_url)


def is_authorized_party(azp: str | None, parties: list[str]) -> bool:
    """Match a token's ``azp`` origin against the allowed parties.

    An entry may name one origin or, with a leading ``*.`` host label, every
    subdomain of a domain: ``https://*.example.com`` admits
    ``https://acme.example.com`` but not ``https://example.com``.
    """
    if not azp:
        return False
    if azp in parties:
        return True

    origin = urlsplit(azp)
    if not origin.hostname or origin.path not in ("", "/") or origin.query or origin.fragment:
        return False
    for party in parties:
        allowed = urlsplit(party)
        if not allowed.hostname or not allowed.hostname.startswith("*."):
            continue
        if (
            origin.scheme == allowed.scheme
            and origin.port == allowed.port
            and origin.hostname.endswith(allowed.hostname[1:])
        ):
            return True
    return False


async def verify_clerk_token(token: str) -> AuthState:
    """Verify a Clerk session JWT and return the caller's identity.

    Raises jwt.PyJWTError on invalid/expired tokens or a foreign ``azp``.
    """
    settings = get_settings()
    keys = await _get_signing_keys()
    signing_key = jwt.PyJWKSet.from_dict({"keys": keys})

    decode_options: dict[str, Any] = {
        "algorithms": ["RS256"],
        "options": {"verify_aud": False},
    }
    if settings.clerk_issuer:
        decode_options["issuer"] = settings.clerk_issuer

    last_error: Exception | None = None
    for jwk in signing_key.keys:
        try:
            payload: dict[str, Any] = jwt.decode(token, jwk.key, **decode_options)
        except jwt.PyJWTError as exc:
            last_error = exc
            continue

        azp = payload.get("azp")
        if settings.clerk_authorized_parties and not is_authorized_party(
            azp, settings.clerk_authorized_parties
        ):
            msg = f"Unauthorized party: {azp}"
            raise jwt.InvalidTokenError(msg)

        return AuthState(user_id=payload["sub"], claims=SessionClaims.from_payload(payload))

    if last_error:
        raise last_error
    msg = "No valid signing key found"
    raise jwt.InvalidTokenError(msg)
