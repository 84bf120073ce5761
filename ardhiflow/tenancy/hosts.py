"""Host header parsing across local and production environments."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


@dataclass(frozen=True, slots=True)
class HostnameParts:
    hostname: str
    subdomain: str | None
    base_host: str | None
    is_localhost: bool
    is_ip_address: bool = False


def _strip_port(host: str) -> str:
    if host.startswith("["):
        return host[1:].split("]")[0]
    return host.split(":")[0]


def _is_ip_literal(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


def get_hostname_parts(host: str) -> HostnameParts:
    """Split a Host header into subdomain and base host.

    The port is dropped and the name lower-cased. ``foo.localhost`` yields
    subdomain ``foo`` on base ``localhost``; a two-label name such as
    ``example.com`` and an IP address have no subdomain.
    """
    hostname = _strip_port(host).lower()
    is_localhost = hostname in _LOCAL_HOSTS or hostname.endswith(".localhost")
    is_ip = _is_ip_literal(hostname)
    parts = hostname.split(".")

    if is_localhost:
        if hostname in _LOCAL_HOSTS:
            return HostnameParts(hostname, None, hostname, is_localhost, is_ip)
        subdomain = ".".join(parts[:-1]) or None
        return HostnameParts(hostname, subdomain, "localhost", is_localhost)

    if len(parts) <= 2 or is_ip:
        return HostnameParts(hostname, None, hostname, is_localhost, is_ip)

    return HostnameParts(hostname, parts[0] or None, ".".join(parts[1:]) or None, is_localhost)
