"""
Built-in name server profiles and server address handling.

Provides pre-configured profiles for popular public DNS resolvers,
the default server list, and normalization of ``host[:port]`` strings.
"""

import ipaddress

from .models import ResolverProfile


DEFAULT_PORT = 53

# Pre-configured resolver profiles
RESOLVERS: dict[str, ResolverProfile] = {
    "google": ResolverProfile(
        name="Google",
        ipv4="8.8.8.8",
        ipv6="2001:4860:4860::8888",
        description="Google Public DNS",
    ),
    "google-secondary": ResolverProfile(
        name="Google Secondary",
        ipv4="8.8.4.4",
        ipv6="2001:4860:4860::8844",
        description="Google Public DNS secondary",
    ),
    "cloudflare": ResolverProfile(
        name="Cloudflare",
        ipv4="1.1.1.1",
        ipv6="2606:4700:4700::1111",
        description="Cloudflare's privacy-focused DNS resolver",
    ),
    "cloudflare-secondary": ResolverProfile(
        name="Cloudflare Secondary",
        ipv4="1.0.0.1",
        ipv6="2606:4700:4700::1001",
        description="Cloudflare's secondary DNS resolver",
    ),
    "quad9": ResolverProfile(
        name="Quad9",
        ipv4="9.9.9.9",
        ipv6="2620:fe::fe",
        description="Quad9 with malware blocking",
    ),
    "opendns": ResolverProfile(
        name="OpenDNS",
        ipv4="208.67.222.222",
        ipv6="2620:119:35::35",
        description="Cisco OpenDNS",
    ),
    "adguard": ResolverProfile(
        name="AdGuard",
        ipv4="94.140.14.14",
        ipv6="2a10:50c0::ad1:ff",
        description="AdGuard DNS with ad blocking",
    ),
}

# Google, Cloudflare, Quad9
DEFAULT_SERVERS = ["8.8.8.8", "1.1.1.1", "9.9.9.9"]


def get_resolver(name: str) -> ResolverProfile:
    """Get a resolver profile by name (case-insensitive)."""
    key = name.lower()
    if key in RESOLVERS:
        return RESOLVERS[key]
    raise ValueError(f"Unknown resolver: {name}. Available: {list(RESOLVERS.keys())}")


def list_resolvers() -> list[str]:
    """List all available resolver profile names."""
    return list(RESOLVERS.keys())


def normalize_server(server: str) -> str:
    """
    Normalize a server address to ``host:port`` form.

    Profile names expand to the profile's IPv4 address. Addresses without
    a port get the standard DNS port; bare IPv6 addresses are bracketed.

    Raises:
        ValueError: If the server string is empty or the port is invalid
    """
    server = server.strip()
    if not server:
        raise ValueError("server address cannot be empty")

    if server.lower() in RESOLVERS:
        server = RESOLVERS[server.lower()].ipv4

    try:
        address = ipaddress.ip_address(server)
    except ValueError:
        pass
    else:
        if address.version == 6:
            return f"[{address}]:{DEFAULT_PORT}"
        return f"{address}:{DEFAULT_PORT}"

    host, port = split_server(server)
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def split_server(server: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6]:port``) into host and port."""
    if server.startswith("["):
        host, _, rest = server[1:].partition("]")
        port_text = rest[1:] if rest.startswith(":") else ""
    elif server.count(":") == 1:
        host, _, port_text = server.partition(":")
    else:
        host, port_text = server, ""

    if not port_text:
        return host, DEFAULT_PORT
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"invalid port in server address: {server}") from None
    if not 0 < port < 65536:
        raise ValueError(f"invalid port in server address: {server}")
    return host, port
