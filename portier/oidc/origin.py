"""Web origin computation for the server and redirect URLs (RFC 6454).

URLs are parsed with pydantic's ``AnyUrl``, which follows the WHATWG URL
standard: hosts are validated and IDNA-encoded, schemes and hosts are
lowercased, and backslashes in special URLs read as slashes.
"""

from pydantic import AnyUrl, ValidationError

# Schemes whose URLs have a (scheme, host, port) tuple origin.
DEFAULT_PORTS = {
    "ftp": 21,
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
}


def parse_url(url: str) -> AnyUrl | None:
    """Parse an absolute URL, or return None if it is invalid."""
    try:
        return AnyUrl(url)
    except ValidationError:
        return None


def tuple_origin(url: str) -> str | None:
    """Return the ASCII serialization of the URL's origin.

    Returns None when the URL has an opaque origin, such as ``file:`` or
    ``data:`` URLs, or when it cannot be parsed.
    """
    parsed = parse_url(url)
    if parsed is None or parsed.scheme not in DEFAULT_PORTS or not parsed.host:
        return None
    host = parsed.host
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    port = parsed.port
    if port is None or port == DEFAULT_PORTS[parsed.scheme]:
        return f"{parsed.scheme}://{host}"
    return f"{parsed.scheme}://{host}:{port}"


def is_bare_origin(url: str) -> bool:
    """Whether the URL is an origin, optionally followed by a single '/'."""
    parsed = parse_url(url)
    if parsed is None:
        return False
    if parsed.username or parsed.password:
        return False
    if parsed.query is not None or parsed.fragment is not None:
        return False
    return parsed.path in (None, "", "/")


def normalize_url(url: str) -> str:
    """Serialize a valid URL; one without a path gets the root path."""
    parsed = parse_url(url)
    if parsed is None:
        raise ValueError(f"invalid URL: {url!r}")
    return str(parsed)
