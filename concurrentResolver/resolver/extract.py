"""Turn raw input lines (URLs or bare hosts) into resolvable domain names."""
from __future__ import annotations

from urllib.parse import urlsplit

DEFAULT_SCHEME = "http://"
KNOWN_SCHEMES = ("http://", "https://")
WEB_PREFIX = "www."


def extract_domain(raw: str) -> str:
    """Return the bare hostname in `raw`, without scheme, port or a leading ``www.``.

    Bare hosts and ``host:port`` strings get a default scheme so they parse
    the same way URLs do. If the value cannot be parsed as a URL, the trimmed
    input is returned unchanged.
    """
    value = raw.strip()
    candidate = value if value.startswith(KNOWN_SCHEMES) else DEFAULT_SCHEME + value
    try:
        netloc = urlsplit(candidate).netloc
    except ValueError:
        return value
    return _host_of(netloc).removeprefix(WEB_PREFIX)


def _host_of(netloc: str) -> str:
    """Host part of a netloc with userinfo, port and IPv6 brackets removed, case kept."""
    host = netloc.rpartition("@")[2]
    if host.startswith("["):
        return host[1:].partition("]")[0]
    return host.partition(":")[0]
