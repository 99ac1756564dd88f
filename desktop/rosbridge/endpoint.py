"""
WebSocket address validation.

Only canonical addresses are accepted: the string must survive a round trip
through the URL parser unchanged, so nothing is ever silently normalized.
It must also use only characters RFC 3986 allows unescaped, and name its
host as an IP literal or a DNS name.
"""

import ipaddress
import re
from urllib.parse import quote, urlsplit, urlunsplit

from .constants import WEBSOCKET_SCHEMES
from .errors import InvalidEndpoint

# Reserved and unreserved characters plus "%" for existing escapes
_URL_SAFE_CHARS = ":/?#[]@!$&'()*+,;=%~"
_BAD_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_DNS_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


def _is_valid_host(hostname: str, bracketed: bool) -> bool:
    if bracketed:
        try:
            return ipaddress.ip_address(hostname).version == 6
        except ValueError:
            return False
    try:
        ipaddress.ip_address(hostname)
        return True
    except ValueError:
        pass
    if len(hostname) > 253:
        return False
    return all(_DNS_LABEL.match(label) for label in hostname.split("."))


class Endpoint:
    """A validated ws:// or wss:// address of a rosbridge server."""

    __slots__ = ("_url",)

    def __init__(self, url: str):
        if not isinstance(url, str) or not url:
            raise InvalidEndpoint(f"Endpoint must be a non-empty string, got {url!r}")

        try:
            parts = urlsplit(url)
            # Accessing port validates it (raises ValueError when out of range)
            parts.port
        except ValueError as e:
            raise InvalidEndpoint(f"Malformed endpoint {url!r}: {e}") from e

        if parts.scheme not in WEBSOCKET_SCHEMES:
            raise InvalidEndpoint(
                f"Endpoint {url!r} must use one of {', '.join(WEBSOCKET_SCHEMES)}"
            )
        if not parts.hostname:
            raise InvalidEndpoint(f"Endpoint {url!r} has no host")
        if urlunsplit(parts) != url:
            raise InvalidEndpoint(f"Endpoint {url!r} is not in canonical form")
        if quote(url, safe=_URL_SAFE_CHARS) != url or _BAD_PERCENT_ESCAPE.search(url):
            raise InvalidEndpoint(f"Endpoint {url!r} contains characters that must be escaped")

        host_part = parts.netloc.rpartition("@")[2]
        if not _is_valid_host(parts.hostname, host_part.startswith("[")):
            raise InvalidEndpoint(f"Endpoint {url!r} has an invalid host {parts.hostname!r}")

        self._url = url

    @property
    def url(self) -> str:
        return self._url

    def __eq__(self, other) -> bool:
        if not isinstance(other, Endpoint):
            return NotImplemented
        return self._url == other._url

    def __hash__(self) -> int:
        return hash(self._url)

    def __repr__(self) -> str:
        return f"Endpoint({self._url!r})"

    def __str__(self) -> str:
        return self._url
