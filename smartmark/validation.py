"""
Input validation for bookmark submissions.
"""
import re
from typing import Tuple
from urllib.parse import urlparse

from smartmark.constants import MSG_REQUIRED, MSG_INVALID_URL
from smartmark.errors import ValidationError

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")

# Schemes that must carry a host, as browsers treat them
_HOST_SCHEMES = {"http", "https", "ftp", "ws", "wss"}


def is_absolute_url(url: str) -> bool:
    """
    Check whether a string parses as an absolute URL.

    Any scheme is accepted. Web schemes (http, https, ftp, ws, wss) must
    also name a host after ``//``, and a port if present must be numeric
    and in range. Browser-repaired forms such as ``http:example.com`` or
    ``https:/example.com`` are rejected.

    Examples:
        >>> is_absolute_url("https://example.com")
        True
        >>> is_absolute_url("example.com")
        False
    """
    if not isinstance(url, str):
        return False
    url = url.strip()
    if not url or any(ch.isspace() for ch in url):
        return False

    try:
        parsed = urlparse(url)
        if not parsed.scheme or not _SCHEME_RE.match(parsed.scheme):
            return False
        if parsed.scheme.lower() in _HOST_SCHEMES:
            if not parsed.hostname:
                return False
            parsed.port  # raises ValueError for a bad port
        elif not (parsed.netloc or parsed.path):
            return False
    except ValueError:
        return False

    return True


def validate_bookmark(title: str, url: str) -> Tuple[str, str]:
    """
    Validate a bookmark submission.

    Args:
        title: Title as typed by the user
        url: URL as typed by the user

    Returns:
        The trimmed (title, url) pair

    Raises:
        ValidationError: With a message meant for the user
    """
    title = (title or "").strip()
    url = (url or "").strip()

    if not title or not url:
        raise ValidationError(MSG_REQUIRED)
    if not is_absolute_url(url):
        raise ValidationError(MSG_INVALID_URL)

    return title, url
