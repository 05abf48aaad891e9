"""Target URL validation and normalization.

Users type all sorts of things into a scan box:

    "example.com" vs "  HTTPS://Example.COM " vs "http://example.com/path?x=1"

Everything gets converted to one canonical absolute URL before any probe
sees it, so every probe agrees on scheme and hostname. Bad input is
rejected here with InvalidTargetError - nothing is probed for it.
"""

import logging
import re
from urllib.parse import urlsplit, urlunsplit

from sitehealth.scanner.errors import InvalidTargetError

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r'^https?://', re.IGNORECASE)
_BLOCKED_HOSTS = {'localhost', '127.0.0.1'}


def validate_and_normalize_url(raw: str) -> str:
    """Validate a user-supplied target and return its canonical URL.

    Examples:
        validate_and_normalize_url("example.com") → "https://example.com/"
        validate_and_normalize_url("HTTP://Example.com") → "http://example.com/"

    Raises:
        InvalidTargetError: empty input, unsupported scheme, no hostname,
            localhost, or unparseable URL
    """
    if not raw or not raw.strip():
        raise InvalidTargetError("URL is required")

    text = raw.strip()

    # Bare hostnames default to HTTPS
    if not _SCHEME_RE.match(text):
        if '://' in text:
            raise InvalidTargetError("Only HTTP and HTTPS protocols are supported")
        text = 'https://' + text

    try:
        parts = urlsplit(text)
        hostname = parts.hostname
        port = parts.port
    except ValueError:
        raise InvalidTargetError("Invalid URL format")

    scheme = parts.scheme.lower()
    if scheme not in ('http', 'https'):
        raise InvalidTargetError("Only HTTP and HTTPS protocols are supported")

    if not hostname:
        raise InvalidTargetError("Invalid hostname")

    if any(c.isspace() for c in hostname):
        raise InvalidTargetError("Invalid URL format")

    if hostname in _BLOCKED_HOSTS:
        raise InvalidTargetError("Localhost URLs are not supported")

    try:
        hostname = hostname.encode('idna').decode('ascii')
    except UnicodeError:
        raise InvalidTargetError("Invalid hostname")

    netloc = host_for_url(hostname)
    if port is not None:
        netloc = f'{netloc}:{port}'
    if parts.username:
        userinfo = parts.username
        if parts.password:
            userinfo += f':{parts.password}'
        netloc = f'{userinfo}@{netloc}'

    path = parts.path or '/'
    normalized = urlunsplit((scheme, netloc, path, parts.query, parts.fragment))
    logger.debug(f"Normalized target {raw!r} -> {normalized}")
    return normalized


def host_for_url(hostname: str) -> str:
    """Hostname as it must appear in a URL authority (IPv6 gets brackets)."""
    if ':' in hostname:
        return f'[{hostname}]'
    return hostname


def extract_hostname(url: str) -> str:
    """Return the lower-cased hostname of a URL, or '' if there is none."""
    try:
        return urlsplit(url).hostname or ''
    except ValueError:
        return ''


def is_https(url: str) -> bool:
    try:
        return urlsplit(url).scheme.lower() == 'https'
    except ValueError:
        return False
