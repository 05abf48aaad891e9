"""Probe transport - one HTTP fetch primitive every probe is built on.

Wraps a single aiohttp session. Every call carries its own deadline;
when it expires the request is cancelled and ProbeAborted is raised so
probes can word their verdicts differently for timeouts.
"""

import asyncio
import json
import logging
import ssl
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp

from sitehealth.scanner.errors import ProbeAborted, TransportError

logger = logging.getLogger(__name__)

_TLS_MARKERS = ('certificate', 'SSL', 'TLS')


@dataclass(frozen=True)
class FetchResponse:
    """What a probe gets back from a fetch - status, headers, raw body."""
    status: int
    reason: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decode the body as JSON. Raises ValueError if it isn't."""
        return json.loads(self.body.decode('utf-8', errors='replace'))


def looks_like_tls_error(message: str) -> bool:
    """True when an error message points at the TLS layer."""
    return any(marker in message for marker in _TLS_MARKERS)


class ProbeTransport:
    """Async HTTP client shared by all probes of a scan.

    Usage:
        async with ProbeTransport(user_agent=...) as transport:
            resp = await transport.fetch(url, method='HEAD', timeout=5.0)
    """

    def __init__(self, user_agent: str, session: Optional[aiohttp.ClientSession] = None):
        """Initialize with the identifying User-Agent for scanned sites."""
        self.user_agent = user_agent
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self):
        """Set up aiohttp session with connection pooling."""
        if self.session is None:
            connector = aiohttp.TCPConnector(limit=50, limit_per_host=10)
            self.session = aiohttp.ClientSession(connector=connector)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Clean up session."""
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None

    def site_headers(self) -> Dict[str, str]:
        """Headers for requests sent directly to the scanned site."""
        return {'User-Agent': self.user_agent}

    async def fetch(self,
                    url: str,
                    method: str = 'GET',
                    headers: Optional[Dict[str, str]] = None,
                    timeout: float = 10.0,
                    allow_redirects: bool = True) -> FetchResponse:
        """Perform one request under a hard deadline.

        Raises:
            ProbeAborted: deadline exceeded (request cancelled)
            TransportError: connection, TLS or protocol failure
        """
        if self.session is None:
            raise RuntimeError("ProbeTransport used outside of 'async with'")

        client_timeout = aiohttp.ClientTimeout(total=timeout)
        try:
            async with self.session.request(method, url,
                                            headers=headers or {},
                                            allow_redirects=allow_redirects,
                                            timeout=client_timeout) as resp:
                body = b"" if method.upper() == 'HEAD' else await resp.read()
                return FetchResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=dict(resp.headers),
                    body=body,
                )

        except asyncio.TimeoutError:
            logger.debug(f"{method} {url} aborted after {timeout}s")
            raise ProbeAborted(timeout)

        except (aiohttp.ClientSSLError, aiohttp.ServerFingerprintMismatch, ssl.SSLError) as e:
            logger.debug(f"TLS failure for {method} {url}: {e}")
            raise TransportError(f"SSL error: {e}", tls_failure=True) from e

        except aiohttp.ClientError as e:
            message = str(e) or type(e).__name__
            logger.debug(f"HTTP error for {method} {url}: {message}")
            raise TransportError(message, tls_failure=looks_like_tls_error(message)) from e

        except OSError as e:
            message = str(e) or type(e).__name__
            logger.debug(f"Network error for {method} {url}: {message}")
            raise TransportError(message, tls_failure=looks_like_tls_error(message)) from e
