"""HTTP probes - server response time (TTFB) and availability.

Both send a HEAD straight at the target with redirects followed.
Availability only cares about the status class; the response probe
times the round trip and grades the latency.
"""

import logging
from typing import Callable

from sitehealth.util.types import AvailabilityDetails, CheckStatus, ServerResponseDetails, Verdict
from sitehealth.util.time import monotonic_ms
from sitehealth.scanner.errors import ProbeAborted, TransportError
from sitehealth.scanner.transport import ProbeTransport

logger = logging.getLogger(__name__)

FAST_TTFB_MS = 200
MODERATE_TTFB_MS = 500


class ServerResponseProbe:
    """Time-to-first-byte of a HEAD request."""

    def __init__(self,
                 transport: ProbeTransport,
                 timeout: float = 10.0,
                 clock: Callable[[], float] = monotonic_ms):
        self.transport = transport
        self.timeout = timeout
        self.clock = clock

    async def check(self, url: str) -> Verdict:
        """Measure and grade TTFB. Never raises."""
        try:
            start = self.clock()
            resp = await self.transport.fetch(
                url,
                method='HEAD',
                headers=self.transport.site_headers(),
                timeout=self.timeout,
                allow_redirects=True,
            )
            ttfb = int(round(self.clock() - start))
        except ProbeAborted:
            logger.info(f"Server response timed out for {url}")
            return Verdict(
                status=CheckStatus.FAIL,
                message=f"Server response timed out (>{self.timeout:g}s)",
                score=0,
                details=ServerResponseDetails(error="Timeout", ttfb=int(self.timeout * 1000)),
            )
        except TransportError as e:
            logger.info(f"Unable to reach {url}: {e.message}")
            return Verdict(
                status=CheckStatus.FAIL,
                message="Unable to reach server",
                score=0,
                details=ServerResponseDetails(error=e.message),
            )
        except Exception as e:
            logger.warning(f"Unexpected server response error for {url}: {e}")
            return Verdict(
                status=CheckStatus.FAIL,
                message="Unable to reach server",
                score=0,
                details=ServerResponseDetails(error=str(e) or type(e).__name__),
            )

        details = ServerResponseDetails(ttfb=ttfb, status_code=resp.status, status_text=resp.reason)

        if resp.status < 200 or resp.status >= 400:
            return Verdict(CheckStatus.WARN, f"Server returned {resp.status} status", 5, details)

        if ttfb < FAST_TTFB_MS:
            return Verdict(CheckStatus.PASS, f"Fast server response ({ttfb}ms TTFB)", 15, details)
        if ttfb < MODERATE_TTFB_MS:
            return Verdict(CheckStatus.WARN, f"Moderate server response ({ttfb}ms TTFB)", 10, details)
        return Verdict(CheckStatus.FAIL, f"Slow server response ({ttfb}ms TTFB)", 5, details)


class AvailabilityProbe:
    """Is the site up right now?"""

    def __init__(self, transport: ProbeTransport, timeout: float = 5.0):
        self.transport = transport
        self.timeout = timeout

    async def check(self, url: str) -> Verdict:
        """Grade the site's status class. Never raises."""
        try:
            resp = await self.transport.fetch(
                url,
                method='HEAD',
                headers=self.transport.site_headers(),
                timeout=self.timeout,
                allow_redirects=True,
            )
        except ProbeAborted:
            return Verdict(
                status=CheckStatus.FAIL,
                message="Site is not responding (timeout)",
                score=0,
                details=AvailabilityDetails(available=False, error=f"Timeout after {self.timeout:g} seconds"),
            )
        except TransportError as e:
            return Verdict(
                status=CheckStatus.FAIL,
                message="Site is offline or unreachable",
                score=0,
                details=AvailabilityDetails(available=False, error=e.message),
            )
        except Exception as e:
            logger.warning(f"Unexpected availability error for {url}: {e}")
            return Verdict(
                status=CheckStatus.FAIL,
                message="Site is offline or unreachable",
                score=0,
                details=AvailabilityDetails(available=False, error=str(e) or type(e).__name__),
            )

        code = resp.status
        details = AvailabilityDetails(available=True, status_code=code, status_text=resp.reason)

        if 200 <= code < 300:
            return Verdict(CheckStatus.PASS, "Site is online and responding", 15, details)
        if 300 <= code < 400:
            return Verdict(CheckStatus.PASS, "Site is online (with redirect)", 15, details)
        if 400 <= code < 500:
            return Verdict(CheckStatus.WARN, f"Site responding but with {code} error", 8, details)

        return Verdict(
            status=CheckStatus.FAIL,
            message=f"Site has server error ({code})",
            score=0,
            details=AvailabilityDetails(available=False, status_code=code, status_text=resp.reason),
        )
