"""Certificate lifecycle probe - does HTTPS work, and for how much longer?

Two stages:
  1. Live handshake: HEAD https://<host>. Fast, authoritative for
     "does TLS work right now".
  2. CT lookup: expiry date and issuer from crt.sh. Slow and optional.

An expired cert in CT while the live handshake succeeded is a warn, not a
fail - CT data can lag reissues by up to ~48 hours, so it's flagged for
investigation instead of failing the site.
"""

import logging
from typing import Callable
from datetime import datetime

from sitehealth.util.types import CheckStatus, SSLDetails, Verdict
from sitehealth.util.time import now_utc
from sitehealth.scanner.errors import TransportError
from sitehealth.scanner.normalization import extract_hostname, host_for_url, is_https
from sitehealth.scanner.transport import ProbeTransport, looks_like_tls_error
from sitehealth.scanner.probes.ct_log import CTLogClient, select_certificate

logger = logging.getLogger(__name__)


class TLSProbe:
    """HTTPS handshake + certificate expiry check."""

    def __init__(self,
                 transport: ProbeTransport,
                 ct_client: CTLogClient,
                 timeout: float = 5.0,
                 warning_days: int = 30,
                 clock: Callable[[], datetime] = now_utc):
        self.transport = transport
        self.ct_client = ct_client
        self.timeout = timeout
        self.warning_days = warning_days
        self.clock = clock

    async def check(self, url: str) -> Verdict:
        """Grade the target's HTTPS setup. Never raises."""
        try:
            return await self._check(url)
        except Exception as e:
            logger.warning(f"Unexpected TLS check error for {url}: {e}")
            return Verdict(
                status=CheckStatus.FAIL,
                message="Unable to verify SSL/TLS",
                score=0,
                details=SSLDetails(error=str(e) or "Unknown error"),
            )

    async def _check(self, url: str) -> Verdict:
        if not is_https(url):
            return Verdict(
                status=CheckStatus.FAIL,
                message="Site is not using HTTPS - insecure connection",
                score=0,
                details=SSLDetails(protocol="http", secure=False),
            )

        hostname = extract_hostname(url)
        if not hostname:
            raise ValueError("URL has no hostname")

        # Stage 1: live handshake
        try:
            resp = await self.transport.fetch(
                f"https://{host_for_url(hostname)}",
                method='HEAD',
                headers=self.transport.site_headers(),
                timeout=self.timeout,
                allow_redirects=True,
            )
        except TransportError as e:
            if e.tls_failure or looks_like_tls_error(e.message):
                logger.info(f"TLS handshake failed for {hostname}: {e.message}")
                return Verdict(
                    status=CheckStatus.FAIL,
                    message="SSL/TLS certificate is invalid or expired",
                    score=0,
                    details=SSLDetails(protocol="https", secure=False, error=e.message),
                )
            logger.info(f"HTTPS connection issue for {hostname}: {e.message}")
            return Verdict(
                status=CheckStatus.WARN,
                message="HTTPS configured but connection issue detected",
                score=5,
                details=SSLDetails(protocol="https", secure=False, error=e.message),
            )

        status_code = resp.status

        # Stage 2: certificate transparency
        records = await self.ct_client.search(hostname)
        cert = None
        if records:
            cert = select_certificate(records, hostname, self.clock(), self.warning_days)

        if cert is None:
            return Verdict(
                status=CheckStatus.PASS,
                message="HTTPS enabled with valid certificate",
                score=10,
                details=SSLDetails(
                    protocol="https",
                    secure=True,
                    status_code=status_code,
                    cert_transparency=False,
                ),
            )

        days = cert.days_until_expiry
        common = dict(
            protocol="https",
            secure=True,
            status_code=status_code,
            expires_at=cert.record.not_after.isoformat(),
            days_until_expiry=days,
            issuer=cert.record.issuer_name,
            sans=cert.san_count,
            cert_transparency=True,
        )

        if cert.expired:
            return Verdict(
                status=CheckStatus.WARN,
                message=f"HTTPS enabled but certificate expired {abs(days)} days ago",
                score=5,
                details=SSLDetails(expired=True, expiring_soon=False, **common),
            )

        if cert.expiring_soon:
            return Verdict(
                status=CheckStatus.WARN,
                message=f"HTTPS enabled, certificate expires in {days} days",
                score=8,
                details=SSLDetails(expired=False, expiring_soon=True, **common),
            )

        return Verdict(
            status=CheckStatus.PASS,
            message=f"HTTPS enabled with valid certificate (expires in {days} days)",
            score=10,
            details=SSLDetails(expired=False, expiring_soon=False, **common),
        )
