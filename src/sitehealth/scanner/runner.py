"""Scan runner - orchestrates one website health scan.

This is where all the pieces come together:
1. Validate and normalize the target URL
2. Run the six network probes concurrently
3. Derive the mobile and HTTPS checks
4. Score, tier and write recommendations

Probes are independent: each owns its own deadline, none waits on
another, and a slow or broken one only degrades its own verdict.
Scan latency is bounded by the slowest probe, not the sum.
"""

import asyncio
import logging
from typing import Optional

from sitehealth.util.config import Config
from sitehealth.util.types import CheckResults, CheckStatus, Details, Report, Verdict
from sitehealth.util.time import now_utc, monotonic_ms, elapsed_ms
from sitehealth.scanner.normalization import validate_and_normalize_url, is_https
from sitehealth.scanner.transport import ProbeTransport
from sitehealth.scanner.probes.doh import default_providers
from sitehealth.scanner.probes.dns_probe import DNSProbe
from sitehealth.scanner.probes.ct_log import CTLogClient
from sitehealth.scanner.probes.tls_probe import TLSProbe
from sitehealth.scanner.probes.http_probe import ServerResponseProbe, AvailabilityProbe
from sitehealth.scanner.probes.email_probe import EmailProbe
from sitehealth.scanner.probes.pagespeed_probe import PageSpeedProbe
from sitehealth.scanner.checks.derived import derive_mobile_check, derive_https_check
from sitehealth.scanner.scoring.model import ScoringModel

logger = logging.getLogger(__name__)

PROBE_ORDER = ('ssl', 'dns', 'server_response', 'availability', 'email', 'page_speed')


class SiteScanner:
    """Runs the full probe set against one target and builds the report.

    Usage:
        async with SiteScanner(config) as scanner:
            report = await scanner.scan("example.com")

    A transport can be injected (tests do this); otherwise one aiohttp
    session is opened for the lifetime of the context manager.
    """

    def __init__(self, config: Config, transport: Optional[ProbeTransport] = None):
        """Initialize scanner with configuration."""
        self.config = config
        self.transport = transport or ProbeTransport(user_agent=config.user_agent)
        self._owns_transport = transport is None
        self.scoring = ScoringModel()

        providers = default_providers(self.transport)
        self.probes = {
            'ssl': TLSProbe(
                self.transport,
                CTLogClient(self.transport, timeout=config.ct_timeout, max_records=config.ct_max_records),
                timeout=config.tls_timeout,
                warning_days=config.expiry_warning_days,
            ),
            'dns': DNSProbe(providers, timeout=config.dns_timeout),
            'server_response': ServerResponseProbe(self.transport, timeout=config.http_timeout),
            'availability': AvailabilityProbe(self.transport, timeout=config.availability_timeout),
            'email': EmailProbe(providers[0], timeout=config.email_dns_timeout),
            'page_speed': PageSpeedProbe(
                self.transport,
                api_key=config.pagespeed_api_key,
                timeout=config.pagespeed_timeout,
            ),
        }

    async def __aenter__(self):
        if self._owns_transport:
            await self.transport.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._owns_transport:
            await self.transport.__aexit__(exc_type, exc_val, exc_tb)

    async def scan(self, target_url: str) -> Report:
        """Scan one website.

        Raises:
            InvalidTargetError: target rejected before any probe ran
            AggregationError: report assembly failed
        """
        url = validate_and_normalize_url(target_url)
        start = monotonic_ms()
        logger.info(f"Starting health scan for {url}")

        results = await asyncio.gather(
            *(self.probes[name].check(url) for name in PROBE_ORDER),
            return_exceptions=True,
        )

        verdicts = {}
        for name, result in zip(PROBE_ORDER, results):
            if isinstance(result, BaseException):
                # Probes are total; this only trips on a genuine bug
                logger.error(f"Probe {name} raised for {url}: {result!r}")
                result = Verdict(CheckStatus.FAIL, f"{name} check crashed", 0, Details())
            verdicts[name] = result
            logger.debug(f"{name}: {result.status.value} ({result.score}) {result.message}")

        checks = CheckResults(
            ssl=verdicts['ssl'],
            dns=verdicts['dns'],
            server_response=verdicts['server_response'],
            page_speed=verdicts['page_speed'],
            mobile=derive_mobile_check(verdicts['page_speed']),
            https=derive_https_check(verdicts['ssl'], is_https(url)),
            availability=verdicts['availability'],
            email=verdicts['email'],
        )

        report = self.scoring.build_report(url, checks, now_utc())

        logger.info(
            f"Scan of {url} complete in {elapsed_ms(start) / 1000:.1f}s: "
            f"{report.overall_score}/100 ({report.score_level})"
        )
        return report


async def scan_url(target_url: str, config: Optional[Config] = None) -> Report:
    """One-shot convenience wrapper around SiteScanner."""
    config = config or Config()
    async with SiteScanner(config) as scanner:
        return await scanner.scan(target_url)
