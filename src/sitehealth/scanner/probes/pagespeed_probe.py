"""PageSpeed probe - page performance from Google PageSpeed Insights v5.

Third-party and slow (often 10-20s). If the API is down, over quota or
times out we degrade to a warn with partial credit - an outage on
Google's side shouldn't tank the site's report.
"""

import logging
import math
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from sitehealth.util.types import CheckStatus, PageSpeedDetails, PageSpeedMetrics, Verdict
from sitehealth.scanner.errors import ProbeAborted, TransportError
from sitehealth.scanner.transport import ProbeTransport

logger = logging.getLogger(__name__)

PAGESPEED_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
DEGRADED_SCORE = 8


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def extract_performance(payload: Dict[str, Any]) -> PageSpeedDetails:
    """Pull the 0-100 score and display metrics out of a Lighthouse result."""
    raw_score = _dig(payload, 'lighthouseResult', 'categories', 'performance', 'score')
    try:
        fraction = float(raw_score) if raw_score is not None else 0.0
    except (TypeError, ValueError):
        fraction = 0.0
    # Round half up, 0.895 → 90 not 89
    performance_score = int(math.floor(fraction * 100 + 0.5))

    audits = _dig(payload, 'lighthouseResult', 'audits') or {}

    def display(audit_id: str) -> str:
        value = _dig(audits, audit_id, 'displayValue')
        return str(value) if value else "N/A"

    return PageSpeedDetails(
        performance_score=performance_score,
        metrics=PageSpeedMetrics(
            fcp=display('first-contentful-paint'),
            lcp=display('largest-contentful-paint'),
            cls=display('cumulative-layout-shift'),
        ),
    )


def _degraded(message: str, error: str, note: str) -> Verdict:
    return Verdict(
        status=CheckStatus.WARN,
        message=message,
        score=DEGRADED_SCORE,
        details=PageSpeedDetails(error=error, note=note),
    )


class PageSpeedProbe:
    """Mobile performance score via PageSpeed Insights."""

    def __init__(self,
                 transport: ProbeTransport,
                 api_key: Optional[str] = None,
                 timeout: float = 30.0,
                 strategy: str = 'mobile'):
        self.transport = transport
        self.api_key = api_key
        self.timeout = timeout
        self.strategy = strategy

    def _api_url(self, url: str) -> str:
        params = {'url': url, 'strategy': self.strategy}
        if self.api_key:
            params['key'] = self.api_key
        return f"{PAGESPEED_URL}?{urlencode(params)}"

    async def check(self, url: str) -> Verdict:
        """Grade page performance. Never fails - worst case is a degraded warn."""
        try:
            resp = await self.transport.fetch(self._api_url(url), method='GET', timeout=self.timeout)
        except ProbeAborted as e:
            logger.warning(f"PageSpeed timed out for {url}")
            return _degraded(
                "PageSpeed check timed out - may indicate slow page",
                e.message,
                "This timeout suggests performance issues",
            )
        except TransportError as e:
            logger.warning(f"PageSpeed check error for {url}: {e.message}")
            return _degraded("Unable to complete PageSpeed check", e.message, "PageSpeed check skipped")

        if not resp.ok:
            logger.warning(f"PageSpeed API error: HTTP {resp.status}")
            return _degraded(
                "Unable to fetch PageSpeed data - API unavailable",
                f"HTTP {resp.status}",
                "PageSpeed check skipped",
            )

        try:
            payload = resp.json()
            if not isinstance(payload, dict):
                raise ValueError("expected a JSON object")
            details = extract_performance(payload)
        except ValueError as e:
            logger.warning(f"PageSpeed returned malformed data for {url}: {e}")
            return _degraded("Unable to complete PageSpeed check", str(e), "PageSpeed check skipped")

        score = details.performance_score
        if score >= 90:
            return Verdict(CheckStatus.PASS, f"Excellent performance ({score}/100)", 15, details)
        if score >= 50:
            return Verdict(CheckStatus.WARN, f"Moderate performance ({score}/100)", 10, details)
        return Verdict(CheckStatus.FAIL, f"Poor performance ({score}/100)", 5, details)
