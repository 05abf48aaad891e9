"""DNS probe - resolution speed and security posture.

Asks two independent DNS-over-HTTPS resolvers the same question at the
same time and reconciles what comes back:

  - timing stats (min/max/average) across every provider that answered
  - record set from provider A if it answered, otherwise provider B
  - DNSSEC: the preferred resolver's AD flag. Note this tells us the
    *resolver* validated a chain, not that the domain publishes DNSSEC
  - CDN: heuristic match of answer addresses/names against known CDNs.
    Advisory only, never scored, so we lean towards false positives.
"""

import asyncio
import ipaddress
import logging
from typing import List, Optional, Sequence, Tuple

from sitehealth.util.types import (
    CheckStatus, DNSDetails, DNSProviderResult, ProviderTiming, Verdict,
)
from sitehealth.scanner.normalization import extract_hostname
from sitehealth.scanner.probes.doh import DoHProvider, record_type_name

logger = logging.getLogger(__name__)

EXCELLENT_MS = 20
PASS_BELOW_MS = 75
WARN_BELOW_MS = 150

# Address blocks published by the big CDNs (not exhaustive)
CDN_NETWORKS = {
    'Cloudflare': [
        '173.245.48.0/20', '103.21.244.0/22', '103.22.200.0/22', '103.31.4.0/22',
        '141.101.64.0/18', '108.162.192.0/18', '190.93.240.0/20', '188.114.96.0/20',
        '197.234.240.0/22', '198.41.128.0/17', '162.158.0.0/15', '104.16.0.0/13',
        '104.24.0.0/14', '172.64.0.0/13', '131.0.72.0/22',
        '2400:cb00::/32', '2606:4700::/32', '2803:f800::/32', '2405:b500::/32',
        '2405:8100::/32', '2a06:98c0::/29', '2c0f:f248::/32',
    ],
    'Fastly': [
        '151.101.0.0/16', '199.232.0.0/16', '146.75.0.0/17', '23.235.32.0/20',
        '43.249.72.0/22', '103.244.50.0/24', '157.52.64.0/18', '167.82.0.0/17',
        '172.111.64.0/18', '185.31.16.0/22', '2a04:4e40::/32', '2a04:4e42::/32',
    ],
    'CloudFront': [
        '13.32.0.0/15', '13.35.0.0/16', '13.224.0.0/14', '18.64.0.0/14',
        '52.84.0.0/15', '54.182.0.0/16', '54.192.0.0/16', '54.230.0.0/16',
        '54.239.128.0/18', '99.84.0.0/16', '143.204.0.0/16', '205.251.192.0/19',
        '2600:9000::/28',
    ],
    'Akamai': [
        '23.0.0.0/12', '23.32.0.0/11', '23.64.0.0/14', '104.64.0.0/10',
        '184.24.0.0/13', '2.16.0.0/13', '96.6.0.0/15', '2a02:26f0::/29',
    ],
    'Google Cloud CDN': [
        '34.96.0.0/14', '35.186.0.0/16', '130.211.0.0/16',
    ],
}

# Substrings seen in CNAME targets / answer names
CDN_NAME_PATTERNS = (
    ('cloudflare', 'Cloudflare'),
    ('cloudfront.net', 'CloudFront'),
    ('fastly', 'Fastly'),
    ('akamai', 'Akamai'),
    ('edgekey.net', 'Akamai'),
    ('edgesuite.net', 'Akamai'),
    ('azureedge.net', 'Azure CDN'),
    ('azurefd.net', 'Azure Front Door'),
    ('cdn77', 'CDN77'),
    ('b-cdn.net', 'BunnyCDN'),
    ('stackpathdns', 'StackPath'),
    ('incapdns', 'Imperva'),
    ('sucuri', 'Sucuri'),
    ('vercel-dns', 'Vercel'),
    ('netlify', 'Netlify'),
    ('googleusercontent.com', 'Google Cloud CDN'),
    ('cdn', 'CDN'),
)

_PARSED_NETWORKS = [
    (provider, ipaddress.ip_network(block))
    for provider, blocks in CDN_NETWORKS.items()
    for block in blocks
]


def detect_cdn(values: Sequence[str]) -> Optional[str]:
    """Return the CDN name if any address/name matches a known pattern."""
    for value in values:
        text = value.strip().rstrip('.').lower()
        if not text:
            continue
        try:
            addr = ipaddress.ip_address(text)
        except ValueError:
            addr = None

        if addr is not None:
            for provider, network in _PARSED_NETWORKS:
                if addr.version == network.version and addr in network:
                    return provider
            continue

        for needle, provider in CDN_NAME_PATTERNS:
            if needle in text:
                return provider
    return None


def speed_verdict(average_ms: float) -> Tuple[CheckStatus, int, str]:
    """Map average resolution time to (status, score, label)."""
    if average_ms < PASS_BELOW_MS:
        label = "Excellent" if average_ms < EXCELLENT_MS else "Fast"
        return CheckStatus.PASS, 10, label
    if average_ms < WARN_BELOW_MS:
        return CheckStatus.WARN, 5, "Moderate"
    return CheckStatus.FAIL, 0, "Slow"


def _timings(results: Sequence[DNSProviderResult]) -> Tuple[ProviderTiming, ...]:
    return tuple(
        ProviderTiming(
            provider=r.provider,
            elapsed_ms=round(r.elapsed_ms, 2),
            succeeded=r.succeeded,
            status=r.status,
            error=r.error,
        )
        for r in results
    )


def evaluate_dns(results: Sequence[DNSProviderResult]) -> Verdict:
    """Reconcile provider results into one verdict.

    results must be in preference order (provider A first).
    Pure function - no I/O, so it can be tested with exact timings.
    """
    successful = [r for r in results if r.succeeded]

    if not successful:
        raw = [r.elapsed_ms for r in results]
        errors = '; '.join(f"{r.provider}: {r.error or f'status {r.status}'}" for r in results)
        return Verdict(
            status=CheckStatus.FAIL,
            message="DNS lookup failed on all providers",
            score=0,
            details=DNSDetails(
                response_time=round(min(raw)) if raw else 0,
                providers=_timings(results),
                error=errors or None,
            ),
        )

    preferred = successful[0]
    if not preferred.answers:
        return Verdict(
            status=CheckStatus.FAIL,
            message="DNS records not found",
            score=0,
            details=DNSDetails(
                response_time=round(preferred.elapsed_ms),
                providers=_timings(results),
                status=preferred.status,
            ),
        )

    times = [r.elapsed_ms for r in successful]
    min_time = min(times)
    max_time = max(times)
    average_time = sum(times) / len(times)

    dnssec_valid = preferred.authenticated_data

    scan_values: List[str] = []
    for answer in preferred.answers:
        scan_values.append(answer.data)
        scan_values.append(answer.name)
    cdn_provider = detect_cdn(scan_values)

    ttl = preferred.answers[0].ttl if preferred.answers else 0

    status, score, label = speed_verdict(average_time)
    display_ms = round(average_time)

    message = f"{label} DNS resolution ({display_ms}ms)"
    if dnssec_valid:
        message += ", DNSSEC validated"
    if cdn_provider:
        message += f", CDN detected ({cdn_provider})"

    record_types = []
    for answer in preferred.answers:
        name = record_type_name(answer.type)
        if name not in record_types:
            record_types.append(name)

    return Verdict(
        status=status,
        message=message,
        score=score,
        details=DNSDetails(
            response_time=display_ms,
            min_time=round(min_time, 2),
            max_time=round(max_time, 2),
            average_time=round(average_time, 2),
            providers=_timings(results),
            dnssec_valid=dnssec_valid,
            cdn_detected=cdn_provider is not None,
            cdn_provider=cdn_provider,
            ttl=ttl,
            records=len(preferred.answers),
            record_types=tuple(record_types),
            addresses=tuple(a.data for a in preferred.answers),
        ),
    )


class DNSProbe:
    """Dual-provider DNS resolution probe."""

    def __init__(self, providers: Sequence[DoHProvider], timeout: float = 3.0):
        """providers in preference order - provider A first."""
        self.providers = list(providers)
        self.timeout = timeout

    async def check(self, url: str) -> Verdict:
        """Resolve the target's hostname on every provider and grade it.

        Never raises - every failure becomes a fail verdict.
        """
        hostname = extract_hostname(url)
        if not hostname:
            return Verdict(
                status=CheckStatus.FAIL,
                message="Invalid hostname",
                score=0,
                details=DNSDetails(),
            )

        try:
            raw_results = await asyncio.gather(
                *(p.query(hostname, 'A', timeout=self.timeout) for p in self.providers),
                return_exceptions=True,
            )

            results = []
            for provider, result in zip(self.providers, raw_results):
                if isinstance(result, BaseException):
                    logger.warning(f"DNS provider {provider.name} crashed for {hostname}: {result}")
                    result = DNSProviderResult(provider=provider.name, elapsed_ms=0.0,
                                               error=str(result) or type(result).__name__)
                results.append(result)

            verdict = evaluate_dns(results)
            logger.debug(f"DNS for {hostname}: {verdict.message}")
            return verdict

        except Exception as e:
            logger.warning(f"DNS check error for {hostname}: {e}")
            return Verdict(
                status=CheckStatus.FAIL,
                message="DNS check failed",
                score=0,
                details=DNSDetails(error=str(e) or type(e).__name__),
            )
