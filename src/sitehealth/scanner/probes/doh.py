"""DNS-over-HTTPS providers.

Both providers speak the same JSON dialect (application/dns-json):

    {"Status": 0, "AD": true, "Answer": [{"name": ..., "type": 1, "TTL": 300, "data": ...}]}

A query never raises - HTTP errors, timeouts and garbage bodies all come
back as a DNSProviderResult with status=None and the error filled in,
so one broken resolver can't take the other one down with it.
"""

import logging
from typing import Any, Dict, List
from urllib.parse import urlencode

import dns.rdatatype

from sitehealth.util.types import DNSAnswer, DNSProviderResult
from sitehealth.util.time import monotonic_ms, elapsed_ms
from sitehealth.scanner.errors import ProbeAborted, TransportError
from sitehealth.scanner.transport import ProbeTransport

logger = logging.getLogger(__name__)

CLOUDFLARE_DOH_URL = "https://cloudflare-dns.com/dns-query"
GOOGLE_DOH_URL = "https://dns.google/resolve"


def record_type_name(rdtype: int) -> str:
    """Human name for a numeric record type (1 → 'A', 15 → 'MX')."""
    try:
        return dns.rdatatype.to_text(rdtype)
    except (ValueError, TypeError):
        return str(rdtype)


def _parse_answers(raw: Any) -> List[DNSAnswer]:
    answers = []
    if not isinstance(raw, list):
        return answers
    for row in raw:
        if not isinstance(row, dict):
            continue
        try:
            answers.append(DNSAnswer(
                name=str(row.get('name', '')),
                type=int(row.get('type', 0)),
                ttl=int(row.get('TTL', 0)),
                data=str(row.get('data', '')),
            ))
        except (TypeError, ValueError):
            logger.debug(f"Skipping malformed DoH answer row: {row!r}")
    return answers


class DoHProvider:
    """One named DNS-over-HTTPS resolver."""

    def __init__(self, name: str, endpoint: str, transport: ProbeTransport):
        self.name = name
        self.endpoint = endpoint
        self.transport = transport

    async def query(self, hostname: str, record_type: str = 'A', timeout: float = 3.0) -> DNSProviderResult:
        """Resolve hostname/record_type through this provider.

        elapsed_ms is always filled in, even for failures - the DNS probe
        reports it when every provider fails.
        """
        # Validates the type name and gives us its canonical spelling
        rdtype = dns.rdatatype.from_text(record_type)
        params = urlencode({'name': hostname, 'type': dns.rdatatype.to_text(rdtype)})
        url = f"{self.endpoint}?{params}"

        start = monotonic_ms()
        try:
            resp = await self.transport.fetch(
                url,
                method='GET',
                headers={'Accept': 'application/dns-json'},
                timeout=timeout,
            )
        except ProbeAborted as e:
            logger.debug(f"{self.name} DoH timeout for {hostname}/{record_type}")
            return DNSProviderResult(provider=self.name, elapsed_ms=elapsed_ms(start),
                                     error=e.message, timed_out=True)
        except TransportError as e:
            logger.debug(f"{self.name} DoH error for {hostname}/{record_type}: {e.message}")
            return DNSProviderResult(provider=self.name, elapsed_ms=elapsed_ms(start),
                                     error=e.message)

        elapsed = elapsed_ms(start)

        if not resp.ok:
            return DNSProviderResult(provider=self.name, elapsed_ms=elapsed,
                                     error=f"HTTP {resp.status}")

        try:
            payload: Dict[str, Any] = resp.json()
            status = int(payload['Status'])
        except (ValueError, KeyError, TypeError) as e:
            logger.debug(f"{self.name} DoH returned unparseable body: {e}")
            return DNSProviderResult(provider=self.name, elapsed_ms=elapsed,
                                     error="Malformed DNS response")

        return DNSProviderResult(
            provider=self.name,
            elapsed_ms=elapsed,
            status=status,
            authenticated_data=bool(payload.get('AD', False)),
            answers=tuple(_parse_answers(payload.get('Answer'))),
        )


def default_providers(transport: ProbeTransport) -> List[DoHProvider]:
    """Provider A (preferred) then provider B."""
    return [
        DoHProvider('cloudflare', CLOUDFLARE_DOH_URL, transport),
        DoHProvider('google', GOOGLE_DOH_URL, transport),
    ]
