"""Certificate Transparency lookup via crt.sh.

CT logs give us what a plain HTTPS request can't: the certificate's
expiry date, issuer and SAN list. crt.sh is free but slow and sometimes
down, so every failure here just means "no CT data" - the caller falls
back to the handshake result.

Selection rules (a hostname usually has many certs - renewals, reissues):
  1. only look at the first `max_records` rows, in the order returned
  2. keep rows whose SANs cover the hostname (exact, or a wildcard at
     any depth: *.example.com covers a.b.example.com)
  3. prefer the newest-issued cert that is still valid
  4. otherwise report the most recently expired one
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Optional, Sequence
from urllib.parse import quote

from sitehealth.util.types import CertificateRecord
from sitehealth.util.time import parse_utc
from sitehealth.scanner.errors import TransportError
from sitehealth.scanner.transport import ProbeTransport

logger = logging.getLogger(__name__)

CRTSH_URL = "https://crt.sh/"
ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class CertificateStatus:
    """Expiry facts about the selected certificate."""
    record: CertificateRecord
    days_until_expiry: int
    expiring_soon: bool

    @property
    def expired(self) -> bool:
        return self.days_until_expiry < 0

    @property
    def san_count(self) -> int:
        return len(self.record.name_value.split("\n"))


def split_sans(name_value: str) -> List[str]:
    """crt.sh packs SANs into one newline-separated string."""
    return [s.strip().lower() for s in name_value.split("\n") if s.strip()]


def san_matches(san: str, hostname: str) -> bool:
    """Exact match, or *.domain matching domain itself and any name below it."""
    if san == hostname:
        return True
    if san.startswith("*."):
        domain = san[2:]
        return hostname.endswith("." + domain) or hostname == domain
    return False


def parse_records(rows: Iterable[Any], max_records: int = 50) -> List[CertificateRecord]:
    """Turn raw crt.sh JSON rows into CertificateRecords.

    The window is the first `max_records` rows as returned, not the most
    relevant ones. Rows with missing or unparseable dates are skipped.
    """
    records = []
    for row in list(rows)[:max_records]:
        if not isinstance(row, dict):
            continue
        name_value = row.get('name_value')
        if not isinstance(name_value, str):
            continue
        try:
            not_before = parse_utc(str(row['not_before']))
            not_after = parse_utc(str(row['not_after']))
        except (KeyError, ValueError):
            logger.debug(f"Skipping CT row with bad dates: {row.get('id')}")
            continue
        records.append(CertificateRecord(
            issuer_name=str(row.get('issuer_name', '')),
            name_value=name_value,
            sans=tuple(split_sans(name_value)),
            not_before=not_before,
            not_after=not_after,
        ))
    return records


def matching_records(records: Sequence[CertificateRecord], hostname: str) -> List[CertificateRecord]:
    host = hostname.lower()
    return [r for r in records if any(san_matches(san, host) for san in r.sans)]


def select_certificate(records: Sequence[CertificateRecord],
                       hostname: str,
                       now: datetime,
                       warning_days: int = 30) -> Optional[CertificateStatus]:
    """Pick the authoritative certificate for hostname.

    Returns None when nothing matches.
    """
    matches = matching_records(records, hostname)
    if not matches:
        return None

    active = [r for r in matches if r.not_after > now]
    if active:
        # Latest issued wins - handles overlapping renewal windows
        chosen = max(active, key=lambda r: r.not_before)
        days = math.floor((chosen.not_after - now) / ONE_DAY)
        return CertificateStatus(
            record=chosen,
            days_until_expiry=days,
            expiring_soon=0 <= days <= warning_days,
        )

    chosen = max(matches, key=lambda r: r.not_after)
    days_expired = math.floor((now - chosen.not_after) / ONE_DAY)
    return CertificateStatus(
        record=chosen,
        days_until_expiry=-days_expired,
        expiring_soon=False,
    )


class CTLogClient:
    """Searches crt.sh for certificates issued to a hostname."""

    def __init__(self, transport: ProbeTransport, timeout: float = 10.0, max_records: int = 50):
        self.transport = transport
        self.timeout = timeout
        self.max_records = max_records

    async def search(self, hostname: str) -> Optional[List[CertificateRecord]]:
        """Return parsed records, or None if CT data is unavailable."""
        url = f"{CRTSH_URL}?q={quote(hostname)}&output=json"
        try:
            resp = await self.transport.fetch(url, method='GET', timeout=self.timeout)
        except TransportError as e:
            logger.info(f"crt.sh lookup failed for {hostname}: {e.message}")
            return None

        if not resp.ok:
            logger.info(f"crt.sh returned status {resp.status} for {hostname}")
            return None

        try:
            rows = resp.json()
        except ValueError:
            logger.warning(f"Failed to parse crt.sh JSON response for {hostname}")
            return None

        if not isinstance(rows, list) or not rows:
            return None

        records = parse_records(rows, self.max_records)
        logger.debug(f"crt.sh: {len(records)} usable records for {hostname}")
        return records
