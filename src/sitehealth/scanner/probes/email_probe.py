"""Email probe - does the domain accept mail at all?

One MX lookup over DNS-over-HTTPS. Missing MX is common (marketing
sites, parked domains) and isn't a security defect, so the worst this
probe ever says is warn.
"""

import logging
from typing import List

import dns.name
import dns.exception

from sitehealth.util.types import CheckStatus, DNSAnswer, EmailDetails, Verdict
from sitehealth.scanner.normalization import extract_hostname
from sitehealth.scanner.probes.doh import DoHProvider

logger = logging.getLogger(__name__)


def mx_exchanges(answers: List[DNSAnswer]) -> List[str]:
    """Normalize MX answer data ("10 mx.example.com.") for display.

    Keeps the preference, drops the root dot. Anything that doesn't look
    like "<pref> <name>" is passed through untouched.
    """
    out = []
    for answer in answers:
        parts = answer.data.split()
        if len(parts) == 2 and parts[0].isdigit():
            try:
                exchange = dns.name.from_text(parts[1]).to_text(omit_final_dot=True)
            except dns.exception.DNSException:
                exchange = parts[1]
            out.append(f"{parts[0]} {exchange}")
        else:
            out.append(answer.data)
    return out


class EmailProbe:
    """MX record presence check."""

    def __init__(self, provider: DoHProvider, timeout: float = 5.0):
        self.provider = provider
        self.timeout = timeout

    async def check(self, url: str) -> Verdict:
        """Grade mail configuration. Never raises, never fails."""
        hostname = extract_hostname(url)
        if not hostname:
            return Verdict(CheckStatus.WARN, "Unable to verify email configuration", 5,
                           EmailDetails(error="Invalid hostname"))

        try:
            result = await self.provider.query(hostname, 'MX', timeout=self.timeout)
        except Exception as e:
            logger.warning(f"MX lookup error for {hostname}: {e}")
            return Verdict(
                status=CheckStatus.WARN,
                message="Unable to verify email configuration",
                score=5,
                details=EmailDetails(error=str(e) or type(e).__name__),
            )

        if result.timed_out:
            return Verdict(
                status=CheckStatus.WARN,
                message="Email config check timed out",
                score=5,
                details=EmailDetails(error="Timeout"),
            )

        if result.status is None:
            return Verdict(
                status=CheckStatus.WARN,
                message="Unable to check email configuration",
                score=5,
                details=EmailDetails(error=result.error),
            )

        if result.succeeded and result.answers:
            records = mx_exchanges(list(result.answers))
            plural = 's' if len(records) > 1 else ''
            return Verdict(
                status=CheckStatus.PASS,
                message=f"Email configured ({len(records)} MX record{plural})",
                score=10,
                details=EmailDetails(mx_records=len(records), records=tuple(records)),
            )

        return Verdict(
            status=CheckStatus.WARN,
            message="No email (MX) records configured",
            score=5,
            details=EmailDetails(mx_records=0, note="Domain cannot receive email"),
        )
