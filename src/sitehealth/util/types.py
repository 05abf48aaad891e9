"""Core data types and enums used across the scanner.

These types make probe results explicit and consistent.
Every probe produces exactly one Verdict; the scan produces one Report.
Everything here is frozen - once a verdict is built nobody touches it again.
"""

import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, Tuple


class CheckStatus(Enum):
    """Outcome of a single diagnostic check.

    Pass: Nothing to fix
    Warn: Works, but something deserves attention
    Fail: Broken or seriously degraded
    """
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


_CAMEL_RE = re.compile(r'_([a-z])')


def _camel(name: str) -> str:
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), name)


def _plain(value: Any) -> Any:
    """Convert nested detail values into JSON-friendly types."""
    if isinstance(value, Details):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class Details:
    """Base for per-probe diagnostic details.

    Subclasses declare only the fields their probe knows about.
    Fields left as None are simply omitted from the serialized form.
    """

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            out[_camel(f.name)] = _plain(value)
        return out


@dataclass(frozen=True)
class SSLDetails(Details):
    protocol: Optional[str] = None
    secure: Optional[bool] = None
    status_code: Optional[int] = None
    expires_at: Optional[str] = None
    days_until_expiry: Optional[int] = None
    expired: Optional[bool] = None
    expiring_soon: Optional[bool] = None
    issuer: Optional[str] = None
    sans: Optional[int] = None
    cert_transparency: Optional[bool] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ProviderTiming(Details):
    """Per-provider timing row in the DNS details."""
    provider: str
    elapsed_ms: float
    succeeded: bool
    status: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DNSDetails(Details):
    # responseTime is the legacy name for the rounded average
    response_time: Optional[int] = None
    min_time: Optional[float] = None
    max_time: Optional[float] = None
    average_time: Optional[float] = None
    providers: Optional[Tuple[ProviderTiming, ...]] = None
    dnssec_valid: Optional[bool] = None
    cdn_detected: Optional[bool] = None
    cdn_provider: Optional[str] = None
    ttl: Optional[int] = None
    records: Optional[int] = None
    record_types: Optional[Tuple[str, ...]] = None
    addresses: Optional[Tuple[str, ...]] = None
    status: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ServerResponseDetails(Details):
    ttfb: Optional[int] = None
    status_code: Optional[int] = None
    status_text: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class PageSpeedMetrics(Details):
    fcp: str = "N/A"
    lcp: str = "N/A"
    cls: str = "N/A"


@dataclass(frozen=True)
class PageSpeedDetails(Details):
    performance_score: Optional[int] = None
    metrics: Optional[PageSpeedMetrics] = None
    error: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class AvailabilityDetails(Details):
    available: bool = False
    status_code: Optional[int] = None
    status_text: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class EmailDetails(Details):
    mx_records: Optional[int] = None
    records: Optional[Tuple[str, ...]] = None
    note: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DerivedDetails(Details):
    derived_from: str = ""
    performance_score: Optional[int] = None
    protocol: Optional[str] = None


@dataclass(frozen=True)
class Verdict:
    """Result of one diagnostic probe.

    This is our atomic unit of measurement. Probes never raise past their
    own boundary - every failure mode ends up as one of these.
    """
    status: CheckStatus
    message: str
    score: int
    details: Details = field(default_factory=Details)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON output."""
        return {
            'status': self.status.value,
            'message': self.message,
            'score': self.score,
            'details': self.details.to_dict(),
        }


# Serialized name for each CheckResults field, in report order
CHECK_KEYS = (
    ('ssl', 'ssl'),
    ('dns', 'dns'),
    ('server_response', 'serverResponse'),
    ('page_speed', 'pageSpeed'),
    ('mobile', 'mobile'),
    ('https', 'https'),
    ('availability', 'availability'),
    ('email', 'email'),
)


@dataclass(frozen=True)
class CheckResults:
    """Exactly eight named verdicts - one per check in the report."""
    ssl: Verdict
    dns: Verdict
    server_response: Verdict
    page_speed: Verdict
    mobile: Verdict
    https: Verdict
    availability: Verdict
    email: Verdict

    def items(self):
        """Yield (attribute_name, verdict) pairs in report order."""
        for attr, _ in CHECK_KEYS:
            yield attr, getattr(self, attr)

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr).to_dict() for attr, key in CHECK_KEYS}


@dataclass(frozen=True)
class Report:
    """Full per-scan output. Built once, never mutated, never stored."""
    url: str
    timestamp: datetime
    overall_score: int
    score_level: str
    score_color: str
    checks: CheckResults
    critical_issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON response shape."""
        return {
            'url': self.url,
            'timestamp': self.timestamp.isoformat(),
            'overallScore': self.overall_score,
            'scoreLevel': self.score_level,
            'scoreColor': self.score_color,
            'checks': self.checks.to_dict(),
            'criticalIssues': list(self.critical_issues),
            'recommendations': list(self.recommendations),
        }


@dataclass(frozen=True)
class DNSAnswer:
    """One answer row from a DNS-over-HTTPS JSON response."""
    name: str
    type: int
    ttl: int
    data: str


@dataclass(frozen=True)
class DNSProviderResult:
    """Raw outcome of querying one DNS-over-HTTPS provider.

    status is the DNS RCODE (0 = NOERROR) or None if we never got a
    parseable answer (HTTP error, timeout, network failure).
    """
    provider: str
    elapsed_ms: float
    status: Optional[int] = None
    authenticated_data: bool = False
    answers: Tuple[DNSAnswer, ...] = ()
    error: Optional[str] = None
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.status == 0


@dataclass(frozen=True)
class CertificateRecord:
    """One certificate entry from the certificate-transparency search."""
    issuer_name: str
    name_value: str
    sans: Tuple[str, ...]
    not_before: datetime
    not_after: datetime
