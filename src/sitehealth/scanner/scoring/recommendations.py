"""
Recommendation Engine
=====================
Turns check verdicts into short, actionable advice.

Each rule looks at one check (or one cross-cutting signal) and may emit
a recommendation. Output is ordered by category priority, then by rule
order inside a category.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from sitehealth.util.types import CheckResults, CheckStatus, DNSDetails, SSLDetails

FALLBACK_MESSAGE = "Great job! Keep monitoring your site regularly"


class Priority(Enum):
    """Recommendation categories, most urgent first"""
    SSL = 1
    PERFORMANCE = 2
    SERVER_RESPONSE = 3
    DNS = 4
    DNSSEC = 5
    CDN = 6
    MOBILE = 7
    EMAIL = 8


@dataclass(frozen=True)
class Rule:
    """One recommendation rule"""
    id: str
    priority: Priority
    evaluate: Callable[[CheckResults], Optional[str]]


def _ssl_details(checks: CheckResults) -> SSLDetails:
    details = checks.ssl.details
    return details if isinstance(details, SSLDetails) else SSLDetails()


def _dns_details(checks: CheckResults) -> DNSDetails:
    details = checks.dns.details
    return details if isinstance(details, DNSDetails) else DNSDetails()


def _ssl_rule(checks: CheckResults) -> Optional[str]:
    if checks.ssl.status == CheckStatus.FAIL or checks.https.status == CheckStatus.FAIL:
        return "Enable HTTPS with Let's Encrypt (free, 30 min setup)"

    if checks.ssl.status != CheckStatus.WARN:
        return None

    details = _ssl_details(checks)
    # Expired is checked first so an expired cert never gets "expires in -N days"
    if details.expired:
        return "Your SSL certificate has expired - renew immediately to maintain security"
    if details.expiring_soon:
        return f"Renew your SSL certificate soon (expires in {details.days_until_expiry} days)"
    return None


def _performance_rule(checks: CheckResults) -> Optional[str]:
    if checks.page_speed.status == CheckStatus.FAIL:
        return "Optimize images and enable caching to improve load times"
    if checks.page_speed.status == CheckStatus.WARN:
        return "Consider optimizing images and minifying CSS/JS for better performance"
    return None


def _server_response_rule(checks: CheckResults) -> Optional[str]:
    if checks.server_response.status == CheckStatus.FAIL:
        return "Consider upgrading hosting for faster response times"
    if checks.server_response.status == CheckStatus.WARN:
        return "Server response could be faster - consider CDN or server optimization"
    return None


def _dns_rule(checks: CheckResults) -> Optional[str]:
    if checks.dns.status == CheckStatus.FAIL:
        return "Move to a faster DNS provider (Cloudflare or Google DNS recommended)"
    if checks.dns.status == CheckStatus.WARN:
        return "Optimize DNS by using an Anycast resolver for better global performance"
    return None


def _dnssec_rule(checks: CheckResults) -> Optional[str]:
    # Only when we actually observed the flag; a failed lookup says nothing
    if _dns_details(checks).dnssec_valid is False:
        return "Enable DNSSEC on your domain for tamper protection and security"
    return None


def _cdn_rule(checks: CheckResults) -> Optional[str]:
    slow_dns = checks.dns.status in (CheckStatus.WARN, CheckStatus.FAIL)
    if slow_dns and not _dns_details(checks).cdn_detected:
        return "Consider using a CDN (Cloudflare/Fastly) for edge caching and faster global access"
    return None


def _mobile_rule(checks: CheckResults) -> Optional[str]:
    if checks.mobile.status == CheckStatus.FAIL:
        return "Improve mobile responsiveness and mobile-specific optimizations"
    if checks.mobile.status == CheckStatus.WARN:
        return "Fine-tune mobile experience for better user engagement"
    return None


def _email_rule(checks: CheckResults) -> Optional[str]:
    if checks.email.status == CheckStatus.WARN:
        return "Configure MX records to enable email for your domain"
    return None


DEFAULT_RULES = (
    Rule('ssl_https', Priority.SSL, _ssl_rule),
    Rule('page_speed', Priority.PERFORMANCE, _performance_rule),
    Rule('server_response', Priority.SERVER_RESPONSE, _server_response_rule),
    Rule('dns_speed', Priority.DNS, _dns_rule),
    Rule('dnssec', Priority.DNSSEC, _dnssec_rule),
    Rule('cdn', Priority.CDN, _cdn_rule),
    Rule('mobile', Priority.MOBILE, _mobile_rule),
    Rule('email_mx', Priority.EMAIL, _email_rule),
)


class RecommendationEngine:
    """Generate recommendations from a full set of verdicts"""

    def __init__(self, rules=DEFAULT_RULES):
        self.rules = tuple(rules)

    def generate_recommendations(self, checks: CheckResults) -> List[str]:
        """
        Evaluate every rule against the checks

        Returns:
            Recommendation strings in priority order, or the single
            fallback message if nothing needs attention
        """
        fired = []
        for index, rule in enumerate(self.rules):
            message = rule.evaluate(checks)
            if message:
                fired.append((rule.priority.value, index, message))

        fired.sort()
        recommendations = [message for _, _, message in fired]

        if not recommendations:
            recommendations.append(FALLBACK_MESSAGE)

        return recommendations
