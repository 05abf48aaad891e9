"""Derived checks - verdicts computed from other verdicts.

No I/O here. Mobile reuses the PageSpeed result (which is already a
mobile-strategy run), HTTPS grades the protocol plus the SSL verdict.
"""

from sitehealth.util.types import CheckStatus, DerivedDetails, PageSpeedDetails, Verdict


def derive_mobile_check(page_speed: Verdict) -> Verdict:
    """Mobile experience from the PageSpeed verdict."""
    performance_score = 0
    if isinstance(page_speed.details, PageSpeedDetails) and page_speed.details.performance_score is not None:
        performance_score = page_speed.details.performance_score

    details = DerivedDetails(derived_from='pageSpeed', performance_score=performance_score)

    if page_speed.status == CheckStatus.FAIL or performance_score < 50:
        return Verdict(CheckStatus.WARN, "Mobile performance needs improvement", 5, details)
    if performance_score < 90:
        return Verdict(CheckStatus.PASS, "Good mobile performance", 12, details)
    return Verdict(CheckStatus.PASS, "Excellent mobile performance", 15, details)


def derive_https_check(ssl: Verdict, https_enabled: bool) -> Verdict:
    """HTTPS quality from the protocol and the SSL verdict."""
    if not https_enabled:
        return Verdict(
            CheckStatus.FAIL,
            "Site not using HTTPS",
            0,
            DerivedDetails(derived_from='ssl', protocol='http'),
        )

    details = DerivedDetails(derived_from='ssl', protocol='https')

    if ssl.status == CheckStatus.PASS:
        return Verdict(CheckStatus.PASS, "HTTPS properly configured", 10, details)
    if ssl.status == CheckStatus.WARN:
        return Verdict(CheckStatus.WARN, "HTTPS enabled but with issues", 5, details)
    return Verdict(CheckStatus.FAIL, "HTTPS not working properly", 0, details)
