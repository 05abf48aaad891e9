"""Scoring model - overall score, health tier and critical issues.

Clear rules:
- Overall score is the plain sum of the eight check scores
- Each check is capped at its own maximum, so the total can't pass 100
- Tiers are fixed bands over 0-100
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Tuple

from sitehealth.util.types import CheckResults, CheckStatus, Report
from sitehealth.scanner.errors import AggregationError
from sitehealth.scanner.scoring.recommendations import RecommendationEngine

logger = logging.getLogger(__name__)

# Maximum points each check can contribute (sums to 100)
MAX_SCORES: Dict[str, int] = {
    'ssl': 10,
    'dns': 10,
    'server_response': 15,
    'page_speed': 15,
    'mobile': 15,
    'https': 10,
    'availability': 15,
    'email': 10,
}


@dataclass(frozen=True)
class ScoreLevel:
    """One health tier."""
    min: int
    max: int
    level: str
    color: str


SCORE_LEVELS: Tuple[ScoreLevel, ...] = (
    ScoreLevel(85, 100, "EXCELLENT - Great website health!", "#28a745"),
    ScoreLevel(70, 84, "GOOD - Minor improvements needed", "#17a2b8"),
    ScoreLevel(50, 69, "NEEDS WORK - Several issues to fix", "#ffc107"),
    ScoreLevel(0, 49, "POOR - Serious problems detected", "#dc3545"),
)

UNKNOWN_LEVEL = ("Unknown", "#6c757d")


def capped_score(check_name: str, score: int) -> int:
    return max(0, min(int(score), MAX_SCORES[check_name]))


def calculate_overall_score(checks: CheckResults) -> int:
    """Sum of the capped check scores, 0-100 by construction."""
    return sum(capped_score(name, verdict.score) for name, verdict in checks.items())


def get_score_level(score: int) -> Tuple[str, str]:
    """Return (level label, display color) for a score."""
    for band in SCORE_LEVELS:
        if band.min <= score <= band.max:
            return band.level, band.color
    return UNKNOWN_LEVEL


def identify_critical_issues(checks: CheckResults) -> List[str]:
    issues = []

    if checks.ssl.status == CheckStatus.FAIL:
        issues.append("No HTTPS - Site is insecure")

    if checks.availability.status == CheckStatus.FAIL:
        issues.append("Site is currently offline")

    if checks.server_response.status == CheckStatus.FAIL:
        issues.append("Server response is very slow")

    if checks.page_speed.status == CheckStatus.FAIL:
        issues.append("Poor page performance - significantly impacts user experience")

    return issues


class ScoringModel:
    """Turns a complete set of verdicts into a Report.

    Pure: same checks + timestamp in, same report out.
    """

    def __init__(self, recommendation_engine: RecommendationEngine = None):
        self.recommendation_engine = recommendation_engine or RecommendationEngine()

    def build_report(self, url: str, checks: CheckResults, timestamp: datetime) -> Report:
        """Assemble the final report.

        Raises:
            AggregationError: anything at all went wrong while scoring
        """
        try:
            overall = calculate_overall_score(checks)
            level, color = get_score_level(overall)
            critical = identify_critical_issues(checks)
            recommendations = self.recommendation_engine.generate_recommendations(checks)
        except Exception as e:
            logger.error(f"Report assembly failed for {url}: {e}", exc_info=True)
            raise AggregationError("Internal error during scan") from e

        return Report(
            url=url,
            timestamp=timestamp,
            overall_score=overall,
            score_level=level,
            score_color=color,
            checks=checks,
            critical_issues=tuple(critical),
            recommendations=tuple(recommendations),
        )
