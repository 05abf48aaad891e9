"""
Unit Tests for the PageSpeed probe
"""

import asyncio
from urllib.parse import parse_qs, urlsplit

import pytest

from sitehealth.util.types import CheckStatus
from sitehealth.scanner.errors import ProbeAborted, TransportError
from sitehealth.scanner.transport import FetchResponse
from sitehealth.scanner.probes.pagespeed_probe import PageSpeedProbe, extract_performance

from fakes import FakeTransport, json_response

API = 'https://www.googleapis.com/pagespeedonline/'


def lighthouse(score, fcp="1.2 s", lcp="2.1 s", cls="0.01"):
    return {
        'lighthouseResult': {
            'categories': {'performance': {'score': score}},
            'audits': {
                'first-contentful-paint': {'displayValue': fcp},
                'largest-contentful-paint': {'displayValue': lcp},
                'cumulative-layout-shift': {'displayValue': cls},
            },
        },
    }


def run(routes, api_key=None):
    transport = FakeTransport(routes)
    probe = PageSpeedProbe(transport, api_key=api_key, timeout=30.0)
    return asyncio.run(probe.check('https://example.com/')), transport


class TestExtractPerformance:

    @pytest.mark.parametrize("fraction,expected", [
        (0.895, 90),
        (0.5, 50),
        (0.494, 49),
        (1, 100),
        (0, 0),
    ])
    def test_score_rounding(self, fraction, expected):
        assert extract_performance(lighthouse(fraction)).performance_score == expected

    def test_missing_metrics_default_to_na(self):
        details = extract_performance({'lighthouseResult': {'categories': {'performance': {'score': 0.7}}}})

        assert details.performance_score == 70
        assert details.metrics.fcp == "N/A"
        assert details.metrics.lcp == "N/A"
        assert details.metrics.cls == "N/A"

    def test_metrics_are_display_values(self):
        details = extract_performance(lighthouse(0.93, fcp="0.9 s"))
        assert details.to_dict()['metrics'] == {'fcp': "0.9 s", 'lcp': "2.1 s", 'cls': "0.01"}


class TestPageSpeedProbe:

    @pytest.mark.parametrize("fraction,status,score", [
        (0.95, CheckStatus.PASS, 15),
        (0.90, CheckStatus.PASS, 15),
        (0.89, CheckStatus.WARN, 10),
        (0.50, CheckStatus.WARN, 10),
        (0.49, CheckStatus.FAIL, 5),
    ])
    def test_score_bands(self, fraction, status, score):
        verdict, _ = run({API: json_response(lighthouse(fraction))})

        assert verdict.status == status
        assert verdict.score == score

    def test_message_includes_score(self):
        verdict, _ = run({API: json_response(lighthouse(0.97))})
        assert verdict.message == "Excellent performance (97/100)"

    def test_timeout_is_degraded_warn(self):
        verdict, _ = run({API: ProbeAborted(30.0)})

        assert verdict.status == CheckStatus.WARN
        assert verdict.score == 8
        assert verdict.message == "PageSpeed check timed out - may indicate slow page"
        assert verdict.details.note == "This timeout suggests performance issues"

    def test_non_200_is_degraded_warn(self):
        verdict, _ = run({API: json_response({'error': {'code': 429}}, status=429)})

        assert verdict.status == CheckStatus.WARN
        assert verdict.score == 8
        assert verdict.message == "Unable to fetch PageSpeed data - API unavailable"
        assert verdict.details.error == "HTTP 429"

    def test_connection_error_is_degraded_warn(self):
        verdict, _ = run({API: TransportError("Cannot connect to host")})

        assert verdict.status == CheckStatus.WARN
        assert verdict.score == 8
        assert verdict.message == "Unable to complete PageSpeed check"

    def test_malformed_body_is_degraded_warn(self):
        verdict, _ = run({API: FetchResponse(status=200, body=b"<html>oops</html>")})

        assert verdict.status == CheckStatus.WARN
        assert verdict.score == 8

    def test_request_parameters(self):
        _, transport = run({API: json_response(lighthouse(0.9))})

        call = transport.calls[0]
        query = parse_qs(urlsplit(call['url']).query)
        assert query['url'] == ['https://example.com/']
        assert query['strategy'] == ['mobile']
        assert 'key' not in query
        assert call['timeout'] == 30.0

    def test_api_key_is_sent_when_configured(self):
        _, transport = run({API: json_response(lighthouse(0.9))}, api_key='abc123')

        query = parse_qs(urlsplit(transport.calls[0]['url']).query)
        assert query['key'] == ['abc123']
