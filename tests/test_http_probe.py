"""
Unit Tests for the server response and availability probes
"""

import asyncio

import pytest

from sitehealth.util.types import CheckStatus
from sitehealth.scanner.errors import ProbeAborted, TransportError
from sitehealth.scanner.transport import FetchResponse
from sitehealth.scanner.probes.http_probe import AvailabilityProbe, ServerResponseProbe

from fakes import FakeTransport

TARGET = 'https://example.com/'


class FakeClock:
    """Monotonic clock that advances a fixed step per reading."""

    def __init__(self, step_ms):
        self.step_ms = step_ms
        self.now = 1000.0

    def __call__(self):
        value = self.now
        self.now += self.step_ms
        return value


def server_response(outcome, ttfb_ms=0, timeout=10.0):
    transport = FakeTransport({'https://example.com': outcome})
    probe = ServerResponseProbe(transport, timeout=timeout, clock=FakeClock(ttfb_ms))
    return asyncio.run(probe.check(TARGET)), transport


def availability(outcome, timeout=5.0):
    transport = FakeTransport({'https://example.com': outcome})
    probe = AvailabilityProbe(transport, timeout=timeout)
    return asyncio.run(probe.check(TARGET)), transport


class TestServerResponseProbe:

    @pytest.mark.parametrize("ttfb,status,score", [
        (0, CheckStatus.PASS, 15),
        (199, CheckStatus.PASS, 15),
        (200, CheckStatus.WARN, 10),
        (499, CheckStatus.WARN, 10),
        (500, CheckStatus.FAIL, 5),
        (2400, CheckStatus.FAIL, 5),
    ])
    def test_ttfb_bands(self, ttfb, status, score):
        verdict, _ = server_response(FetchResponse(status=200, reason="OK"), ttfb_ms=ttfb)

        assert verdict.status == status
        assert verdict.score == score
        assert verdict.details.ttfb == ttfb

    def test_redirect_final_status_counts_as_ok(self):
        verdict, _ = server_response(FetchResponse(status=301, reason="Moved"), ttfb_ms=50)
        assert verdict.status == CheckStatus.PASS

    @pytest.mark.parametrize("code", [404, 503])
    def test_error_status_warns_regardless_of_speed(self, code):
        verdict, _ = server_response(FetchResponse(status=code, reason="Error"), ttfb_ms=5)

        assert verdict.status == CheckStatus.WARN
        assert verdict.score == 5
        assert verdict.message == f"Server returned {code} status"

    def test_timeout_reports_timeout_as_ttfb(self):
        verdict, _ = server_response(ProbeAborted(10.0))

        assert verdict.status == CheckStatus.FAIL
        assert verdict.score == 0
        assert verdict.details.ttfb == 10000
        assert verdict.details.error == "Timeout"

    def test_connection_error(self):
        verdict, _ = server_response(TransportError("Connection refused"))

        assert verdict.status == CheckStatus.FAIL
        assert verdict.message == "Unable to reach server"
        assert verdict.details.error == "Connection refused"

    def test_request_shape(self):
        _, transport = server_response(FetchResponse(status=200))

        call = transport.calls[0]
        assert call['method'] == 'HEAD'
        assert call['url'] == TARGET
        assert call['allow_redirects'] is True
        assert call['timeout'] == 10.0
        assert 'User-Agent' in call['headers']


class TestAvailabilityProbe:

    @pytest.mark.parametrize("code,status,score,available", [
        (200, CheckStatus.PASS, 15, True),
        (204, CheckStatus.PASS, 15, True),
        (302, CheckStatus.PASS, 15, True),
        (403, CheckStatus.WARN, 8, True),
        (404, CheckStatus.WARN, 8, True),
        (500, CheckStatus.FAIL, 0, False),
        (503, CheckStatus.FAIL, 0, False),
    ])
    def test_status_classes(self, code, status, score, available):
        verdict, _ = availability(FetchResponse(status=code, reason="x"))

        assert verdict.status == status
        assert verdict.score == score
        assert verdict.details.available is available
        assert verdict.details.status_code == code

    def test_redirect_message(self):
        verdict, _ = availability(FetchResponse(status=301))
        assert verdict.message == "Site is online (with redirect)"

    def test_timeout(self):
        verdict, _ = availability(ProbeAborted(5.0))

        assert verdict.status == CheckStatus.FAIL
        assert verdict.message == "Site is not responding (timeout)"
        assert verdict.details.error == "Timeout after 5 seconds"

    def test_unreachable(self):
        verdict, transport = availability(TransportError("Name or service not known"))

        assert verdict.status == CheckStatus.FAIL
        assert verdict.message == "Site is offline or unreachable"
        assert transport.calls[0]['timeout'] == 5.0
