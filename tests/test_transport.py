"""
Tests for ProbeTransport against a local aiohttp server
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from sitehealth.scanner.errors import ProbeAborted, TransportError
from sitehealth.scanner.transport import FetchResponse, ProbeTransport, looks_like_tls_error


async def ok(request):
    return web.json_response({'method': request.method, 'ua': request.headers.get('User-Agent')})


async def slow(request):
    await asyncio.sleep(1)
    return web.Response(text="late")


async def moved(request):
    raise web.HTTPFound('/ok')


def make_app():
    app = web.Application()
    app.router.add_route('*', '/ok', ok)
    app.router.add_get('/slow', slow)
    app.router.add_get('/moved', moved)
    return app


def with_server(coro_fn):
    async def run():
        server = test_utils.TestServer(make_app())
        await server.start_server()
        try:
            async with ProbeTransport(user_agent="SiteHealth-Test/1.0") as transport:
                return await coro_fn(transport, server)
        finally:
            await server.close()
    return asyncio.run(run())


def test_get_returns_body():
    async def go(transport, server):
        return await transport.fetch(str(server.make_url('/ok')), headers=transport.site_headers())

    resp = with_server(go)

    assert isinstance(resp, FetchResponse)
    assert resp.ok
    assert resp.json() == {'method': 'GET', 'ua': "SiteHealth-Test/1.0"}


def test_head_has_no_body():
    async def go(transport, server):
        return await transport.fetch(str(server.make_url('/ok')), method='HEAD')

    resp = with_server(go)

    assert resp.status == 200
    assert resp.body == b""


def test_redirects_followed():
    async def go(transport, server):
        return await transport.fetch(str(server.make_url('/moved')))

    assert with_server(go).json()['method'] == 'GET'


def test_deadline_raises_probe_aborted():
    async def go(transport, server):
        return await transport.fetch(str(server.make_url('/slow')), timeout=0.2)

    with pytest.raises(ProbeAborted) as exc_info:
        with_server(go)
    assert exc_info.value.timeout == 0.2
    assert exc_info.value.message == "Timeout after 0.2 seconds"


def test_connection_refused_raises_transport_error():
    async def go(transport, server):
        return await transport.fetch('http://127.0.0.1:1/', timeout=2.0)

    with pytest.raises(TransportError) as exc_info:
        with_server(go)
    assert not isinstance(exc_info.value, ProbeAborted)


def test_fetch_outside_context_is_an_error():
    transport = ProbeTransport(user_agent="x")
    with pytest.raises(RuntimeError):
        asyncio.run(transport.fetch('http://example.com'))


@pytest.mark.parametrize("message,expected", [
    ("certificate verify failed", True),
    ("SSL: WRONG_VERSION_NUMBER", True),
    ("TLS handshake timeout", True),
    ("Connection reset by peer", False),
])
def test_looks_like_tls_error(message, expected):
    assert looks_like_tls_error(message) is expected
