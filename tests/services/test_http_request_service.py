# tests/services/test_http_request_service.py
import asyncio

import aiohttp
import pytest

from site_auditor.errors import AuditError, ErrorCode
from audit_fixtures import ok, status

URL = "https://example.com/"


def test_get_returns_body(make_http, run):
    http, session = make_http({f"GET {URL}": ok("<html>hi</html>")})
    assert run(http.get(URL)) == "<html>hi</html>"
    assert session.calls == [f"GET {URL}"]


def test_get_retries_5xx_with_linear_backoff(make_http, run):
    http, session = make_http(
        {f"GET {URL}": [status(503), status(502), ok("done")]},
        max_retries=3, retry_delay=100,
    )
    assert run(http.get(URL)) == "done"
    assert len(session.calls) == 3
    # retry_delay * attempt, in seconds
    assert http.sleeps == [0.1, 0.2]


def test_get_retries_timeouts(make_http, run):
    http, session = make_http({f"GET {URL}": [asyncio.TimeoutError(), ok("late")]})
    assert run(http.get(URL)) == "late"
    assert len(session.calls) == 2


def test_get_raises_fetch_failed_after_exhausting_retries(make_http, run):
    http, session = make_http({f"GET {URL}": status(500)}, max_retries=3)
    with pytest.raises(AuditError) as exc_info:
        run(http.get(URL))

    assert exc_info.value.code == ErrorCode.FETCH_FAILED
    assert len(session.calls) == 3
    last = exc_info.value.details["original_error"]
    assert isinstance(last, AuditError) and last.details["status"] == 500


def test_get_does_not_retry_4xx(make_http, run):
    http, session = make_http({f"GET {URL}": status(404)})
    with pytest.raises(AuditError) as exc_info:
        run(http.get(URL))

    assert exc_info.value.code == ErrorCode.HTTP_ERROR
    assert exc_info.value.details["status"] == 404
    assert len(session.calls) == 1
    assert http.sleeps == []


def test_get_wraps_connection_errors(make_http, run):
    http, _ = make_http({f"GET {URL}": aiohttp.ClientConnectionError("refused")})
    with pytest.raises(AuditError) as exc_info:
        run(http.get(URL))
    assert exc_info.value.code == ErrorCode.FETCH_FAILED


def test_get_follows_redirects(make_http, run):
    http, session = make_http({
        "GET http://example.com/": status(301, headers={"Location": "https://example.com/"}),
        f"GET {URL}": status(302, headers={"Location": "/home"}),
        "GET https://example.com/home": ok("home"),
    })
    assert run(http.get("http://example.com/")) == "home"
    assert session.calls[-1] == "GET https://example.com/home"


def test_get_detects_redirect_loops(make_http, run):
    http, _ = make_http({
        "GET https://example.com/a": status(302, headers={"Location": "/b"}),
        "GET https://example.com/b": status(302, headers={"Location": "/a"}),
    })
    with pytest.raises(AuditError) as exc_info:
        run(http.get("https://example.com/a"))
    assert exc_info.value.code == ErrorCode.HTTP_ERROR


def test_get_gives_up_after_max_redirects(make_http, run):
    routes = {
        f"GET https://example.com/{i}": status(302, headers={"Location": f"/{i + 1}"})
        for i in range(10)
    }
    http, session = make_http(routes)
    with pytest.raises(AuditError) as exc_info:
        run(http.get("https://example.com/0"))
    assert "Too many redirects" in str(exc_info.value)
    assert len(session.calls) == http.max_redirects + 1


def test_head_returns_lowercase_headers(make_http, run):
    http, _ = make_http({f"HEAD {URL}": ok(headers={"Server": "nginx/1.25.3", "CF-Ray": "abc"})})
    assert run(http.head(URL)) == {"server": "nginx/1.25.3", "cf-ray": "abc"}


def test_head_failures_raise_head_failed_without_retry(make_http, run):
    http, session = make_http({f"HEAD {URL}": status(503)})
    with pytest.raises(AuditError) as exc_info:
        run(http.head(URL))
    assert exc_info.value.code == ErrorCode.HEAD_FAILED
    assert session.calls == [f"HEAD {URL}"]


def test_fetch_degrades_header_failure_to_empty_map(make_http, run):
    http, _ = make_http({
        f"GET {URL}": ok("body"),
        f"HEAD {URL}": aiohttp.ClientConnectionError("reset"),
    })
    assert run(http.fetch(URL)) == ("body", {})


def test_every_attempt_passes_the_rate_limiter(make_http, run):
    http, _ = make_http({f"GET {URL}": [status(500), ok("x")]})
    acquired = []
    original = http.rate_limiter.acquire

    async def counting_acquire():
        acquired.append(1)
        await original()

    http.rate_limiter.acquire = counting_acquire
    run(http.get(URL))
    assert len(acquired) == 2


def test_every_redirect_hop_passes_the_rate_limiter(make_http, run):
    http, session = make_http({
        "GET https://example.com/a": status(302, headers={"Location": "/b"}),
        "GET https://example.com/b": status(301, headers={"Location": "/c"}),
        "GET https://example.com/c": ok("c"),
    })
    acquired = []
    original = http.rate_limiter.acquire

    async def counting_acquire():
        acquired.append(1)
        await original()

    http.rate_limiter.acquire = counting_acquire
    assert run(http.get("https://example.com/a")) == "c"
    assert len(acquired) == len(session.calls) == 3


def test_default_headers_look_like_a_browser(make_http):
    http, _ = make_http()
    headers = http.default_headers
    assert headers["User-Agent"] == "test-agent"
    assert "text/html" in headers["Accept"]
    assert headers["Accept-Language"].startswith("en")
