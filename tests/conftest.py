# tests/conftest.py
import asyncio

import pytest

from audit_fixtures import FakeSession
from site_auditor.model import RateLimitConfig
from site_auditor.services.http_request_service import HttpRequestService


@pytest.fixture
def make_http():
    """Builds an HttpRequestService on top of a FakeSession with instant backoff."""

    def _make(routes=None, max_retries=3, retry_delay=10):
        session = FakeSession(routes)
        http = HttpRequestService(
            timeout=1000,
            user_agent="test-agent",
            max_retries=max_retries,
            retry_delay=retry_delay,
            rate_limit=RateLimitConfig(max_requests=1000, window_ms=1000),
            session=session,
        )
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        http._sleep = fake_sleep
        http.sleeps = sleeps
        return http, session

    return _make


@pytest.fixture
def run():
    """Runs a coroutine to completion from a synchronous test."""
    return asyncio.run
