# src/site_auditor/services/http_request_service.py
import asyncio
import logging
import time
from typing import Dict, Optional, Tuple
from urllib.parse import urljoin

import aiohttp

from site_auditor.errors import AuditError, ErrorCode
from site_auditor.managers.config_manager import config_manager
from site_auditor.managers.rate_limit_manager import RateLimiter
from site_auditor.model import RateLimitConfig
from site_auditor.services.generate_default_user_agent_service import browser_headers, generate_default_user_agent

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = (301, 302, 303, 307, 308)


class HttpRequestService:
    """
    Rate-limited HTTP client used by every part of the audit engine.

    GET retries on timeouts and 5xx answers with a linear backoff
    (`retry_delay * attempt`); HEAD is a single best-effort attempt.
    Each attempt first passes through the RateLimiter.
    """

    def __init__(
            self,
            timeout: Optional[int] = None,
            user_agent: Optional[str] = None,
            max_retries: Optional[int] = None,
            retry_delay: Optional[int] = None,
            rate_limit: Optional[RateLimitConfig] = None,
            session: Optional[aiohttp.ClientSession] = None,
    ):
        # timeout and retry_delay are milliseconds
        self.timeout = int(timeout if timeout is not None else config_manager.get_nested("session.time_out", 30000))
        self.user_agent = user_agent or generate_default_user_agent()
        self.max_retries = max(1, int(
            max_retries if max_retries is not None else config_manager.get_nested("session.max_retries", 3)
        ))
        self.retry_delay = int(
            retry_delay if retry_delay is not None else config_manager.get_nested("session.retry_delay", 1000)
        )
        self.max_redirects = int(config_manager.get_nested("session.max_redirects", 5))
        self.read_timeout = float(config_manager.get_nested("session.client_read_timeout", 15.0))

        if rate_limit is None:
            rate_limit = RateLimitConfig(
                max_requests=int(config_manager.get_nested("rate_limit.max_requests", 10)),
                window_ms=int(config_manager.get_nested("rate_limit.window_ms", 1000)),
            )
        self.rate_limiter = RateLimiter(rate_limit)

        self.session = session
        self._owns_session = session is None
        self._sleep = asyncio.sleep

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def default_headers(self) -> Dict[str, str]:
        return browser_headers(self.user_agent)

    async def initialize(self):
        if not self.session or self.session.closed:
            timeout_obj = aiohttp.ClientTimeout(total=self.timeout / 1000)
            self.session = aiohttp.ClientSession(
                timeout=timeout_obj, headers=self.default_headers
            )
            self._owns_session = True
            logger.debug("HttpRequestService: Session initialized.")

    async def close(self):
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
            logger.debug("HttpRequestService: Session closed.")

    def set_rate_limit_config(self, config: RateLimitConfig) -> None:
        self.rate_limiter.configure(config)

    # =========================================================================
    #  GET (page fetching)
    # =========================================================================
    async def get(self, url: str) -> str:
        """
        Fetches a page body, following up to `max_redirects` redirects.
        Every request, redirect hops included, passes the rate limiter.

        Raises:
            AuditError(HTTP_ERROR): for 4xx answers and redirect loops.
            AuditError(FETCH_FAILED): for network errors, or once all
                attempts are used up on timeouts / 5xx answers.
        """
        if not self.session or self.session.closed:
            await self.initialize()

        last_error: Optional[BaseException] = None

        for attempt in range(1, self.max_retries + 1):
            start_time = time.perf_counter()
            try:
                body = await self._execute_get(url)
                logger.debug(
                    "GET %s ok in %.0f ms (attempt %d)", url, (time.perf_counter() - start_time) * 1000, attempt
                )
                return body
            except AuditError as e:
                status = e.details.get("status")
                if status is None or status < 500:
                    raise
                last_error = e
            except asyncio.TimeoutError as e:
                last_error = e
            except aiohttp.ClientError as e:
                raise AuditError(
                    f"Failed to fetch {url}: {e}",
                    ErrorCode.FETCH_FAILED,
                    {"url": url, "original_error": e}
                ) from e

            if attempt < self.max_retries:
                delay = self.retry_delay * attempt / 1000
                logger.debug("GET %s failed (%s), retrying in %.2fs", url, last_error or "timeout", delay)
                await self._sleep(delay)

        message = str(last_error) or type(last_error).__name__
        raise AuditError(
            f"Failed to fetch {url} after {self.max_retries} attempts: {message}",
            ErrorCode.FETCH_FAILED,
            {"url": url, "original_error": last_error}
        ) from last_error

    async def _execute_get(self, url: str) -> str:
        current_url = url
        visited = {url}

        for _ in range(self.max_redirects + 1):
            await self.rate_limiter.acquire()
            async with self.session.get(current_url, allow_redirects=False) as response:
                status = response.status
                location = response.headers.get('Location')

                if status in REDIRECT_STATUSES and location:
                    next_url = urljoin(current_url, location)
                    if next_url in visited:
                        raise AuditError(
                            f"Redirect loop detected at {next_url}",
                            ErrorCode.HTTP_ERROR,
                            {"url": url}
                        )
                    visited.add(next_url)
                    current_url = next_url
                    continue

                if status >= 400:
                    raise AuditError(
                        f"HTTP {status}: {response.reason or ''}".strip(),
                        ErrorCode.HTTP_ERROR,
                        {"status": status, "url": url}
                    )

                return await self._read_content(response, current_url)

        raise AuditError(
            f"Too many redirects for {url} (max {self.max_redirects})",
            ErrorCode.HTTP_ERROR,
            {"url": url}
        )

    async def _read_content(self, response, url: str) -> str:
        """Reads the response body as text, falling back to lenient UTF-8."""
        try:
            return await asyncio.wait_for(response.text(), timeout=self.read_timeout)
        except UnicodeDecodeError:
            content_bytes = await response.read()
            logger.debug("Undecodable body for %s, using replacement characters", url)
            return content_bytes.decode('utf-8', errors='replace')

    # =========================================================================
    #  HEAD (header probing)
    # =========================================================================
    async def head(self, url: str) -> Dict[str, str]:
        """
        Returns the response headers with lower-cased names. Not retried.

        Raises:
            AuditError(HEAD_FAILED): on any failure, including 4xx/5xx.
        """
        if not self.session or self.session.closed:
            await self.initialize()

        await self.rate_limiter.acquire()
        try:
            async with self.session.head(
                    url, allow_redirects=True, max_redirects=self.max_redirects
            ) as response:
                if response.status >= 400:
                    raise AuditError(
                        f"Failed to fetch headers for {url}: HTTP {response.status}",
                        ErrorCode.HEAD_FAILED,
                        {"status": response.status, "url": url}
                    )
                return {k.lower(): v for k, v in response.headers.items()}
        except AuditError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AuditError(
                f"Failed to fetch headers for {url}: {e}",
                ErrorCode.HEAD_FAILED,
                {"url": url, "original_error": e}
            ) from e

    async def fetch(self, url: str) -> Tuple[str, Dict[str, str]]:
        """
        Body and headers of one URL. The header probe runs alongside the GET
        and degrades to an empty map.
        """
        body, headers = await asyncio.gather(self.get(url), self._safe_head(url))
        return body, headers

    async def _safe_head(self, url: str) -> Dict[str, str]:
        try:
            return await self.head(url)
        except AuditError as e:
            logger.debug("Header probe failed for %s: %s", url, e)
            return {}
