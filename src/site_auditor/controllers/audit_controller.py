# src/site_auditor/controllers/audit_controller.py
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from site_auditor.dom.html_document import parse_html
from site_auditor.errors import AuditError
from site_auditor.managers.config_manager import config_manager
from site_auditor.model import AuditOptions, AuditReport, DomainInfo, RateLimitConfig
from site_auditor.services.company_info_service import CompanyInfoService
from site_auditor.services.domain_info_service import analyze_domain
from site_auditor.services.http_request_service import HttpRequestService
from site_auditor.services.seo_analysis_service import analyze_seo
from site_auditor.services.technology_detection_service import TechnologyDetectionService
from site_auditor.services.tls_inspection_service import TlsInspectionService
from site_auditor.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[List[AuditReport]], None]


class WebsiteAuditor:
    """
    Runs the full audit pipeline for one or many URLs.

    The page is fetched once; domain, technology, TLS and company-info
    analyses then run as independent tasks. A failing analysis only drops its
    own report section. Only a failure to fetch or parse the page sets
    `AuditReport.error`. No public method raises.
    """

    def __init__(
            self,
            timeout: Optional[int] = None,
            user_agent: Optional[str] = None,
            max_retries: Optional[int] = None,
            retry_delay: Optional[int] = None,
            http: Optional[HttpRequestService] = None,
            tls: Optional[TlsInspectionService] = None,
            technology_detector: Optional[TechnologyDetectionService] = None,
            domain_lookup: Callable[[str], Awaitable[DomainInfo]] = analyze_domain,
    ):
        self._owns_http = http is None
        self.http = http or HttpRequestService(
            timeout=timeout,
            user_agent=user_agent,
            max_retries=max_retries,
            retry_delay=retry_delay,
        )
        self.tls = tls or TlsInspectionService()
        self.technology_detector = technology_detector or TechnologyDetectionService()
        self.domain_lookup = domain_lookup

    @classmethod
    def from_options(cls, options: Optional[AuditOptions] = None, **kwargs) -> "WebsiteAuditor":
        options = options or AuditOptions()
        return cls(
            timeout=options.timeout,
            user_agent=options.user_agent,
            max_retries=options.max_retries,
            retry_delay=options.retry_delay,
            **kwargs,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        if self._owns_http:
            await self.http.close()

    def set_rate_limit_config(self, max_requests: int, window_ms: int) -> None:
        self.http.set_rate_limit_config(RateLimitConfig(max_requests=max_requests, window_ms=window_ms))

    # =========================================================================
    #  Single audits
    # =========================================================================
    async def audit(self, url: str, options: Any = None) -> AuditReport:
        try:
            opts = AuditOptions.from_any(options)
            normalized_url = UrlUtils.normalize_url(url)
            body, headers = await self.http.fetch(normalized_url)
        except (AuditError, ValidationError, TypeError) as e:
            logger.warning("Audit of %s failed: %s", url, e)
            return AuditReport(url=url, error=str(e))
        except Exception as e:
            logger.error("Unexpected failure while fetching %s: %s", url, e, exc_info=True)
            return AuditReport(url=url, error=str(e) or type(e).__name__)

        return await self.audit_from_html(normalized_url, body, headers, opts)

    async def audit_from_html(
            self,
            url: str,
            html: str,
            headers: Optional[Dict[str, str]] = None,
            options: Any = None,
    ) -> AuditReport:
        try:
            opts = AuditOptions.from_any(options)
            normalized_url = UrlUtils.normalize_url(url)
            domain = UrlUtils.extract_domain(normalized_url)
        except (AuditError, ValidationError, TypeError) as e:
            logger.warning("Audit of %s failed: %s", url, e)
            return AuditReport(url=url, error=str(e))

        report = AuditReport(url=normalized_url)
        headers = {k.lower(): v for k, v in (headers or {}).items()}

        try:
            document = parse_html(html, normalized_url)
        except Exception as e:
            logger.error("Could not parse HTML of %s: %s", normalized_url, e, exc_info=True)
            report.error = f"Failed to parse HTML: {e}"
            return report

        sections: Dict[str, Awaitable[Any]] = {}
        if opts.include_domain:
            sections["domain_info"] = self.domain_lookup(domain)
        if opts.include_technologies:
            sections["technologies"] = self._detect_technologies(document, headers)
        if opts.include_ssl:
            sections["ssl_info"] = self.tls.inspect(domain)
        if opts.include_company_info:
            sections["company_info"] = CompanyInfoService(self.http).extract(document, normalized_url)

        if opts.include_seo:
            report.seo_data = self._run_inline("seo_data", normalized_url, analyze_seo, document)

        names = list(sections)
        results = await asyncio.gather(*(self._run_section(n, normalized_url, sections[n]) for n in names))
        for name, value in zip(names, results):
            if value is not None:
                setattr(report, name, value)

        logger.info("Audited %s", normalized_url)
        return report

    async def _detect_technologies(self, document, headers):
        return self.technology_detector.detect(document, headers)

    @staticmethod
    async def _run_section(name: str, url: str, awaitable: Awaitable[Any]) -> Optional[Any]:
        """Awaits one analysis; its failure is logged and the section omitted."""
        try:
            return await awaitable
        except Exception as e:
            logger.warning("Section '%s' failed for %s: %s", name, url, e)
            return None

    @staticmethod
    def _run_inline(name: str, url: str, func: Callable, *args) -> Optional[Any]:
        try:
            return func(*args)
        except Exception as e:
            logger.warning("Section '%s' failed for %s: %s", name, url, e)
            return None

    # =========================================================================
    #  Batch audits
    # =========================================================================
    async def batch_audit(
            self,
            urls: List[str],
            options: Any = None,
            concurrency: Optional[int] = None,
            progress: Optional[ProgressCallback] = None,
    ) -> List[AuditReport]:
        """
        Audits `urls` in consecutive chunks of `concurrency`. URLs inside a
        chunk run in parallel; the next chunk starts once the current one has
        fully resolved. Results keep the input order, one per URL.
        """
        if concurrency is None:
            concurrency = int(config_manager.get_nested("batch.concurrency", 3))
        concurrency = max(1, int(concurrency))

        results: List[AuditReport] = []
        for start in range(0, len(urls), concurrency):
            chunk = urls[start:start + concurrency]
            chunk_results = await asyncio.gather(*(self._safe_audit(u, options) for u in chunk))
            results.extend(chunk_results)
            if progress:
                progress(chunk_results)

        return results

    async def _safe_audit(self, url: str, options: Any) -> AuditReport:
        try:
            return await self.audit(url, options)
        except Exception as e:
            logger.error("Unexpected failure while auditing %s: %s", url, e, exc_info=True)
            return AuditReport(url=url, error=str(e) or type(e).__name__)


# =========================================================================
#  Convenience entry points
# =========================================================================

def _auditor_for(options: Any) -> WebsiteAuditor:
    try:
        return WebsiteAuditor.from_options(AuditOptions.from_any(options))
    except (ValidationError, TypeError):
        # audit() reports the invalid options on the returned report
        return WebsiteAuditor()


async def audit_website(url: str, options: Any = None) -> AuditReport:
    async with _auditor_for(options) as auditor:
        return await auditor.audit(url, options)


async def audit_website_from_html(
        url: str,
        html: str,
        headers: Optional[Dict[str, str]] = None,
        options: Any = None,
) -> AuditReport:
    async with _auditor_for(options) as auditor:
        return await auditor.audit_from_html(url, html, headers, options)


async def audit_websites(
        urls: List[str],
        options: Any = None,
        concurrency: int = 3,
        progress: Optional[ProgressCallback] = None,
) -> List[AuditReport]:
    async with _auditor_for(options) as auditor:
        return await auditor.batch_audit(urls, options, concurrency, progress)
