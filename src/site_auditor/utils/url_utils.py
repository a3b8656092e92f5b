# src/site_auditor/utils/url_utils.py
import logging
from typing import Optional
from urllib.parse import urlparse, urljoin, urlunparse

from site_auditor.errors import AuditError, ErrorCode

logger = logging.getLogger(__name__)


class UrlUtils:
    """A collection of static methods for URL parsing and manipulation."""

    @staticmethod
    def normalize_url(url: str) -> str:
        """
        Turns user input into an absolute URL.
        'example.com' -> 'https://example.com/'
        """
        if isinstance(url, bytes):
            url = url.decode('utf-8')
        if not isinstance(url, str) or not url.strip():
            raise AuditError(f"Invalid URL: {url!r}", ErrorCode.INVALID_URL, {"url": url})

        url = url.strip()
        if not url.lower().startswith(('http://', 'https://')):
            url = 'https://' + url

        try:
            parsed_url = urlparse(url)
            # Accessing .port validates the netloc
            parsed_url.port
        except ValueError as e:
            raise AuditError(f"Invalid URL: {url}", ErrorCode.INVALID_URL, {"url": url, "original_error": str(e)})

        if not parsed_url.hostname or ' ' in parsed_url.netloc:
            raise AuditError(f"Invalid URL: {url}", ErrorCode.INVALID_URL, {"url": url})

        # Lower-case the scheme and host (credentials keep their case)
        netloc = parsed_url.netloc
        if '@' not in netloc:
            netloc = netloc.lower()
        parsed_url = parsed_url._replace(scheme=parsed_url.scheme.lower(), netloc=netloc)
        if not parsed_url.path:
            parsed_url = parsed_url._replace(path='/')

        return urlunparse(parsed_url)

    @staticmethod
    def extract_domain(url: str) -> str:
        """
        Returns the bare hostname: lower-cased, 'www.' stripped.
        'https://www.example.com/path' -> 'example.com'
        """
        try:
            hostname = urlparse(UrlUtils.normalize_url(url)).hostname
        except AuditError as e:
            raise AuditError(
                f"Failed to extract domain from {url}",
                ErrorCode.DOMAIN_EXTRACTION_FAILED,
                {"url": url, "original_error": e.message}
            )
        if not hostname:
            raise AuditError(
                f"Failed to extract domain from {url}",
                ErrorCode.DOMAIN_EXTRACTION_FAILED,
                {"url": url}
            )
        return hostname.lower().removeprefix("www.")

    @staticmethod
    def is_valid_url(url: str) -> bool:
        try:
            UrlUtils.normalize_url(url)
            return True
        except AuditError:
            return False

    @staticmethod
    def get_base_url(url: str) -> Optional[str]:
        """
        Extracts and returns the base URL (scheme + netloc) from a given URL.
        """
        if isinstance(url, bytes):
            url = url.decode('utf-8')

        if not url.startswith(('http://', 'https://')):
            url = 'https://' + url

        try:
            parsed_url = urlparse(url)
            if not parsed_url.scheme or not parsed_url.netloc:
                logger.debug(f"Invalid URL format: {url}")
                return None
            return f"{parsed_url.scheme}://{parsed_url.netloc}"
        except ValueError:
            logger.debug(f"Could not parse invalid URL: {url}")
            return None

    @staticmethod
    def resolve_url(base_url: str, href: str) -> Optional[str]:
        """
        Creates a clean, absolute http(s) URL from a base URL and a potentially
        relative href. Returns None for anything that is not fetchable.
        """
        try:
            absolute_url = urljoin(base_url, href.strip())
            parsed_url = urlparse(absolute_url)
        except ValueError:
            return None

        if parsed_url.scheme not in ('http', 'https') or not parsed_url.netloc:
            return None

        if not parsed_url.path:
            parsed_url = parsed_url._replace(path='/')

        # Remove fragments, as they are client-side only
        return urlunparse(parsed_url._replace(fragment=''))

    @staticmethod
    def is_internal_link(url: str, base_url: str) -> bool:
        """
        Checks if a URL is on the same host as base_url.
        """
        try:
            return urlparse(url).hostname == urlparse(base_url).hostname
        except ValueError:
            return False
