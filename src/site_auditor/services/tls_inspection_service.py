# src/site_auditor/services/tls_inspection_service.py
import asyncio
import logging
import socket
import ssl
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple

from cryptography import x509
from cryptography.x509.oid import NameOID

from site_auditor.managers.config_manager import config_manager
from site_auditor.model import SecurityHeaders, SecurityScore, TlsInfo

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

SECURITY_HEADER_NAMES = {
    "has_hsts": "strict-transport-security",
    "has_csp": "content-security-policy",
    "has_x_frame_options": "x-frame-options",
    "has_x_content_type_options": "x-content-type-options",
    "has_referrer_policy": "referrer-policy",
    "has_permissions_policy": "permissions-policy",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TlsInspectionService:
    """
    Reads the peer certificate of a host over a raw TLS connection.

    Certificate validation is off: the probe reports whatever certificate the
    server presents, trusted or not. Socket work runs in the default executor.
    Every failure is folded into `TlsInfo(valid=False, error=...)`.
    """

    def __init__(
            self,
            port: Optional[int] = None,
            timeout: Optional[float] = None,
            clock: Callable[[], datetime] = _utcnow,
    ):
        self.port = int(port if port is not None else config_manager.get_nested("tls.port", 443))
        self.timeout = float(timeout if timeout is not None else config_manager.get_nested("tls.timeout", 10.0))
        self._clock = clock

    async def inspect(self, hostname: str) -> TlsInfo:
        host = self._clean_hostname(hostname)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.inspect_sync, host)

    def inspect_sync(self, hostname: str) -> TlsInfo:
        try:
            der, protocol = self._fetch_peer_certificate(hostname)
        except socket.timeout:
            logger.debug("TLS probe for %s timed out after %.1fs", hostname, self.timeout)
            return TlsInfo(valid=False, error="Connection timeout")
        except (OSError, ssl.SSLError, ValueError) as e:
            logger.debug("TLS probe for %s failed: %s", hostname, e)
            return TlsInfo(valid=False, error=str(e) or type(e).__name__)

        if not der:
            return TlsInfo(valid=False, protocol=protocol, error="No certificate found")

        try:
            return self._build_info(der, protocol)
        except ValueError as e:
            logger.debug("Could not parse certificate of %s: %s", hostname, e)
            return TlsInfo(valid=False, protocol=protocol, error=str(e))

    def _fetch_peer_certificate(self, hostname: str) -> Tuple[Optional[bytes], Optional[str]]:
        """DER bytes of the presented certificate plus the negotiated protocol."""
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

        with socket.create_connection((hostname, self.port), timeout=self.timeout) as sock:
            with context.wrap_socket(sock, server_hostname=hostname) as ssock:
                return ssock.getpeercert(binary_form=True), ssock.version()

    def _build_info(self, der: bytes, protocol: Optional[str]) -> TlsInfo:
        cert = x509.load_der_x509_certificate(der)
        valid_from = cert.not_valid_before_utc
        valid_to = cert.not_valid_after_utc
        now = self._clock()

        days_remaining = int((valid_to - now).total_seconds() // SECONDS_PER_DAY)

        return TlsInfo(
            valid=valid_from <= now <= valid_to,
            valid_from=valid_from,
            valid_to=valid_to,
            days_remaining=days_remaining,
            issuer=self._common_name(cert.issuer) or self._common_name(cert.subject),
            protocol=protocol or "TLS",
            checked_at=now,
        )

    @staticmethod
    def _common_name(name: x509.Name) -> Optional[str]:
        attrs = name.get_attributes_for_oid(NameOID.COMMON_NAME)
        if not attrs:
            return None
        value = attrs[0].value
        return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value

    @staticmethod
    def _clean_hostname(hostname: str) -> str:
        host = (hostname or "").strip()
        for prefix in ("https://", "http://"):
            if host.lower().startswith(prefix):
                host = host[len(prefix):]
        return host.split("/", 1)[0]


async def analyze_ssl(hostname: str) -> TlsInfo:
    return await TlsInspectionService().inspect(hostname)


# =========================================================================
#  Security headers
# =========================================================================

def analyze_security_headers(headers: Optional[Dict[str, str]]) -> SecurityHeaders:
    lower = {k.lower(): v for k, v in (headers or {}).items()}
    flags = {flag: name in lower for flag, name in SECURITY_HEADER_NAMES.items()}
    present = {name: lower[name] for name in SECURITY_HEADER_NAMES.values() if name in lower}
    return SecurityHeaders(headers=present, **flags)


def calculate_security_score(tls_info: TlsInfo, security_headers: SecurityHeaders) -> SecurityScore:
    score = 100
    issues = []
    recommendations = []

    if not tls_info.valid:
        score -= 30
        issues.append("Invalid or missing SSL certificate")
        recommendations.append("Install a valid SSL certificate from a trusted authority")
    elif tls_info.days_remaining is not None and tls_info.days_remaining < 30:
        score -= 10
        issues.append(f"SSL certificate expires in {tls_info.days_remaining} days")
        recommendations.append("Renew SSL certificate before expiration")

    checks = (
        (security_headers.has_hsts, 15, "Missing HSTS header",
         "Add Strict-Transport-Security header to enforce HTTPS"),
        (security_headers.has_csp, 15, "Missing Content Security Policy",
         "Implement CSP to prevent XSS attacks"),
        (security_headers.has_x_frame_options, 10, "Missing X-Frame-Options header",
         "Add X-Frame-Options header to prevent clickjacking"),
        (security_headers.has_x_content_type_options, 10, "Missing X-Content-Type-Options header",
         "Add X-Content-Type-Options: nosniff header"),
        (security_headers.has_referrer_policy, 5, "Missing Referrer-Policy header",
         "Add Referrer-Policy header to control referrer information"),
        (security_headers.has_permissions_policy, 5, "Missing Permissions-Policy header",
         "Add Permissions-Policy header to control browser features"),
    )
    for present, penalty, issue, recommendation in checks:
        if not present:
            score -= penalty
            issues.append(issue)
            recommendations.append(recommendation)

    return SecurityScore(score=max(0, score), issues=issues, recommendations=recommendations)
