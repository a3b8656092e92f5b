# src/site_auditor/errors.py
from typing import Any, Optional


class ErrorCode:
    """Machine-readable error kinds carried by AuditError."""
    INVALID_URL = "INVALID_URL"
    DOMAIN_EXTRACTION_FAILED = "DOMAIN_EXTRACTION_FAILED"
    HTTP_ERROR = "HTTP_ERROR"
    FETCH_FAILED = "FETCH_FAILED"
    HEAD_FAILED = "HEAD_FAILED"


class AuditError(Exception):
    """
    Raised inside the audit engine for expected failure kinds.

    The orchestrator converts it into `AuditReport.error`; it never escapes
    the public entry points.
    """

    def __init__(self, message: str, code: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"AuditError(code={self.code!r}, message={self.message!r})"
