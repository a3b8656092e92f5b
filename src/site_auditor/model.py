# src/site_auditor/model.py (Report Layer)
import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from site_auditor.managers.config_manager import config_manager

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportModel(BaseModel):
    """
    Base for every report entity. Fields are snake_case in Python and
    camelCase on the wire (`model_dump(by_alias=True)`).
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class RateLimitConfig(ReportModel):
    max_requests: int = Field(default=10, ge=1)
    window_ms: int = Field(default=1000, ge=0)


class Technology(ReportModel):
    name: str
    category: str
    confidence: int = 0
    version: Optional[str] = None
    homepage: Optional[str] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: Any) -> int:
        value = int(v or 0)
        return max(0, min(100, value))


class TlsInfo(ReportModel):
    valid: bool = False
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    days_remaining: Optional[int] = None
    issuer: Optional[str] = None
    protocol: Optional[str] = None
    error: Optional[str] = None
    checked_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _valid_requires_bounds(self) -> "TlsInfo":
        if self.valid:
            if self.valid_from is None or self.valid_to is None:
                raise ValueError("a valid certificate needs both validity bounds")
            if not (self.valid_from <= self.checked_at <= self.valid_to):
                raise ValueError("certificate is not valid at checked_at")
        return self


class SeoData(ReportModel):
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[List[str]] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    twitter_card: Optional[str] = None
    canonical: Optional[str] = None
    h1_tags: Optional[List[str]] = None
    robots_meta: Optional[str] = None
    structured_data: Optional[List[Dict[str, Any]]] = None


class CompanyInfo(ReportModel):
    name: Optional[str] = None
    description: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    social_media: Optional[Dict[str, str]] = None
    founded_year: Optional[int] = None
    industry: Optional[str] = None
    employees: Optional[str] = None


class DomainInfo(ReportModel):
    domain: str
    registrar: Optional[str] = None
    created_date: Optional[datetime] = None
    expires_date: Optional[datetime] = None
    updated_date: Optional[datetime] = None
    name_servers: Optional[List[str]] = None
    status: Optional[List[str]] = None
    organization_name: Optional[str] = None
    organization_country: Optional[str] = None


class AuditReport(ReportModel):
    url: str
    audited_at: datetime = Field(default_factory=_utcnow)
    domain_info: Optional[DomainInfo] = None
    technologies: Optional[List[Technology]] = None
    ssl_info: Optional[TlsInfo] = None
    seo_data: Optional[SeoData] = None
    company_info: Optional[CompanyInfo] = None
    error: Optional[str] = None


# --- Scores & secondary analyses ---

class SeoScore(ReportModel):
    score: int
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class CompanyScore(ReportModel):
    completeness: int
    missing_fields: List[str] = Field(default_factory=list)


class SecurityHeaders(ReportModel):
    has_hsts: bool = False
    has_csp: bool = False
    has_x_frame_options: bool = False
    has_x_content_type_options: bool = False
    has_referrer_policy: bool = False
    has_permissions_policy: bool = False
    headers: Dict[str, str] = Field(default_factory=dict)


class SecurityScore(SeoScore):
    pass


class HeadingStructure(ReportModel):
    h1: int = 0
    h2: int = 0
    h3: int = 0
    h4: int = 0
    h5: int = 0
    h6: int = 0


class ContentAnalysis(ReportModel):
    word_count: int = 0
    image_count: int = 0
    link_count: int = 0
    internal_links: int = 0
    external_links: int = 0
    heading_structure: HeadingStructure = Field(default_factory=HeadingStructure)


# --- Options ---

class AuditOptions(ReportModel):
    """
    Per-call audit switches. The include_* flags default to the values
    below; an unset `timeout`, `max_retries` or `retry_delay` is read from
    the `session` section of settings.json. Unknown keys are ignored.
    `timeout` and `retry_delay` are milliseconds.
    """
    include_domain: bool = True
    include_technologies: bool = True
    include_ssl: bool = Field(default=True, alias="includeSSL")
    include_seo: bool = Field(default=True, alias="includeSEO")
    include_company_info: bool = True
    include_performance: bool = False
    include_screenshots: bool = False
    timeout: int = Field(default_factory=lambda: int(config_manager.get_nested("session.time_out", 30000)))
    user_agent: Optional[str] = None
    max_retries: int = Field(default_factory=lambda: int(config_manager.get_nested("session.max_retries", 3)))
    retry_delay: int = Field(default_factory=lambda: int(config_manager.get_nested("session.retry_delay", 1000)))

    @classmethod
    def from_any(cls, options: Any = None) -> "AuditOptions":
        """Accepts None, a dict (snake_case or camelCase keys) or an AuditOptions."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, dict):
            return cls.model_validate(options)
        raise TypeError(f"Unsupported options type: {type(options).__name__}")
