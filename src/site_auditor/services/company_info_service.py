# src/site_auditor/services/company_info_service.py
import asyncio
import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from site_auditor.dom.extractors import (
    clean_text,
    extract_address,
    extract_emails,
    extract_meta_tag,
    extract_phones,
    extract_social_links,
    extract_structured_data,
    extract_year,
    find_about_page,
    find_contact_page,
    find_team_page,
)
from site_auditor.dom.html_document import HtmlDocument, parse_html
from site_auditor.errors import AuditError
from site_auditor.managers.config_manager import config_manager
from site_auditor.model import CompanyInfo, CompanyScore
from site_auditor.services.http_request_service import HttpRequestService
from site_auditor.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

SPECULATIVE_PATHS: Dict[str, List[str]] = {
    'about': ['/about', '/about-us', '/company', '/who-we-are', '/about.html', '/aboutus'],
    'contact': ['/contact', '/contact-us', '/contactus', '/get-in-touch', '/contact.html'],
    'team': ['/team', '/our-team', '/people', '/leadership', '/meet-the-team', '/about/team'],
    'careers': ['/careers', '/jobs', '/join-us', '/work-with-us', '/opportunities'],
    'services': ['/services', '/what-we-do', '/solutions'],
    'pricing': ['/pricing', '/plans', '/packages'],
    'blog': ['/blog', '/news', '/articles', '/insights'],
}

# Servers that refuse HEAD but may still serve the page
HEAD_NOT_ALLOWED = (405, 501)

ORGANIZATION_TYPES = {'Organization', 'LocalBusiness', 'Corporation'}

FOUNDED_PATTERNS = [
    re.compile(r"founded\s+in\s+(\d{4})", re.IGNORECASE),
    re.compile(r"established\s+in\s+(\d{4})", re.IGNORECASE),
    re.compile(r"since\s+(\d{4})", re.IGNORECASE),
    re.compile(r"started\s+in\s+(\d{4})", re.IGNORECASE),
]
INDUSTRY_PATTERNS = [
    re.compile(r"industry:\s*([^<\n.]+)", re.IGNORECASE),
    re.compile(r"we\s+(?:are|specialize in|focus on)\s+([^<\n.]+?\s+(?:industry|sector|business))", re.IGNORECASE),
]
EMPLOYEE_PATTERNS = [
    re.compile(r"(\d+[+\-\s]*(?:to|–|-)?\s*\d*)\s+employees", re.IGNORECASE),
    re.compile(
        r"team\s+of\s+(\d+[+\-\s]*(?:to|–|-)?\s*\d*)\s+(?:people|professionals|members)", re.IGNORECASE
    ),
]
TEAM_MEMBER_SELECTOR = '.team-member, .person, [class*="team"], [class*="member"]'
MAX_TEAM_MEMBERS = 500

SCORED_FIELDS = [
    ('name', 'name'),
    ('description', 'description'),
    ('email', 'email'),
    ('phone', 'phone'),
    ('address', 'address'),
    ('social_media', 'socialMedia'),
    ('founded_year', 'foundedYear'),
    ('industry', 'industry'),
    ('employees', 'employees'),
]


def _fill(info: CompanyInfo, field: str, value: Any) -> None:
    """First-writer-wins: a field is only written while it is still empty."""
    if value and not getattr(info, field):
        setattr(info, field, value)


async def _try_head(http: HttpRequestService, url: str) -> Optional[Dict[str, str]]:
    try:
        return await http.head(url)
    except AuditError as e:
        if e.details.get("status") not in HEAD_NOT_ALLOWED:
            return None
    # HEAD refused, confirm with a GET
    body = await _try_get(http, url)
    return {} if body is not None else None


async def _try_get(http: HttpRequestService, url: str) -> Optional[str]:
    try:
        return await http.get(url)
    except AuditError as e:
        logger.debug("Secondary page %s unavailable: %s", url, e)
        return None


async def find_speculative_paths(
        base_url: str,
        http: HttpRequestService,
        categories: Optional[Iterable[str]] = None,
) -> Dict[str, str]:
    """
    Probes guessed paths on the site root. Categories are probed concurrently;
    within a category the variants are tried in order and the first one that
    answers wins.
    """
    root = UrlUtils.get_base_url(base_url)
    if not root:
        return {}

    wanted = list(categories) if categories is not None else list(SPECULATIVE_PATHS)

    async def probe_category(category: str) -> Optional[str]:
        for path in SPECULATIVE_PATHS.get(category, []):
            url = UrlUtils.resolve_url(root, path)
            if url and await _try_head(http, url) is not None:
                return url
        return None

    results = await asyncio.gather(*(probe_category(c) for c in wanted))
    found = {category: url for category, url in zip(wanted, results) if url}
    logger.debug("Speculative paths for %s: %s", root, found or "none")
    return found


class CompanyInfoService:
    """
    Builds a CompanyInfo from the main page and then enriches it from the
    site's about, contact and team pages.

    Merge order, highest priority first: main-page text signals, JSON-LD,
    meta tags, about page, contact page, team page. Secondary pages are
    fetched concurrently but merged in that fixed order, so the result does
    not depend on which response arrives first.
    """

    def __init__(self, http: HttpRequestService, speculative: Optional[bool] = None):
        self.http = http
        if speculative is None:
            speculative = bool(config_manager.get_nested("company_info.speculative_paths", True))
        self.speculative = speculative

    async def extract(self, document: HtmlDocument, url: str) -> CompanyInfo:
        info = CompanyInfo()
        self._extract_from_main_page(document, info)
        self._extract_from_structured_data(document, info)
        self._extract_from_meta_tags(document, info)

        pages = await self._discover_pages(document, url)
        if not pages:
            return info

        # Skip exact URL duplicates across roles
        unique: Dict[str, str] = {}
        for role, page_url in pages.items():
            if page_url not in unique.values():
                unique[role] = page_url

        bodies = await asyncio.gather(*(_try_get(self.http, u) for u in unique.values()))

        extractors = {
            'about': self._extract_from_about_page,
            'contact': self._extract_from_contact_page,
            'team': self._extract_from_team_page,
        }
        for (role, page_url), body in zip(unique.items(), bodies):
            if body is None:
                continue
            extractors[role](parse_html(body, page_url), info)

        return info

    async def _discover_pages(self, document: HtmlDocument, url: str) -> Dict[str, str]:
        pages = {
            'about': find_about_page(document, url),
            'contact': find_contact_page(document, url),
            'team': find_team_page(document, url),
        }
        missing = [role for role, page_url in pages.items() if not page_url]
        if missing and self.speculative:
            guessed = await find_speculative_paths(url, self.http, missing)
            for role in missing:
                pages[role] = guessed.get(role)
        return {role: page_url for role, page_url in pages.items() if page_url}

    # -------- Main page --------

    @staticmethod
    def _extract_from_main_page(document: HtmlDocument, info: CompanyInfo) -> None:
        text = document.body_text
        emails = extract_emails(text)
        if emails:
            info.email = emails[0]
        phones = extract_phones(text)
        if phones:
            info.phone = phones[0]
        social = extract_social_links(document)
        if social:
            info.social_media = social
        info.address = extract_address(document)

    @staticmethod
    def _extract_from_structured_data(document: HtmlDocument, info: CompanyInfo) -> None:
        for data in _organization_blocks(extract_structured_data(document)):
            _fill(info, 'name', _as_text(data.get('name')))
            _fill(info, 'description', _as_text(data.get('description')))
            _fill(info, 'email', _as_text(data.get('email')))
            _fill(info, 'phone', _as_text(data.get('telephone')))

            address = data.get('address')
            if isinstance(address, dict) and address.get('streetAddress'):
                country = address.get('addressCountry')
                if isinstance(country, dict):
                    country = country.get('name')
                parts = [
                    address.get('streetAddress'),
                    address.get('addressLocality'),
                    address.get('addressRegion'),
                    address.get('postalCode'),
                    country,
                ]
                _fill(info, 'address', ", ".join(str(p) for p in parts if p))
            elif isinstance(address, str):
                _fill(info, 'address', address.strip())

            if data.get('foundingDate'):
                _fill(info, 'founded_year', extract_year(str(data['foundingDate'])))

    @staticmethod
    def _extract_from_meta_tags(document: HtmlDocument, info: CompanyInfo) -> None:
        site_name = extract_meta_tag(document, 'og:site_name')
        _fill(info, 'name', site_name.strip() if site_name else None)

        for meta_name in ('og:description', 'description'):
            value = extract_meta_tag(document, meta_name)
            _fill(info, 'description', value.strip() if value else None)

    # -------- Secondary pages --------

    @staticmethod
    def _extract_contact_signals(document: HtmlDocument, info: CompanyInfo, with_phone: bool = True) -> None:
        text = document.body_text
        if not info.email:
            emails = extract_emails(text)
            _fill(info, 'email', emails[0] if emails else None)
        if with_phone and not info.phone:
            phones = extract_phones(text)
            _fill(info, 'phone', phones[0] if phones else None)
        if not info.social_media:
            _fill(info, 'social_media', extract_social_links(document))

    def _extract_from_about_page(self, document: HtmlDocument, info: CompanyInfo) -> None:
        text = document.body_text

        if not info.name:
            h1 = document.select_one('h1')
            heading = clean_text(h1.get_text(" ")) if h1 is not None else ""
            if heading and len(heading) < 100:
                info.name = heading

        if not info.description:
            main = document.select_one('main, article, .content, #content')
            paragraph = main.find('p') if main is not None else None
            first_p = clean_text(paragraph.get_text(" ")) if paragraph is not None else ""
            if 50 < len(first_p) < 500:
                info.description = first_p

        if not info.founded_year:
            current_year = datetime.now().year
            for pattern in FOUNDED_PATTERNS:
                match = pattern.search(text)
                if match and 1800 <= int(match.group(1)) <= current_year:
                    info.founded_year = int(match.group(1))
                    break

        if not info.industry:
            for pattern in INDUSTRY_PATTERNS:
                match = pattern.search(text)
                if match:
                    industry = clean_text(match.group(1))
                    if 3 < len(industry) < 100:
                        info.industry = industry
                        break

        if not info.employees:
            for pattern in EMPLOYEE_PATTERNS:
                match = pattern.search(text)
                if match and match.group(1).strip():
                    info.employees = match.group(1).strip()
                    break

        self._extract_contact_signals(document, info)

    def _extract_from_contact_page(self, document: HtmlDocument, info: CompanyInfo) -> None:
        self._extract_contact_signals(document, info)
        if not info.address:
            _fill(info, 'address', extract_address(document))

    def _extract_from_team_page(self, document: HtmlDocument, info: CompanyInfo) -> None:
        self._extract_contact_signals(document, info, with_phone=False)
        if not info.employees:
            members = len(document.select(TEAM_MEMBER_SELECTOR))
            if 0 < members < MAX_TEAM_MEMBERS:
                info.employees = f"~{members}"


def _organization_blocks(blocks: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """JSON-LD objects typed as an organisation, including those nested in @graph."""
    flattened: List[Dict[str, Any]] = []
    for block in blocks:
        flattened.append(block)
        graph = block.get('@graph')
        if isinstance(graph, list):
            flattened.extend(item for item in graph if isinstance(item, dict))

    out = []
    for block in flattened:
        types = block.get('@type')
        types = types if isinstance(types, list) else [types]
        if ORGANIZATION_TYPES.intersection(t for t in types if isinstance(t, str)):
            out.append(block)
    return out


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


async def extract_company_info(document: HtmlDocument, url: str, http: HttpRequestService) -> CompanyInfo:
    return await CompanyInfoService(http).extract(document, url)


def calculate_company_info_score(info: CompanyInfo) -> CompanyScore:
    """Share of the nine company fields that are filled, as a rounded percentage."""
    missing = [label for field, label in SCORED_FIELDS if not getattr(info, field)]
    filled = len(SCORED_FIELDS) - len(missing)
    return CompanyScore(
        completeness=round(filled / len(SCORED_FIELDS) * 100),
        missing_fields=missing,
    )
