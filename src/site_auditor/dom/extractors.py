# src/site_auditor/dom/extractors.py
"""
Stateless helpers that pull contact and company signals out of page text
or an HtmlDocument. Used by the company-info and SEO services.
"""
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from site_auditor.dom.html_document import HtmlDocument
from site_auditor.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

# Address regexes only ever look at this much body text
MAX_SCAN_CHARS = 50_000

# -------- Emails --------

EMAIL_REGEX = re.compile(
    r"\b[A-Za-z0-9][A-Za-z0-9._%+-]*@[A-Za-z0-9][A-Za-z0-9.-]*\.[A-Za-z]{2,}\b"
)

PERSONAL_MAIL_DOMAINS = ('gmail', 'yahoo', 'hotmail', 'outlook', 'aol', 'icloud', 'protonmail', 'proton')
PLACEHOLDER_DOMAINS = ('example.com', 'test.com', 'yoursite.com')
ASSET_EXTENSIONS = (
    '.png', '.jpg', '.jpeg', '.gif', '.svg', '.webp', '.ico', '.css', '.js',
    '.woff', '.woff2', '.ttf', '.eot',
)


def _email_priority(email: str) -> int:
    local_part = email.split('@')[0]
    if local_part in ('info', 'contact'):
        return 1
    if local_part in ('hello', 'support'):
        return 2
    if local_part in ('admin', 'sales'):
        return 3
    if local_part == 'team':
        return 4
    if 'noreply' in local_part or 'no-reply' in local_part:
        return 10
    return 5


def _is_business_email(email: str) -> bool:
    if email.endswith(ASSET_EXTENSIONS):
        return False
    if any(placeholder in email for placeholder in PLACEHOLDER_DOMAINS):
        return False

    domain = email.split('@')[-1]
    if len(domain) < 4:
        return False

    return not any(f"{d}." in domain or domain == d for d in PERSONAL_MAIL_DOMAINS)


def extract_emails(text: str) -> List[str]:
    """
    Business e-mail addresses found in `text`, lower-cased, de-duplicated
    and ordered by how likely they are to be a company contact address.
    """
    if not text:
        return []

    # De-obfuscate 'name [at] domain [dot] com'
    text = text.replace(" [at] ", "@").replace(" (at) ", "@")
    text = text.replace(" [dot] ", ".").replace(" (dot) ", ".")

    seen: Dict[str, None] = {}
    for match in EMAIL_REGEX.finditer(text):
        seen.setdefault(match.group(0).lower(), None)

    candidates = [email for email in seen if _is_business_email(email)]
    # sorted() is stable: equal priorities keep page order
    return sorted(candidates, key=_email_priority)


# -------- Phones --------

PHONE_REGEXES = [
    re.compile(r"(?:\+|00)(?:[0-9]{1,3})?[\s.-]?(?:\(?\d{1,4}\)?)?[\s.-]?\d{1,4}[\s.-]?\d{1,4}[\s.-]?\d{1,9}"),
    re.compile(r"(?:\+?\d{1,3}[-.\s]?)?\(?\d{2,4}\)?[-.\s]?\d{2,4}[-.\s]?\d{2,4}[-.\s]?\d{2,4}"),
    re.compile(r"\(\d{3}\)\s?\d{3}[-.\s]?\d{4}"),
    re.compile(r"\d{3}[-.\s]\d{3}[-.\s]\d{4}"),
    re.compile(r"\d{2,3}[-.\s]\d{2,3}[-.\s]\d{2,3}[-.\s]\d{2,3}"),
    re.compile(r"(?:\+33|0033|0)[1-9](?:[\s.-]?\d{2}){4}"),
    re.compile(r"(?:\+44|0044|0)\d{2,4}[\s.-]?\d{3,4}[\s.-]?\d{3,4}"),
    re.compile(r"(?:\+1|001)?[\s.-]?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}"),
]

PHONE_BLACKLIST = [
    re.compile(r"\d{4}[-./]\d{2}[-./]\d{2}"),
    re.compile(r"\d{2}[-./]\d{2}[-./]\d{4}"),
    re.compile(r"copyright|©|price|isbn", re.IGNORECASE),
]

REPEATED_DIGITS = re.compile(r"(\d)\1{6,}")
MAX_PHONES = 5


def _is_plausible_phone(phone: str) -> bool:
    digits_only = re.sub(r"\D", "", phone)

    if len(digits_only) < 10 or len(digits_only) > 15:
        return False
    if any(pattern.search(phone) for pattern in PHONE_BLACKLIST):
        return False
    if REPEATED_DIGITS.search(digits_only):
        return False
    return True


def extract_phones(text: str) -> List[str]:
    """
    Phone-number-looking strings with 10-15 digits, at most five, in the
    order the patterns found them.
    """
    if not text:
        return []

    seen: Dict[str, None] = {}
    for regex in PHONE_REGEXES:
        for match in regex.finditer(text):
            candidate = match.group(0).strip(" .-")
            if candidate:
                seen.setdefault(candidate, None)

    return [phone for phone in seen if _is_plausible_phone(phone)][:MAX_PHONES]


# -------- Social Links --------

SOCIAL_PLATFORMS: List[Dict[str, Any]] = [
    {"name": "facebook", "domains": ["facebook.com", "fb.com", "fb.me"],
     "exclude": ["/sharer", "/plugins", "/share.php", "/dialog"]},
    {"name": "twitter", "domains": ["twitter.com", "x.com"], "exclude": ["/intent/", "/share"]},
    {"name": "linkedin", "domains": ["linkedin.com", "lnkd.in"], "exclude": ["/shareArticle", "/share", "/sharing/"]},
    {"name": "instagram", "domains": ["instagram.com", "instagr.am"], "exclude": ["/share"]},
    {"name": "youtube", "domains": ["youtube.com", "youtu.be"], "exclude": ["/redirect"]},
    {"name": "tiktok", "domains": ["tiktok.com", "vm.tiktok.com"], "exclude": []},
    {"name": "pinterest", "domains": ["pinterest.com", "pin.it"], "exclude": ["/pin/create"]},
    {"name": "github", "domains": ["github.com"], "exclude": []},
    {"name": "medium", "domains": ["medium.com"], "exclude": []},
    {"name": "reddit", "domains": ["reddit.com"], "exclude": ["/submit"]},
    {"name": "discord", "domains": ["discord.gg", "discord.com/invite"], "exclude": []},
    {"name": "telegram", "domains": ["t.me", "telegram.me", "telegram.org"], "exclude": []},
    {"name": "whatsapp", "domains": ["wa.me", "whatsapp.com", "chat.whatsapp.com"], "exclude": []},
    {"name": "snapchat", "domains": ["snapchat.com"], "exclude": []},
    {"name": "twitch", "domains": ["twitch.tv"], "exclude": []},
    {"name": "threads", "domains": ["threads.net"], "exclude": []},
    {"name": "mastodon", "domains": ["mastodon.social", "fosstodon.org", "mas.to"], "exclude": []},
    {"name": "bluesky", "domains": ["bsky.app", "bsky.social"], "exclude": []},
    {"name": "vimeo", "domains": ["vimeo.com"], "exclude": []},
    {"name": "behance", "domains": ["behance.net"], "exclude": []},
    {"name": "dribbble", "domains": ["dribbble.com"], "exclude": []},
    {"name": "spotify", "domains": ["spotify.com", "open.spotify.com"], "exclude": []},
    {"name": "soundcloud", "domains": ["soundcloud.com"], "exclude": []},
    {"name": "slack", "domains": ["slack.com"], "exclude": []},
    {"name": "yelp", "domains": ["yelp.com"], "exclude": []},
    {"name": "tripadvisor", "domains": ["tripadvisor.com"], "exclude": []},
]


def _absolute_social_url(href: str) -> str:
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith("//"):
        return "https:" + href
    return "https://" + href


def _matches_domain(url: str, domain: str) -> bool:
    """Host suffix match; entries like 'discord.com/invite' also check the path."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    host = (parsed.hostname or "").lower()
    domain_host, _, domain_path = domain.partition("/")
    if host != domain_host and not host.endswith("." + domain_host):
        return False
    return not domain_path or parsed.path.lower().startswith("/" + domain_path)


def extract_social_links(doc: HtmlDocument) -> Dict[str, str]:
    """First non-share link per social platform, keyed by platform name."""
    social: Dict[str, str] = {}
    hrefs = doc.links

    for platform in SOCIAL_PLATFORMS:
        for href in hrefs:
            if not any(domain in href.lower() for domain in platform["domains"]):
                continue
            if any(pattern in href for pattern in platform["exclude"]):
                continue

            url = _absolute_social_url(href)
            if any(_matches_domain(url, domain) for domain in platform["domains"]):
                social[platform["name"]] = url
                break

    return social


# -------- Meta & Structured Data --------

def extract_meta_tag(doc: HtmlDocument, name: str) -> Optional[str]:
    return doc.meta_tag(name)


def extract_structured_data(doc: HtmlDocument) -> List[Dict[str, Any]]:
    return list(doc.structured_data)


# -------- Text helpers --------

def clean_text(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def extract_year(text: str) -> Optional[int]:
    """First plausible year (1900..this year) in `text`."""
    match = re.search(r"\b(?:19|20)\d{2}\b", text or "")
    if match:
        year = int(match.group(0))
        if 1900 <= year <= datetime.now().year:
            return year
    return None


# -------- Addresses --------

ADDRESS_SELECTORS = [
    '[itemtype*="PostalAddress"]',
    '[itemprop="address"]',
    '.address',
    '#address',
    '[class*="address"]',
    '[id*="address"]',
    '[class*="location"]',
    '[id*="location"]',
    '.contact-info address',
    'address',
]

ADDRESS_REGEXES = [
    # US: 123 Main Street, Springfield, IL 62704
    re.compile(
        r"\d{1,6}\s+[\w .'-]{2,60}?\b(?:street|st|avenue|ave|road|rd|boulevard|blvd|lane|ln|drive|dr|court|ct"
        r"|circle|cir|way|place|pl)\b.{0,80}?,?\s[A-Z]{2}\s+\d{5}(?:-\d{4})?",
        re.IGNORECASE,
    ),
    # FR: 12 rue de la Paix, 75002 Paris
    re.compile(
        r"\d{1,5}(?:\s?(?:bis|ter))?,?\s+(?:rue|avenue|boulevard|chemin|route|impasse|allée|place|square)"
        r"\s+[\w .'-]{2,60}?,?\s+\d{5}\s+[^\W\d_][\w'-]*",
        re.IGNORECASE,
    ),
    # DE: Hauptstraße 5, 10115 Berlin
    re.compile(
        r"[^\W\d_][\w.'-]{1,40}?(?:straße|strasse|str\.|weg|platz|allee|gasse)\s*\d{1,4}[a-z]?,?\s+\d{5}"
        r"\s+[^\W\d_][\w'-]*",
        re.IGNORECASE,
    ),
    # UK: 10 Downing Street, London, SW1A 2AA
    re.compile(
        r"\d{1,5}[a-z]?\s+[\w .'-]{2,60}?,\s+[\w ]{2,40}?,\s+[A-Z]{1,2}\d[A-Z\d]?\s*\d[A-Z]{2}\b",
        re.IGNORECASE,
    ),
    # US with suite / unit
    re.compile(
        r"\d{1,5}\s+[\w .'-]{2,60}?,\s*(?:suite|ste|apt|unit|#)?\s*\d*,?\s*[\w ]{2,40}?,\s*[A-Z]{2}\s+\d{5}",
        re.IGNORECASE,
    ),
]


def _acceptable_address(text: str) -> bool:
    return 15 < len(text) < 300


def extract_address(doc: HtmlDocument) -> Optional[str]:
    """
    Postal address from address-like markup first, then from street-address
    patterns in the visible text.
    """
    for selector in ADDRESS_SELECTORS:
        el = doc.select_one(selector)
        if el is not None:
            text = clean_text(el.get_text(" "))
            if _acceptable_address(text):
                return text

    page_text = doc.body_text[:MAX_SCAN_CHARS]
    for regex in ADDRESS_REGEXES:
        match = regex.search(page_text)
        if match:
            address = clean_text(match.group(0))
            if _acceptable_address(address):
                return address

    return None


# -------- Secondary page discovery --------

ABOUT_PATTERNS = ['/about', '/about-us', '/company', '/who-we-are', '/our-story', '/about-company', '/aboutus']
CONTACT_PATTERNS = ['/contact', '/contact-us', '/get-in-touch', '/reach-us', '/contactus']
TEAM_PATTERNS = ['/team', '/our-team', '/people', '/meet-the-team', '/leadership', '/about/team']


def _same_site(url: str, base_url: str) -> bool:
    host = (urlparse(url).hostname or "").removeprefix("www.")
    base_host = (urlparse(base_url).hostname or "").removeprefix("www.")
    return host == base_host


def _find_page(doc: HtmlDocument, base_url: str, patterns: List[str]) -> Optional[str]:
    for href in doc.links:
        lower_href = href.lower()
        if not any(pattern in lower_href for pattern in patterns):
            continue
        url = UrlUtils.resolve_url(base_url, href)
        if url and _same_site(url, base_url):
            return url
    return None


def find_about_page(doc: HtmlDocument, base_url: str) -> Optional[str]:
    return _find_page(doc, base_url, ABOUT_PATTERNS)


def find_contact_page(doc: HtmlDocument, base_url: str) -> Optional[str]:
    return _find_page(doc, base_url, CONTACT_PATTERNS)


def find_team_page(doc: HtmlDocument, base_url: str) -> Optional[str]:
    return _find_page(doc, base_url, TEAM_PATTERNS)
