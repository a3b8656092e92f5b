# src/site_auditor/services/technology_detection_service.py
import logging
import re
from typing import Dict, List, Optional, Set

from site_auditor.dom.html_document import HtmlDocument
from site_auditor.model import Technology
from site_auditor.services.technology_catalog import TECHNOLOGY_CATALOG, TechnologyPattern

logger = logging.getLogger(__name__)

SEMVER_REGEX = re.compile(r"(\d+\.\d+\.\d+)")

HTML_SCORE = 30
SCRIPT_SCORE = 40
META_SCORE = 30
HEADER_SCORE = 50


class TechnologyDetectionService:
    """
    Fingerprints a page against the static technology catalog.

    Every catalog entry is scored independently: an HTML match adds 30, a
    script match 40, a meta match 30 and a response-header match 50. Signals
    accumulate before the Technology model clamps the total to 100.
    """

    def __init__(self, catalog=TECHNOLOGY_CATALOG):
        self.catalog = catalog

    def detect(self, document: HtmlDocument, headers: Optional[Dict[str, str]] = None) -> List[Technology]:
        html = document.html
        normalized_headers = {k.lower(): v for k, v in (headers or {}).items()}

        found: List[Technology] = []
        seen: Set[str] = set()

        for pattern in self.catalog:
            if pattern.name in seen:
                continue

            confidence, version = self._score(pattern, html, document.scripts, document.metas, normalized_headers)
            if confidence <= 0:
                continue

            seen.add(pattern.name)
            found.append(Technology(
                name=pattern.name,
                category=pattern.category,
                confidence=confidence,
                version=version,
                homepage=pattern.homepage,
            ))

        # sorted() is stable, so ties keep catalog order
        found = sorted(found, key=lambda t: t.confidence, reverse=True)
        logger.debug("Detected %d technologies on %s", len(found), document.url or "<html>")
        return found

    @staticmethod
    def _score(
            pattern: TechnologyPattern,
            html: str,
            scripts: List[str],
            metas: List[str],
            headers: Dict[str, str],
    ):
        confidence = 0
        version: Optional[str] = None

        if any(rx.search(html) for rx in pattern.html):
            confidence += HTML_SCORE

        if pattern.script:
            for script_text in scripts:
                if any(rx.search(script_text) for rx in pattern.script):
                    confidence += SCRIPT_SCORE
                    match = SEMVER_REGEX.search(script_text)
                    if match:
                        version = match.group(1)
                    break

        if pattern.meta:
            for meta_text in metas:
                if any(rx.search(meta_text) for rx in pattern.meta):
                    confidence += META_SCORE
                    break

        # Only the first matching header counts; absent headers never match
        for header_name, rx in pattern.headers:
            value = headers.get(header_name)
            if value is None or not rx.search(value):
                continue
            confidence += HEADER_SCORE
            match = SEMVER_REGEX.search(value)
            if match and not version:
                version = match.group(1)
            break

        return confidence, version


_default_service = TechnologyDetectionService()


def detect_technologies(
        document: HtmlDocument,
        html: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
) -> List[Technology]:
    """
    Module-level shortcut over the shared detector. `html` overrides the raw
    text the HTML patterns are matched against (defaults to the parsed page).
    """
    if html is not None and html != document.html:
        document = HtmlDocument(html, document.url)
    return _default_service.detect(document, headers)


def extract_version(text: str, technology: str) -> Optional[str]:
    """
    Best-effort version lookup for `technology` inside free text, e.g. a
    `Server` header or a generator meta tag.
    """
    if not text:
        return None
    name = re.escape(technology)
    patterns = (
        re.compile(rf"{name}[\s/]*(\d+\.\d+\.\d+)", re.IGNORECASE),
        re.compile(rf"{name}[\s/]*(\d+\.\d+)", re.IGNORECASE),
        re.compile(r"version[:\s]*([\d.]+)", re.IGNORECASE),
        re.compile(r"v([\d.]+)", re.IGNORECASE),
    )
    for rx in patterns:
        match = rx.search(text)
        if match and match.group(1):
            return match.group(1)
    return None
