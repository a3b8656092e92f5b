# src/site_auditor/dom/html_document.py
from __future__ import annotations

import json
import logging
from functools import cached_property
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)


class HtmlDocument:
    """
    Parsed, read-only view of one HTML page shared by all content analyzers.
    Expensive derived values (body text, JSON-LD blocks) are computed once.
    """

    def __init__(self, html: str, url: str = ""):
        # Basic cleanup of potentially dirty HTML (e.g., BOM)
        self.html = (html or "").replace('\ufeff', '')
        self.url = url
        self.soup = BeautifulSoup(self.html, "html.parser")

    # -------- Text --------

    @cached_property
    def body_text(self) -> str:
        """Visible text of <body> (or the whole document when there is none)."""
        root = self.soup.body or self.soup
        return root.get_text(" ", strip=True)

    @cached_property
    def title(self) -> Optional[str]:
        el = self.soup.find("title")
        text = el.get_text(strip=True) if el else ""
        return text or None

    # -------- Elements --------

    def select(self, selector: str) -> List[Tag]:
        return self.soup.select(selector)

    def select_one(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    @cached_property
    def links(self) -> List[str]:
        """Raw href values of every <a href> in document order."""
        return [
            a.get("href").strip()
            for a in self.soup.find_all("a", href=True)
            if isinstance(a.get("href"), str) and a.get("href").strip()
        ]

    @cached_property
    def scripts(self) -> List[str]:
        """One 'src + inline content' string per <script> element."""
        out = []
        for script in self.soup.find_all("script"):
            src = script.get("src") or ""
            content = script.string or script.get_text() or ""
            out.append(f"{src} {content}")
        return out

    @cached_property
    def metas(self) -> List[str]:
        """One 'name content' string per <meta> element."""
        out = []
        for meta in self.soup.find_all("meta"):
            name = meta.get("name") or meta.get("property") or ""
            content = meta.get("content") or ""
            out.append(f"{name} {content}")
        return out

    def meta_tag(self, name: str) -> Optional[str]:
        """
        Content of the first <meta> whose name or property equals `name`
        (case-insensitive) and whose content is not empty.
        """
        wanted = name.lower()
        for attr in ("name", "property"):
            for meta in self.soup.find_all("meta", attrs={attr: True}):
                value = meta.get(attr)
                if isinstance(value, str) and value.lower() == wanted:
                    content = meta.get("content")
                    if content:
                        return content
        return None

    # -------- Structured Data --------

    @cached_property
    def structured_data(self) -> List[Dict[str, Any]]:
        """
        Parsed JSON-LD objects. Malformed blocks are skipped; top-level
        arrays are flattened into the list.
        """
        data: List[Dict[str, Any]] = []
        for script in self.soup.find_all("script", type="application/ld+json"):
            txt = script.string or script.get_text() or ""
            if not txt.strip():
                continue
            try:
                parsed = json.loads(txt)
            except ValueError:
                logger.debug("Skipping malformed JSON-LD block on %s", self.url)
                continue
            if isinstance(parsed, list):
                data.extend(item for item in parsed if isinstance(item, dict))
            elif isinstance(parsed, dict):
                data.append(parsed)
        return data


def parse_html(html: str, url: str = "") -> HtmlDocument:
    return HtmlDocument(html, url)
