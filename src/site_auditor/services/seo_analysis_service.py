# src/site_auditor/services/seo_analysis_service.py
"""
On-page SEO extraction and scoring. Pure functions over an HtmlDocument;
nothing here performs I/O.
"""
import logging
from typing import Optional

from site_auditor.dom.extractors import clean_text, extract_meta_tag, extract_structured_data
from site_auditor.dom.html_document import HtmlDocument
from site_auditor.model import ContentAnalysis, HeadingStructure, SeoData, SeoScore
from site_auditor.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)

TITLE_MIN, TITLE_MAX = 30, 60
DESCRIPTION_MIN, DESCRIPTION_MAX = 120, 160


def analyze_seo(document: HtmlDocument) -> SeoData:
    keywords_content = extract_meta_tag(document, "keywords")
    keywords = None
    if keywords_content:
        keywords = [k.strip() for k in keywords_content.split(",") if k.strip()] or None

    canonical_el = document.select_one('link[rel="canonical"]')
    canonical = canonical_el.get("href") if canonical_el is not None else None

    h1_tags = [clean_text(h1.get_text(" ")) for h1 in document.select("h1")]
    h1_tags = [text for text in h1_tags if text]

    structured_data = extract_structured_data(document)

    return SeoData(
        title=document.title,
        description=extract_meta_tag(document, "description"),
        keywords=keywords,
        og_title=extract_meta_tag(document, "og:title"),
        og_description=extract_meta_tag(document, "og:description"),
        og_image=extract_meta_tag(document, "og:image"),
        twitter_card=extract_meta_tag(document, "twitter:card"),
        canonical=canonical or None,
        h1_tags=h1_tags or None,
        robots_meta=extract_meta_tag(document, "robots"),
        structured_data=structured_data or None,
    )


def calculate_seo_score(seo: SeoData) -> SeoScore:
    """
    Starts at 100 and deducts a fixed penalty per problem. Every issue comes
    with a matching recommendation at the same index.
    """
    score = 100
    issues = []
    recommendations = []

    def penalize(points: int, issue: str, recommendation: str):
        nonlocal score
        score -= points
        issues.append(issue)
        recommendations.append(recommendation)

    if not seo.title:
        penalize(15, "Missing title tag", "Add a descriptive title tag (50-60 characters)")
    elif len(seo.title) < TITLE_MIN:
        penalize(5, "Title tag is too short", "Expand title tag to 50-60 characters")
    elif len(seo.title) > TITLE_MAX:
        penalize(5, "Title tag is too long", "Shorten title tag to 50-60 characters")

    if not seo.description:
        penalize(15, "Missing meta description", "Add a meta description (150-160 characters)")
    elif len(seo.description) < DESCRIPTION_MIN:
        penalize(5, "Meta description is too short", "Expand meta description to 150-160 characters")
    elif len(seo.description) > DESCRIPTION_MAX:
        penalize(5, "Meta description is too long", "Shorten meta description to 150-160 characters")

    if not seo.h1_tags:
        penalize(10, "Missing H1 tag", "Add exactly one H1 tag to the page")
    elif len(seo.h1_tags) > 1:
        penalize(5, f"Multiple H1 tags found ({len(seo.h1_tags)})", "Use only one H1 tag per page")

    if not seo.canonical:
        penalize(5, "Missing canonical URL",
                 "Add a canonical link tag to prevent duplicate content issues")

    if not (seo.og_title and seo.og_description and seo.og_image):
        penalize(10, "Incomplete Open Graph tags",
                 "Add Open Graph tags (og:title, og:description, og:image) for better social sharing")

    if not seo.robots_meta:
        penalize(5, "Missing robots meta tag", "Add robots meta tag to control indexing")

    if not seo.structured_data:
        penalize(10, "Missing structured data (Schema.org)",
                 "Add JSON-LD structured data for better search engine understanding")

    if not seo.twitter_card:
        penalize(5, "Missing Twitter Card tags", "Add Twitter Card tags for better Twitter sharing")

    return SeoScore(score=max(0, score), issues=issues, recommendations=recommendations)


def analyze_content(document: HtmlDocument, base_url: Optional[str] = None) -> ContentAnalysis:
    base_url = base_url or document.url
    hrefs = document.links

    internal = external = 0
    for href in hrefs:
        absolute = UrlUtils.resolve_url(base_url, href) if base_url else None
        if absolute is None:
            continue
        if UrlUtils.is_internal_link(absolute, base_url):
            internal += 1
        else:
            external += 1

    headings = HeadingStructure(**{
        f"h{level}": len(document.select(f"h{level}")) for level in range(1, 7)
    })

    return ContentAnalysis(
        word_count=len(document.body_text.split()),
        image_count=len(document.select("img")),
        link_count=len(hrefs),
        internal_links=internal,
        external_links=external,
        heading_structure=headings,
    )
