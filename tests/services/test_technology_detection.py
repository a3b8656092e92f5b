# tests/services/test_technology_detection.py
import re

import pytest

from site_auditor.dom.html_document import HtmlDocument
from site_auditor.services.technology_catalog import TECHNOLOGY_CATALOG, TechnologyPattern
from site_auditor.services.technology_detection_service import (
    TechnologyDetectionService,
    detect_technologies,
    extract_version,
)

RICH_PAGE = """
<html>
<head>
  <meta name="generator" content="WordPress 6.4.2">
  <link rel="stylesheet" href="/wp-content/themes/x/style.css">
  <script src="https://code.jquery.com/jquery-3.7.1.min.js"></script>
  <script src="https://www.googletagmanager.com/gtm.js?id=GTM-ABC123"></script>
  <script src="https://js.stripe.com/v3/"></script>
</head>
<body><div id="__next">Shop</div></body>
</html>
"""


def _by_name(technologies):
    return {t.name: t for t in technologies}


def test_cloudflare_detected_from_headers():
    doc = HtmlDocument("<html><body>plain</body></html>", "https://example.com/")
    found = _by_name(detect_technologies(doc, headers={"server": "cloudflare", "cf-ray": "abc123"}))

    assert "Cloudflare" in found
    assert found["Cloudflare"].confidence >= 50
    assert found["Cloudflare"].category == "CDN"


def test_absent_headers_never_match():
    """Catch-all header patterns only fire when the header is actually sent."""
    doc = HtmlDocument("<html><body>plain</body></html>")
    found = _by_name(detect_technologies(doc, headers={}))

    for name in ("Cloudflare", "Shopify", "Vercel", "Netlify", "Fastly", "Akamai", "Amazon CloudFront"):
        assert name not in found


def test_signals_accumulate_per_technology():
    doc = HtmlDocument(RICH_PAGE, "https://example.com/")
    found = _by_name(detect_technologies(doc, headers={"Server": "nginx/1.25.3"}))

    # html +30, meta +30
    assert found["WordPress"].confidence == 60
    # script +40 with version from the script URL
    assert found["jQuery"].confidence == 40
    assert found["jQuery"].version == "3.7.1"
    # html (GTM id) +30, script +40
    assert found["Google Tag Manager"].confidence == 70
    assert found["Stripe"].confidence == 40
    # header +50 with version from the header value
    assert found["Nginx"].confidence == 50
    assert found["Nginx"].version == "1.25.3"


def test_result_invariants_hold():
    doc = HtmlDocument(RICH_PAGE)
    technologies = detect_technologies(doc, headers={"server": "cloudflare", "cf-ray": "x", "x-powered-by": "Express"})

    names = [t.name for t in technologies]
    confidences = [t.confidence for t in technologies]
    assert len(names) == len(set(names))
    assert all(0 <= c <= 100 for c in confidences)
    assert confidences == sorted(confidences, reverse=True)


def test_confidence_is_clamped_to_100():
    page = '<html><head><meta name="generator" content="Gatsby 5.0.0"></head>' \
           '<body class="gatsby"><script src="/gatsby-runtime.js"></script></body></html>'
    found = _by_name(detect_technologies(HtmlDocument(page)))
    # html 30 + script 40 + meta 30
    assert found["Gatsby"].confidence == 100


def test_duplicate_catalog_names_are_recorded_once():
    catalog = (
        TechnologyPattern("Thing", "A", "https://a.example", html=(re.compile("thing", re.I),)),
        TechnologyPattern("Thing", "B", "https://b.example", html=(re.compile("thing", re.I),)),
    )
    found = TechnologyDetectionService(catalog).detect(HtmlDocument("<p>thing</p>"))
    assert [(t.name, t.category) for t in found] == [("Thing", "A")]


def test_ties_keep_catalog_order():
    doc = HtmlDocument('<script src="https://js.stripe.com/v3/"></script>'
                       '<script src="https://static.hotjar.com/c/hotjar.js"></script>')
    names = [t.name for t in detect_technologies(doc) if t.confidence == 40]
    # Hotjar precedes Stripe in the catalog
    assert names.index("Hotjar") < names.index("Stripe")


def test_raw_html_override():
    doc = HtmlDocument("<html></html>", "https://example.com/")
    found = _by_name(detect_technologies(doc, html="<div data-v-123>vue app</div>"))
    assert "Vue.js" in found


def test_catalog_names_are_unique():
    names = [pattern.name for pattern in TECHNOLOGY_CATALOG]
    assert len(names) == len(set(names))


@pytest.mark.parametrize("text, tech, expected", [
    ("nginx/1.25.3", "nginx", "1.25.3"),
    ("Apache/2.4", "Apache", "2.4"),
    ("WordPress 6.4.2", "WordPress", "6.4.2"),
    ("build version: 7.1", "Foo", "7.1"),
    ("bundle v2.0.1", "Foo", "2.0.1"),
    ("no numbers here", "Foo", None),
    ("", "Foo", None),
])
def test_extract_version(text, tech, expected):
    assert extract_version(text, tech) == expected
