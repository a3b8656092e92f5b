# tests/services/test_company_info.py
import json

from site_auditor.dom.html_document import HtmlDocument
from site_auditor.model import CompanyInfo
from site_auditor.services.company_info_service import (
    CompanyInfoService,
    calculate_company_info_score,
    find_speculative_paths,
)
from audit_fixtures import ok, status

BASE = "https://acme.io/"

ABOUT_PAGE = """
<html><body>
  <h1>Acme Corporation</h1>
  <main><p>Acme Corporation builds industrial widgets for factories around the world.</p></main>
  <p>Founded in 1999. Industry: Industrial widgets. Write to about@acme.io</p>
</body></html>
"""

CONTACT_PAGE = """
<html><body>
  <p>Email contact@acme.io or call +1 (555) 123-4567 today.</p>
  <p itemprop="address">1 Infinite Loop, Cupertino, CA 95014</p>
</body></html>
"""

TEAM_PAGE = """
<html><body>
  <div class="team-member">Ann</div>
  <div class="team-member">Bob</div>
  <div class="team-member">Cid</div>
</body></html>
"""


def _jsonld(data):
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


def test_og_site_name_becomes_the_company_name(make_http, run):
    http, session = make_http()
    doc = HtmlDocument('<html><head><meta name="og:site_name" content="Acme Inc"></head><body></body></html>', BASE)

    info = run(CompanyInfoService(http, speculative=False).extract(doc, BASE))

    assert info.name == "Acme Inc"
    assert session.calls == []


def test_main_page_beats_structured_data_beats_meta(make_http, run):
    http, _ = make_http()
    html = (
        "<html><head>"
        '<meta property="og:site_name" content="Acme OG">'
        '<meta name="description" content="Meta description">'
        + _jsonld({
            "@context": "https://schema.org",
            "@type": "Organization",
            "name": "Acme LD",
            "email": "ld@acme.io",
            "telephone": "+1 555 000 1111",
        })
        + "</head><body><p>Reach us at info@acme.io</p></body></html>"
    )

    info = run(CompanyInfoService(http, speculative=False).extract(HtmlDocument(html, BASE), BASE))

    assert info.email == "info@acme.io"
    assert info.name == "Acme LD"
    assert info.phone == "+1 555 000 1111"
    assert info.description == "Meta description"


def test_structured_data_graph_and_postal_address(make_http, run):
    http, _ = make_http()
    html = "<html><head>" + _jsonld({
        "@context": "https://schema.org",
        "@graph": [
            {"@type": "WebSite", "name": "Not a company"},
            {
                "@type": ["Corporation", "Thing"],
                "name": "Acme Corp",
                "foundingDate": "2005-03-01",
                "address": {
                    "@type": "PostalAddress",
                    "streetAddress": "1 Main St",
                    "addressLocality": "Springfield",
                    "addressRegion": "IL",
                    "postalCode": "62704",
                    "addressCountry": {"@type": "Country", "name": "US"},
                },
            },
        ],
    }) + "</head><body></body></html>"

    info = run(CompanyInfoService(http, speculative=False).extract(HtmlDocument(html, BASE), BASE))

    assert info.name == "Acme Corp"
    assert info.founded_year == 2005
    assert info.address == "1 Main St, Springfield, IL, 62704, US"


def test_secondary_pages_merge_in_fixed_order(make_http, run):
    http, _ = make_http({
        "GET https://acme.io/about": ok(ABOUT_PAGE),
        "GET https://acme.io/contact": ok(CONTACT_PAGE),
        "GET https://acme.io/team": ok(TEAM_PAGE),
    })
    doc = HtmlDocument(
        '<a href="/about">About</a><a href="/contact">Contact</a><a href="/team">Team</a>', BASE
    )

    info = run(CompanyInfoService(http, speculative=False).extract(doc, BASE))

    assert info.name == "Acme Corporation"
    assert info.description.startswith("Acme Corporation builds")
    assert info.founded_year == 1999
    assert info.industry == "Industrial widgets"
    # about page is merged before the contact page
    assert info.email == "about@acme.io"
    assert info.phone == "+1 (555) 123-4567"
    assert info.address == "1 Infinite Loop, Cupertino, CA 95014"
    assert info.employees == "~3"


def test_failed_secondary_page_is_ignored(make_http, run):
    http, _ = make_http({
        "GET https://acme.io/about": status(500),
        "GET https://acme.io/contact": ok(CONTACT_PAGE),
    })
    doc = HtmlDocument('<a href="/about">About</a><a href="/contact">Contact</a>', BASE)

    info = run(CompanyInfoService(http, speculative=False).extract(doc, BASE))

    assert info.email == "contact@acme.io"
    assert info.name is None


def test_same_url_is_fetched_once(make_http, run):
    http, session = make_http({"GET https://acme.io/about/team": ok(TEAM_PAGE)})
    doc = HtmlDocument('<a href="/about/team">Our team</a>', BASE)

    info = run(CompanyInfoService(http, speculative=False).extract(doc, BASE))

    assert session.calls.count("GET https://acme.io/about/team") == 1
    # the page was only merged in its first role
    assert info.employees is None


def test_speculative_probing_fills_missing_roles(make_http, run):
    http, session = make_http({
        "HEAD https://acme.io/about-us": ok(),
        "GET https://acme.io/about-us": ok(ABOUT_PAGE),
        "HEAD https://acme.io/contact": status(405),
        "GET https://acme.io/contact": ok(CONTACT_PAGE),
    })
    doc = HtmlDocument("<p>Nothing linked</p>", BASE)

    info = run(CompanyInfoService(http, speculative=True).extract(doc, BASE))

    assert info.name == "Acme Corporation"
    assert info.address == "1 Infinite Loop, Cupertino, CA 95014"
    # only the missing about/contact/team roles are probed
    assert not any("/careers" in call or "/pricing" in call for call in session.calls)
    # about variants are tried in order and stop at the first hit
    calls = session.calls
    assert calls.index("HEAD https://acme.io/about") < calls.index("HEAD https://acme.io/about-us")
    assert "HEAD https://acme.io/company" not in calls


def test_find_speculative_paths_for_one_category(make_http, run):
    http, _ = make_http({"HEAD https://acme.io/plans": ok()})
    found = run(find_speculative_paths("https://acme.io/some/page", http, ["pricing"]))
    assert found == {"pricing": "https://acme.io/plans"}


def test_find_speculative_paths_none_found(make_http, run):
    http, _ = make_http()
    assert run(find_speculative_paths(BASE, http, ["blog"])) == {}


# --- Score ---

def test_company_score_counts_filled_fields():
    score = calculate_company_info_score(CompanyInfo(name="Acme", email="info@acme.io"))
    assert score.completeness == 22
    assert score.missing_fields == [
        "description", "phone", "address", "socialMedia", "foundedYear", "industry", "employees",
    ]


def test_company_score_full_and_empty():
    full = CompanyInfo(
        name="Acme", description="d", email="e@acme.io", phone="1", address="a",
        social_media={"github": "https://github.com/acme"}, founded_year=1999,
        industry="widgets", employees="~3",
    )
    assert calculate_company_info_score(full).completeness == 100
    assert calculate_company_info_score(CompanyInfo()).completeness == 0
