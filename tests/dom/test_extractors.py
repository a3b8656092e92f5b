# tests/dom/test_extractors.py
import re

import pytest

from site_auditor.dom.extractors import (
    clean_text,
    extract_address,
    extract_emails,
    extract_phones,
    extract_social_links,
    extract_year,
    find_about_page,
    find_contact_page,
    find_team_page,
)
from site_auditor.dom.html_document import HtmlDocument


# --- Emails ---

def test_extract_emails_filters_and_prioritises():
    text = (
        "Contact: John@Acme.io, info@acme.io, noreply@acme.io, someone@gmail.com, "
        "logo@2x.png, sales [at] acme [dot] io, test@example.com"
    )
    assert extract_emails(text) == ["info@acme.io", "sales@acme.io", "john@acme.io", "noreply@acme.io"]


@pytest.mark.parametrize("text", [
    "icon@sprite.svg styles@main.css app@bundle.js photo@header.jpg anim@loader.gif",
    "a@gmail.com b@yahoo.co.uk c@hotmail.fr d@outlook.com e@aol.com",
])
def test_extract_emails_never_returns_assets_or_personal_mail(text):
    assert extract_emails(text) == []


def test_extract_emails_deduplicates():
    assert extract_emails("info@acme.io INFO@ACME.IO info@acme.io") == ["info@acme.io"]


def test_extract_emails_empty():
    assert extract_emails("") == []


# --- Phones ---

def test_extract_phones_finds_formatted_numbers():
    phones = extract_phones("Call us: +1 (555) 123-4567 today")
    assert phones
    assert phones[0] == "+1 (555) 123-4567"


def test_extract_phones_rejects_noise():
    text = "Fax 0000000000. Order 2024-01-15. Ref 12345. ISBN 978-3-16-148410-0"
    for phone in extract_phones(text):
        digits = re.sub(r"\D", "", phone)
        assert 10 <= len(digits) <= 15
        assert not re.search(r"(\d)\1{7,}", digits)


def test_extract_phones_caps_results():
    text = " ".join(f"+44 20 7946 0{i:03d}" for i in range(12))
    assert len(extract_phones(text)) <= 5


def test_extract_phones_digit_bounds():
    text = "Numbers: 555-1234, 020 7946 0958, +33 1 42 68 53 00, 1234567890123456789"
    for phone in extract_phones(text):
        assert 10 <= len(re.sub(r"\D", "", phone)) <= 15


# --- Social links ---

SOCIAL_PAGE = """
<a href="https://www.facebook.com/sharer/sharer.php?u=x">share</a>
<a href="https://notfacebook.com/acme">fake</a>
<a href="https://www.facebook.com/acme">fb</a>
<a href="https://twitter.com/intent/tweet?text=x">tweet</a>
<a href="https://dropbox.com/s/abc">files</a>
<a href="https://x.com/acme">x</a>
<a href="//linkedin.com/company/acme">in</a>
<a href="https://discord.com/channels/1">channel</a>
<a href="https://discord.gg/abc">discord</a>
"""


def test_extract_social_links():
    social = extract_social_links(HtmlDocument(SOCIAL_PAGE))
    assert social == {
        "facebook": "https://www.facebook.com/acme",
        "twitter": "https://x.com/acme",
        "linkedin": "https://linkedin.com/company/acme",
        "discord": "https://discord.gg/abc",
    }


# --- Text helpers ---

def test_clean_text():
    assert clean_text("  a \n\t b  ") == "a b"
    assert clean_text(None) == ""


@pytest.mark.parametrize("text, expected", [
    ("Founded 1887 and re-launched in 2019", 2019),
    ("Since 1999", 1999),
    ("Plans for 2051", None),
    ("", None),
])
def test_extract_year(text, expected):
    assert extract_year(text) == expected


# --- Addresses ---

def test_extract_address_from_markup():
    doc = HtmlDocument('<div itemprop="address">12 Main Street, Springfield, IL 62704</div>')
    assert extract_address(doc) == "12 Main Street, Springfield, IL 62704"


def test_extract_address_from_text():
    doc = HtmlDocument("<p>Visit us at 123 Main Street, Springfield, IL 62704 today.</p>")
    assert extract_address(doc) == "123 Main Street, Springfield, IL 62704"


def test_extract_address_french_format():
    doc = HtmlDocument("<p>Nos bureaux : 12 rue de la Paix, 75002 Paris</p>")
    assert extract_address(doc) == "12 rue de la Paix, 75002 Paris"


def test_extract_address_none():
    assert extract_address(HtmlDocument("<p>No location given.</p>")) is None


# --- Secondary pages ---

def test_find_secondary_pages_on_same_site_only():
    doc = HtmlDocument("""
        <a href="/about-us">About</a>
        <a href="https://other.com/contact">Partner</a>
        <a href="/contact">Contact</a>
        <a href="/team#x">Team</a>
    """)
    base = "https://www.acme.io/"
    assert find_about_page(doc, base) == "https://www.acme.io/about-us"
    assert find_contact_page(doc, base) == "https://www.acme.io/contact"
    assert find_team_page(doc, base) == "https://www.acme.io/team"


def test_find_page_returns_none_without_links():
    assert find_about_page(HtmlDocument("<p>nothing</p>"), "https://acme.io/") is None
