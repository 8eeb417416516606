"""
test_image_domain_matcher.py

Tests for domain token extraction and filename matching.
"""

import asyncio
import os
import sys

import pytest

# Add the parent directory to Python path when running tests directly
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_domain_matcher import domain_token, scan_by_domain
from image_html_parser import parse_document
from models import InvalidPageUrlError, Origin, Zone


def test_domain_token_strips_www_and_tld():
    assert domain_token('https://www.Example.com/story') == 'example'


def test_domain_token_keeps_subdomains():
    assert domain_token('https://blog.example.co.uk/') == 'blog.example.co'


def test_domain_token_rejects_bad_url():
    with pytest.raises(InvalidPageUrlError):
        domain_token('no-scheme.com')


def test_matches_any_prefix_and_validates_once():
    html = ('<img src="/img/examplebrand-hero.jpg">'
            '<img src="/img/exa-banner.jpg">'
            '<img src="/img/unrelated.jpg">')
    calls = []

    def loader(source):
        calls.append(source)
        return 800, 400

    document = parse_document(html)
    matches = asyncio.run(scan_by_domain(document, 'https://www.example.com/', 400, 200, loader=loader))

    assert [m.source for m in matches] == [
        'https://www.example.com/img/examplebrand-hero.jpg',
        'https://www.example.com/img/exa-banner.jpg',
    ]
    assert all(m.origin is Origin.DOMAIN_MATCH and m.zone is Zone.NONE for m in matches)
    assert len(calls) == len(set(calls)) == 2


def test_short_domain_matches_nothing():
    document = parse_document('<img src="/ab.jpg">')
    assert asyncio.run(scan_by_domain(document, 'https://ab.io/', 0, 0, loader=lambda s: (800, 400))) == []


def test_inline_images_are_not_matched():
    document = parse_document('<img src="data:image/png;base64,example">')
    assert asyncio.run(scan_by_domain(document, 'https://example.com/', 0, 0, loader=lambda s: (800, 400))) == []


def test_undersized_match_is_dropped():
    document = parse_document('<img src="/example-small.png">')
    matches = asyncio.run(scan_by_domain(document, 'https://example.com/', 400, 200, loader=lambda s: (120, 60)))
    assert matches == []
