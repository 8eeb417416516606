"""
test_image_candidate_selector.py

Tests for the tiered selection orchestrator.
"""

import asyncio
import os
import struct
import sys
import zlib
from io import BytesIO
from unittest import mock

import pytest
from PIL import Image

# Add the parent directory to Python path when running tests directly
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_candidate_selector import QUALITY_TIERS, select_best_image, select_best_image_sync
from image_html_parser import parse_document
from models import InvalidPageUrlError, Origin, Zone

PAGE = 'https://example.com/2024/05/story'
BASE = 'https://example.com'


def dict_loader(sizes):
    return lambda source: sizes.get(source)


def select(html, sizes, declared_preview=None, page_url=PAGE, **kwargs):
    document = parse_document(html)
    return asyncio.run(select_best_image(document, page_url, declared_preview,
                                         loader=dict_loader(sizes), trace=lambda line: None, **kwargs))


def test_tiers_relax_monotonically():
    for looser, stricter in zip(QUALITY_TIERS[1:], QUALITY_TIERS):
        assert looser.min_width <= stricter.min_width
        assert looser.min_height <= stricter.min_height
    assert QUALITY_TIERS[-1][:2] == (0, 0)


def test_small_image_is_found_at_last_resort_tier():
    result = select('<img src="/photo.jpg">', {f'{BASE}/photo.jpg': (150, 90)})
    assert result.found
    assert result.winner.source == f'{BASE}/photo.jpg'
    assert result.tier == QUALITY_TIERS[3]


def test_any_size_tier_accepts_tiny_images():
    result = select('<img src="/photo.jpg">', {f'{BASE}/photo.jpg': (40, 30)})
    assert result.tier == QUALITY_TIERS[4]


def test_no_candidates_returns_empty_result():
    result = select('<p>No images</p>', {})
    assert not result.found
    assert result.tier is None
    assert result.ranked == []


def test_end_to_end_hero_image_wins_at_first_tier():
    small = ''.join(f'<img src="/img/thumb-{i}.jpg">' for i in range(4))
    html = (f'<header><img src="/img/masthead.png"></header>{small}'
            '<article><h1>Story</h1><img src="/img/example-hero.jpg"></article>')
    sizes = {f'{BASE}/img/thumb-{i}.jpg': (180, 120) for i in range(4)}
    sizes[f'{BASE}/img/masthead.png'] = (250, 95)
    sizes[f'{BASE}/img/example-hero.jpg'] = (600, 350)

    result = select(html, sizes)

    assert result.winner.source == f'{BASE}/img/example-hero.jpg'
    assert result.winner.candidate.zone is Zone.ARTICLE
    assert result.tier == QUALITY_TIERS[0]
    # Found by both scanners; both entries stay in the pool
    assert {r.candidate.origin for r in result.ranked} == {Origin.PAGE_SCAN, Origin.DOMAIN_MATCH}


def test_declared_preview_joins_pool():
    html = '<img src="/photo.jpg">'
    sizes = {f'{BASE}/photo.jpg': (120, 60), f'{BASE}/og/preview.png': (1200, 630)}
    result = select(html, sizes, declared_preview='/og/preview.png')
    assert result.winner.source == f'{BASE}/og/preview.png'
    assert result.winner.candidate.origin is Origin.DECLARED_PREVIEW
    assert result.tier == QUALITY_TIERS[3]


def test_undersized_declared_preview_is_ignored():
    sizes = {f'{BASE}/og/preview.png': (300, 150)}
    result = select('<p>text</p>', sizes, declared_preview=f'{BASE}/og/preview.png')
    assert not result.found


def test_declared_preview_alone_is_enough():
    sizes = {f'{BASE}/og/preview.png': (1200, 630)}
    result = select('<p>text</p>', sizes, declared_preview=f'{BASE}/og/preview.png')
    assert result.found
    assert result.tier is None


def test_invalid_page_url_raises():
    with pytest.raises(InvalidPageUrlError):
        select('<img src="/a.jpg">', {}, page_url='example.com')


def test_sync_wrapper():
    document = parse_document('<img src="/photo.jpg">')
    result = select_best_image_sync(document, PAGE, loader=dict_loader({f'{BASE}/photo.jpg': (800, 420)}),
                                    trace=lambda line: None)
    assert result.tier == QUALITY_TIERS[0]


def oversized_png_header(width=20000, height=10000):
    """A PNG whose IHDR declares more pixels than Pillow will decode."""
    def chunk(tag, data):
        return struct.pack('>I', len(data)) + tag + data + struct.pack('>I', zlib.crc32(tag + data) & 0xffffffff)

    ihdr = struct.pack('>IIBBBBB', width, height, 8, 2, 0, 0, 0)
    return b'\x89PNG\r\n\x1a\n' + chunk(b'IHDR', ihdr) + chunk(b'IDAT', zlib.compress(b'')) + chunk(b'IEND', b'')


def image_response(content, content_type='image/png'):
    response = mock.Mock(content=content, headers={'Content-Type': content_type})
    response.raise_for_status.return_value = None
    return response


@mock.patch('image_utils.requests.get')
def test_oversized_image_does_not_abort_selection(mock_get):
    good = BytesIO()
    Image.new('RGB', (800, 420), 'blue').save(good, format='PNG')
    responses = {
        f'{BASE}/bomb.png': image_response(oversized_png_header()),
        f'{BASE}/good.jpg': image_response(good.getvalue()),
    }
    mock_get.side_effect = lambda url, **kwargs: responses[url]

    document = parse_document('<img src="/bomb.png"><img src="/good.jpg">')
    result = asyncio.run(select_best_image(document, PAGE, trace=lambda line: None))

    assert result.winner.source == f'{BASE}/good.jpg'
    assert result.tier == QUALITY_TIERS[0]
