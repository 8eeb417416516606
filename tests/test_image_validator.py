"""
test_image_validator.py

Tests for size/aspect validation and the load timeout.
"""

import asyncio
import os
import sys
import time

import pytest

# Add the parent directory to Python path when running tests directly
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_validator import rejection_reason, validate
from models import ImageFormat, Origin, Zone

SRC = 'https://example.com/photo.png'


def fixed_loader(width, height):
    return lambda source: (width, height)


@pytest.mark.parametrize('width,height', [(903, 300), (300, 938)])
def test_rejects_extreme_aspect_ratios(width, height):
    # 3.01:1 and 0.32:1
    assert asyncio.run(validate(SRC, 0, 0, loader=fixed_loader(width, height))) is None


@pytest.mark.parametrize('width,height', [(870, 300), (350, 1000)])
def test_accepts_aspect_ratios_inside_bounds(width, height):
    # 2.9:1 and 0.35:1
    candidate = asyncio.run(validate(SRC, 0, 0, loader=fixed_loader(width, height)))
    assert candidate is not None
    assert (candidate.width, candidate.height) == (width, height)


def test_exact_three_to_one_is_accepted():
    assert rejection_reason(900, 300, 0, 0) is None


def test_too_small_is_rejected():
    assert 'too small' in rejection_reason(399, 300, 400, 200)
    assert asyncio.run(validate(SRC, 400, 200, loader=fixed_loader(399, 300))) is None


def test_zero_height_is_rejected():
    assert rejection_reason(100, 0, 0, 0) == 'no height'


def test_failed_load_is_rejected():
    assert asyncio.run(validate(SRC, 0, 0, loader=lambda source: None)) is None


def test_candidate_carries_origin_zone_and_format():
    candidate = asyncio.run(validate(SRC, 400, 200, origin=Origin.DOMAIN_MATCH, zone=Zone.ARTICLE,
                                     loader=fixed_loader(800, 400)))
    assert candidate.origin is Origin.DOMAIN_MATCH
    assert candidate.zone is Zone.ARTICLE
    assert candidate.format is ImageFormat.PNG


def test_slow_load_times_out():
    def slow_loader(source):
        time.sleep(0.5)
        return 800, 400

    assert asyncio.run(validate(SRC, 0, 0, loader=slow_loader, timeout=0.05)) is None


def test_trace_lines_are_emitted():
    lines = []
    asyncio.run(validate(SRC, 400, 200, loader=fixed_loader(100, 100), trace=lines.append))
    assert any('Skipped' in line for line in lines)
