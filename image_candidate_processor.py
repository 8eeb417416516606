"""
Module: image_candidate_processor.py

Scores the merged candidate pool and ranks it. Every term is computed
independently and summed; prominence terms are relative to the whole pool.
"""

from Logging import default_trace
from image_heuristics import DEFAULT_TABLES
from image_utils import filename_of
from models import ImageFormat, Origin, ScoredCandidate, Zone

IDEAL_ASPECT_RATIO = 1.91
AREA_DIVISOR = 2000
MAX_AREA_SCORE = 1000
MAX_ASPECT_SCORE = 1000
ASPECT_PENALTY_PER_UNIT = 500

FORMAT_SCORES = {
    ImageFormat.SVG: 2000,
    ImageFormat.PNG: 1000,
    ImageFormat.JPG: 500,
}

ZONE_SCORES = {
    Zone.ARTICLE: 3000,
    Zone.CONTENT: 2000,
    Zone.NONE: 0,
}

ORIGIN_SCORES = {
    Origin.DOMAIN_MATCH: 200,
    Origin.DECLARED_PREVIEW: 0,
    Origin.PAGE_SCAN: 0,
}

NON_EDITORIAL_PENALTY = -2000
UI_ELEMENT_PENALTY = -1000
SECTION_BRANDING_PENALTY = -1500

MINIMAL_POOL_SIZE = 3
MINIMAL_POOL_BONUS = 1500
LARGEST_IMAGE_BONUS = 300


def area_score(candidate):
    return min(candidate.area / AREA_DIVISOR, MAX_AREA_SCORE)


def aspect_score(candidate):
    aspect_diff = abs(candidate.aspect_ratio - IDEAL_ASPECT_RATIO)
    return max(0, MAX_ASPECT_SCORE - aspect_diff * ASPECT_PENALTY_PER_UNIT)


def filename_penalty(candidate, tables=DEFAULT_TABLES):
    """At most one penalty, checked in priority order. Declared previews are exempt."""
    if candidate.origin is Origin.DECLARED_PREVIEW or candidate.is_data_url:
        return 0, None
    full_path = candidate.source.lower()
    filename = filename_of(full_path)
    if tables.non_editorial_re.search(filename):
        return NON_EDITORIAL_PENALTY, "non-editorial image"
    if tables.ui_element_re.search(filename):
        return UI_ELEMENT_PENALTY, "UI element"
    if tables.section_branding_re.search(full_path):
        return SECTION_BRANDING_PENALTY, "section branding path"
    return 0, None


def prominence_score(candidate, pool):
    score = 0
    if not pool:
        return score
    if len(pool) <= MINIMAL_POOL_SIZE:
        score += MINIMAL_POOL_BONUS
    if candidate.area == max(c.area for c in pool):
        score += LARGEST_IMAGE_BONUS
    return score


def score_candidate(candidate, pool, tables=DEFAULT_TABLES, trace=None):
    """
    Score one candidate against the full merged pool for its tier.

    Returns a ScoredCandidate carrying the per-term breakdown.
    """
    trace = trace or default_trace

    penalty, penalty_reason = filename_penalty(candidate, tables)
    terms = {
        'area': area_score(candidate),
        'aspect': aspect_score(candidate),
        'format': FORMAT_SCORES[candidate.format],
        'location': ZONE_SCORES[candidate.zone],
        'source': ORIGIN_SCORES[candidate.origin],
        'prominence': prominence_score(candidate, pool),
        'semantic': penalty,
    }
    total = sum(terms.values())

    if penalty_reason:
        trace(f"    - Semantic penalty: {penalty_reason} ({candidate.short_name()[:30]})")
    trace(f"    Scoring {candidate.short_name()}: area={terms['area']:.0f}, aspect={terms['aspect']:.0f}, "
          f"format={terms['format']}, location={terms['location']}, source={terms['source']}, "
          f"prominence={terms['prominence']}, semantic={terms['semantic']} -> TOTAL={total:.0f}")
    return ScoredCandidate(candidate=candidate, score=total, terms=terms)


def rank_candidates(pool, tables=DEFAULT_TABLES, trace=None):
    """
    Score every member against the full pool and sort by score, highest
    first. The sort is stable, so the first-inserted candidate wins ties.
    """
    scored = [score_candidate(candidate, pool, tables, trace) for candidate in pool]
    scored.sort(key=lambda item: item.score, reverse=True)
    return scored
