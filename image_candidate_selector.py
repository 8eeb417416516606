"""
Module: image_candidate_selector.py

Selection orchestrator. Runs the domain-match and page scanners through five
progressively relaxed size tiers, stops at the first tier that yields any
candidate, adds the page's declared preview image, then scores the merged
pool and returns the winner.
"""

import asyncio

from Logging import default_trace, g_logger
from image_candidate_processor import rank_candidates
from image_domain_matcher import scan_by_domain
from image_heuristics import DEFAULT_TABLES
from image_html_parser import scan_page
from image_utils import require_page_url, to_absolute_url
from image_validator import DEFAULT_MIN_HEIGHT, DEFAULT_MIN_WIDTH, LOAD_TIMEOUT_SECONDS, validate
from models import Origin, RelaxationTier, SelectionResult, Zone

# The strict/lenient wording is historical. Only the page scanner filters by
# keyword, and it applies the same rule in every tier.
QUALITY_TIERS = (
    RelaxationTier(400, 200, 'Pass 1: Ideal Content (400x200, strict)'),
    RelaxationTier(400, 200, 'Pass 2: Brand Images (400x200, lenient)'),
    RelaxationTier(200, 80, 'Pass 3: Minimal Sites (200x80)'),
    RelaxationTier(100, 50, 'Pass 4: Last Resort (100x50)'),
    RelaxationTier(0, 0, 'Pass 5: Any Size'),
)


async def validate_declared_preview(preview_url, page_url, *, loader=None,
                                    timeout=LOAD_TIMEOUT_SECONDS, trace=None):
    """Validate the page's own preview image against the unrelaxed thresholds."""
    trace = trace or default_trace
    src = to_absolute_url(preview_url, page_url)
    if not src:
        trace(f"  - OG image URL could not be resolved: {preview_url}")
        return None
    trace(f"[INFO] Evaluating OG:image: {src.split('/')[-1][:60]}")
    candidate = await validate(src, DEFAULT_MIN_WIDTH, DEFAULT_MIN_HEIGHT,
                               origin=Origin.DECLARED_PREVIEW, zone=Zone.NONE,
                               loader=loader, timeout=timeout, trace=trace)
    if candidate:
        trace("  + OG image is valid candidate")
    else:
        trace("  - OG image failed validation")
    return candidate


async def select_best_image(document, page_url, declared_preview=None, *,
                            tiers=QUALITY_TIERS, tables=DEFAULT_TABLES,
                            loader=None, timeout=LOAD_TIMEOUT_SECONDS, trace=None):
    """
    Find the single best illustrative image on a page.

    Returns a SelectionResult; `winner` is None when every tier came up
    empty and the caller should fall back to a generated card. Raises
    InvalidPageUrlError for an unparseable page URL.
    """
    trace = trace or default_trace
    require_page_url(page_url)

    pool = []
    stopping_tier = None
    for tier in tiers:
        trace(f"[INFO] Trying {tier.label} threshold...")

        domain_matches = await scan_by_domain(document, page_url, tier.min_width, tier.min_height,
                                              loader=loader, timeout=timeout, trace=trace)
        pool.extend(domain_matches)

        page_matches = await scan_page(document, page_url, tier.min_width, tier.min_height,
                                       tables=tables, loader=loader, timeout=timeout, trace=trace)
        pool.extend(page_matches)

        if pool:
            stopping_tier = tier
            g_logger.info(f"Found {len(pool)} candidates at {tier.label}")
            break

    if declared_preview:
        preview = await validate_declared_preview(declared_preview, page_url, loader=loader,
                                                  timeout=timeout, trace=trace)
        if preview is not None:
            pool.append(preview)

    if not pool:
        g_logger.info(f"No valid images found on {page_url} after all tiers")
        return SelectionResult(winner=None, tier=None, ranked=[])

    trace(f"[INFO] Scoring {len(pool)} total candidates:")
    ranked = rank_candidates(pool, tables, trace)
    best = ranked[0]
    g_logger.info(f"WINNER: {best.candidate.short_name()} ({best.candidate.origin.value}, score: {best.score:.0f})")
    return SelectionResult(winner=best, tier=stopping_tier, ranked=ranked)


def select_best_image_sync(document, page_url, declared_preview=None, **kwargs):
    """Blocking wrapper around select_best_image for non-async callers."""
    return asyncio.run(select_best_image(document, page_url, declared_preview, **kwargs))
