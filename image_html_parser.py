"""
Module: image_html_parser.py

Page image scanner: walks every <img src> in document order, filters out
chrome and tracking images, tags each survivor with its semantic zone and
validates it against the current tier's thresholds.
"""

from bs4 import BeautifulSoup

from Logging import default_trace
from image_heuristics import DEFAULT_TABLES
from image_utils import (
    decode_data_url,
    estimated_data_url_size,
    filename_of,
    require_page_url,
    to_absolute_url,
)
from image_validator import LOAD_TIMEOUT_SECONDS, validate
from models import Origin, Zone

MINIMAL_SITE_IMAGE_COUNT = 3
MIN_DATA_URL_BYTES = 1000
MAX_PAGE_CANDIDATES = 10
ANCESTOR_DEPTH = 5
DATA_URL_MIMES = ('data:image/png', 'data:image/jpeg')


def parse_document(html):
    """Parse raw HTML into a queryable document."""
    return BeautifulSoup(html, 'html.parser')


def image_elements(document):
    """All <img> tags carrying a src attribute, in document order."""
    return document.select('img[src]')


def is_minimal_site(total_images):
    return total_images <= MINIMAL_SITE_IMAGE_COUNT


def _id_class_text(tag):
    classes = tag.get('class') or []
    if isinstance(classes, str):
        classes = [classes]
    return f"{tag.get('id') or ''} {' '.join(classes)}".lower()


def classify_zone(img, tables=DEFAULT_TABLES):
    """
    Walk up to ANCESTOR_DEPTH ancestors of `img`.

    Returns (excluded, zone, reason). Tag names are checked before id/class
    keywords at every level; article/main overrides a content match found
    lower down, and keyword checks stop once any zone is known.
    """
    zone = Zone.NONE
    parent = img.parent
    depth = 0
    while parent is not None and not isinstance(parent, BeautifulSoup) and depth < ANCESTOR_DEPTH:
        tag_name = (parent.name or '').lower()

        if tag_name in tables.excluded_tags:
            return True, zone, f"in excluded tag <{tag_name}>"

        if tag_name in tables.article_tags:
            zone = Zone.ARTICLE
        elif zone is Zone.NONE:
            id_class = _id_class_text(parent)
            if tables.excluded_zone_re.search(id_class):
                return True, zone, f"in excluded zone (id/class: {id_class.strip()[:30]})"
            if tables.content_zone_re.search(id_class):
                zone = Zone.CONTENT

        parent = parent.parent
        depth += 1
    return False, zone, None


async def scan_page(document, base_url, min_width, min_height, *,
                    tables=DEFAULT_TABLES, loader=None,
                    timeout=LOAD_TIMEOUT_SECONDS, trace=None):
    """
    Return validated page-scan candidates in document order, at most
    MAX_PAGE_CANDIDATES of them.
    """
    trace = trace or default_trace
    require_page_url(base_url)

    images = image_elements(document)
    total_images = len(images)
    minimal = is_minimal_site(total_images)
    candidates = []

    trace(f"[INFO] Found {total_images} total images - "
          f"{'MINIMAL SITE (lenient filtering)' if minimal else 'CONTENT-RICH SITE (strict filtering)'}")

    for img in images:
        src = (img.get('src') or '').strip()
        if not src:
            trace("  - Skipped: no src attribute")
            continue

        trace(f"  > Evaluating: {src.split('/')[-1][:60]}")
        data = None

        if src.startswith('data:'):
            if not minimal:
                trace(f"    - Skipped: data URL (content-rich site, {total_images} images)")
                continue
            if not src.lower().startswith(DATA_URL_MIMES):
                trace("    - Skipped: data URL (not PNG/JPEG)")
                continue
            estimated_size = estimated_data_url_size(src)
            if estimated_size < MIN_DATA_URL_BYTES:
                trace(f"    - Skipped: data URL too small (~{round(estimated_size)} bytes)")
                continue
            decoded = decode_data_url(src)
            if not decoded:
                trace("    - Skipped: failed to decode data URL")
                continue
            data = decoded[1]
        else:
            src = to_absolute_url(src, base_url)
            if not src:
                trace("    - Skipped: failed URL conversion")
                continue

        filename = filename_of(src)
        if not minimal and tables.has_excluded_keyword(filename):
            trace(f"    - Skipped: keyword excluded ({filename[:60]})")
            continue

        excluded, zone, reason = classify_zone(img, tables)
        if excluded:
            trace(f"    - Skipped: {reason}")
            continue

        candidate = await validate(src, min_width, min_height,
                                   origin=Origin.PAGE_SCAN, zone=zone, data=data,
                                   loader=loader, timeout=timeout, trace=trace)
        if candidate is None:
            continue

        trace("    + VALID CANDIDATE! Adding to list.")
        candidates.append(candidate)
        if len(candidates) >= MAX_PAGE_CANDIDATES:
            break

    if candidates:
        trace(f"[OK] Found {len(candidates)} page scan candidates")
    else:
        trace("[FAIL] No valid page images found")
    return candidates
