"""
Module: image_domain_matcher.py

Domain-match scanner: finds images whose filename contains a prefix of the
page's bare domain name (e.g. "example-hero.jpg" on example.com).
"""

import re

from Logging import default_trace
from image_html_parser import image_elements
from image_utils import filename_of, require_page_url, to_absolute_url
from image_validator import LOAD_TIMEOUT_SECONDS, validate
from models import Origin, Zone

MIN_DOMAIN_TOKEN_LENGTH = 3
TLD_RE = re.compile(r'\.[a-z]{2,}$', re.IGNORECASE)


def domain_token(page_url):
    """
    Bare domain name used for matching: host without 'www.' and without its
    final TLD label, lowercased. Raises InvalidPageUrlError for bad URLs.
    """
    host = require_page_url(page_url).hostname or ''
    if host.startswith('www.'):
        host = host[4:]
    return TLD_RE.sub('', host).lower()


async def scan_by_domain(document, page_url, min_width, min_height, *,
                         loader=None, timeout=LOAD_TIMEOUT_SECONDS, trace=None):
    """
    Union over prefix lengths 3..N of images whose filename contains the
    domain prefix, deduplicated by resolved URL and validated once each.
    """
    trace = trace or default_trace

    token = domain_token(page_url)
    trace(f"[INFO] Domain matching: extracted domain \"{token}\" from {page_url}")
    if len(token) < MIN_DOMAIN_TOKEN_LENGTH:
        trace(f"[FAIL] Domain too short ({len(token)} chars)")
        return []

    sources = []
    for img in image_elements(document):
        src = (img.get('src') or '').strip()
        # Inline images have no filename to match against
        if not src or src.startswith('data:'):
            continue
        src = to_absolute_url(src, page_url)
        if src:
            sources.append(src)
    trace(f"[INFO] Found {len(sources)} linked images on page")

    examined = set()
    matches = []
    for prefix_len in range(MIN_DOMAIN_TOKEN_LENGTH, len(token) + 1):
        prefix = token[:prefix_len]
        trace(f"[INFO] Trying prefix: \"{prefix}\"")

        for src in sources:
            if src in examined:
                continue
            filename = filename_of(src)
            if prefix not in filename:
                continue

            examined.add(src)
            trace(f"  + Match found: {filename[:50]}")
            candidate = await validate(src, min_width, min_height,
                                       origin=Origin.DOMAIN_MATCH, zone=Zone.NONE,
                                       loader=loader, timeout=timeout, trace=trace)
            if candidate is not None:
                matches.append(candidate)

    if matches:
        trace(f"[OK] Found {len(matches)} domain-matched candidates")
    else:
        trace("[FAIL] No domain matches found")
    return matches
