"""
Module: page_fetch.py

Fetches the requested page (following meta-refresh redirects) and extracts
the card's title, description and declared preview image.
"""

import re
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from Logging import g_logger
from app_config import DEFAULT_MAX_DESCRIPTION_LENGTH, DEFAULT_PAGE_TIMEOUT
from models import PageFetchError

PAGE_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (compatible; OG Card Generator)',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
}
MAX_META_REFRESH = 2
SCHEME_RE = re.compile(r'^https?://', re.IGNORECASE)


def normalize_url(raw_url):
    """Trim and add https:// to bare domains."""
    url = raw_url.strip()
    if SCHEME_RE.match(url):
        return url
    return 'https://' + url


def _status_message(status_code):
    if status_code == 404:
        return '404: Page not found'
    if status_code == 403:
        return '403: Access denied'
    if status_code >= 500:
        return f'{status_code}: Server error'
    return f'{status_code}: Invalid response'


def _meta_refresh_target(soup, base_url):
    meta_refresh = soup.find('meta', attrs={'http-equiv': lambda x: x and x.lower() == 'refresh'})
    if not meta_refresh:
        return None
    for part in meta_refresh.get('content', '').split(';'):
        part = part.strip()
        if part.lower().startswith('url='):
            target = part[4:].strip().strip('\'"')
            if target:
                return urljoin(base_url, target)
    return None


def fetch_page(url, timeout=DEFAULT_PAGE_TIMEOUT, session=None):
    """
    GET the page and follow up to MAX_META_REFRESH meta-refresh hops.

    Returns (final_url, html). Raises PageFetchError with a user-facing
    message on timeouts, network errors and non-2xx responses.
    """
    http = session or requests
    for _ in range(MAX_META_REFRESH + 1):
        try:
            response = http.get(url, headers=PAGE_HEADERS, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise PageFetchError(url, 'Request timed out') from e
        except requests.exceptions.RequestException as e:
            raise PageFetchError(url, 'Network error - check connection') from e

        if not response.ok:
            raise PageFetchError(url, _status_message(response.status_code), response.status_code)

        html = response.text
        final_url = response.url or url
        target = _meta_refresh_target(BeautifulSoup(html, 'html.parser'), final_url)
        if not target or target == final_url:
            return final_url, html
        g_logger.info(f"Following meta refresh from {final_url} to {target}")
        url = target

    g_logger.warning(f"Too many meta refresh redirects, using last page {url}")
    return final_url, html


def _meta_content(document, **attrs):
    tag = document.find('meta', attrs=attrs)
    if tag and tag.get('content'):
        return tag['content'].strip()
    return None


def extract_metadata(document, max_description_length=DEFAULT_MAX_DESCRIPTION_LENGTH):
    """
    Title, description and declared preview image from a parsed page.

    og:title/og:description win over <title> and meta description; the
    description is truncated with '...'.
    """
    title = _meta_content(document, property='og:title')
    if title is None:
        title_tag = document.find('title')
        title = title_tag.get_text().strip() if title_tag else ''

    description = _meta_content(document, property='og:description')
    if description is None:
        description = _meta_content(document, name='description') or ''
    if len(description) > max_description_length:
        description = description[:max_description_length] + '...'

    preview = _meta_content(document, property='og:image')
    return {
        'title': title,
        'description': description,
        'declared_preview': preview,
    }
