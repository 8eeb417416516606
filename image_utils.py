"""
Module: image_utils.py

URL helpers, data-URL decoding, format detection and the default image
dimension loader used by the validator.
"""
import base64
import binascii
import re
import xml.etree.ElementTree as ET
from io import BytesIO
from urllib.parse import urljoin, urlparse, unquote_to_bytes

import requests
from PIL import Image, UnidentifiedImageError

from Logging import g_logger
from models import ImageFormat, InvalidPageUrlError

# === Constants and Configuration ===
HEADERS = {'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:138.0) Gecko/20100101 Firefox/138.0'}
IMAGE_REQUEST_TIMEOUT = 5
MAX_ASPECT_RATIO = 3
BASE64_INFLATION = 1.37  # base64 text is ~1.37x the decoded size
DATA_URL_RE = re.compile(r'^data:([^;,]*)((?:;[^;,]*)*),(.*)$', re.IGNORECASE | re.DOTALL)
SVG_LENGTH_RE = re.compile(r'^\s*(\d+(?:\.\d+)?)')

# === URL Helpers ===

def to_absolute_url(image_src, page_url):
    """
    Resolve an image src against the page URL.

    Handles absolute, protocol-relative (//host/x), root-relative (/x) and
    document-relative forms. Returns None when the result can't be built;
    callers skip the image in that case.
    """
    if not image_src:
        return None
    image_src = image_src.strip()
    if image_src.startswith(('http://', 'https://')):
        return image_src
    try:
        base = urlparse(page_url)
        if not base.scheme or not base.netloc:
            return None
        if image_src.startswith('//'):
            return f"{base.scheme}:{image_src}"
        if image_src.startswith('/'):
            return f"{base.scheme}://{base.netloc}{image_src}"
        return urljoin(page_url, image_src)
    except ValueError as e:
        g_logger.debug(f"Failed to convert relative URL {image_src}: {e}")
        return None


def require_page_url(page_url):
    """Parse the page URL or raise InvalidPageUrlError."""
    try:
        parsed = urlparse(page_url)
    except (TypeError, ValueError) as e:
        raise InvalidPageUrlError(page_url) from e
    if not parsed.scheme or not parsed.hostname:
        raise InvalidPageUrlError(page_url)
    return parsed


def extract_domain(url):
    """Host name of a URL without a leading 'www.'."""
    netloc = urlparse(url).hostname or ''
    if netloc.startswith("www."):
        return netloc[4:]
    return netloc


def is_svg_reference(url):
    lowered = url.lower()
    return lowered.endswith('.svg') or '.svg?' in lowered


def filename_of(url):
    """Last path segment of a URL, lowercased, without the query string."""
    return url.split('/')[-1].split('?')[0].lower()


def detect_format(src):
    if src.startswith('data:'):
        return ImageFormat.PNG if src.lower().startswith('data:image/png') else ImageFormat.JPG
    if is_svg_reference(src):
        return ImageFormat.SVG
    if src.lower().endswith('.png'):
        return ImageFormat.PNG
    return ImageFormat.JPG

# === Data URLs ===

def estimated_data_url_size(src):
    return len(src) / BASE64_INFLATION


def decode_data_url(src):
    """Return (mime, bytes) for a data: URL, or None if it can't be decoded."""
    match = DATA_URL_RE.match(src)
    if not match:
        return None
    mime = match.group(1).lower() or 'text/plain'
    params = match.group(2).lower()
    payload = match.group(3)
    try:
        if ';base64' in params:
            data = base64.b64decode(payload, validate=False)
        else:
            data = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        g_logger.debug(f"Failed to decode data URL: {e}")
        return None
    return mime, data

# === Dimension Loading ===

def _parse_svg_length(value):
    if not value:
        return 0
    match = SVG_LENGTH_RE.match(value)
    return float(match.group(1)) if match else 0


def svg_dimensions(content):
    """Natural size of an SVG document from width/height, then viewBox."""
    try:
        svg = ET.fromstring(content)
    except ET.ParseError as e:
        g_logger.debug(f"Error parsing SVG: {e}")
        return None

    width = _parse_svg_length(svg.attrib.get('width'))
    height = _parse_svg_length(svg.attrib.get('height'))
    if width > 0 and height > 0:
        return int(width), int(height)

    view_box = svg.attrib.get('viewBox')
    if view_box:
        parts = view_box.replace(',', ' ').split()
        if len(parts) == 4:
            try:
                width, height = float(parts[2]), float(parts[3])
            except ValueError:
                width = height = 0
            if width > 0 and height > 0:
                return int(width), int(height)

    # Browsers size an unsized SVG at 300x150
    return 300, 150


def raster_dimensions(content):
    try:
        with Image.open(BytesIO(content)) as img:
            return img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        g_logger.debug(f"Could not identify image data: {e}")
        return None


def _get_image(url, timeout):
    """GET an image with browser headers; the response, or None on any request error."""
    try:
        headers_with_referer = HEADERS.copy()
        headers_with_referer["Referer"] = url
        response = requests.get(url, headers=headers_with_referer, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        g_logger.debug(f"Request error fetching image {url}: {e}")
        return None
    return response


def fetch_image_bytes(url, timeout=IMAGE_REQUEST_TIMEOUT):
    """Encoded bytes of the image at `url`, or None."""
    response = _get_image(url, timeout)
    if response is None or not response.content:
        return None
    return response.content


def load_image_dimensions(source, timeout=IMAGE_REQUEST_TIMEOUT):
    """
    Default loader: natural (width, height) of a URL or raw bytes, or None.

    Network and decode failures are reported as None so one bad image never
    aborts a scan.
    """
    if isinstance(source, (bytes, bytearray)):
        return raster_dimensions(bytes(source))

    response = _get_image(source, timeout)
    if response is None:
        return None

    content_type = response.headers.get('Content-Type', '').lower()
    if 'svg' in content_type or is_svg_reference(source):
        dims = svg_dimensions(response.content)
    else:
        dims = raster_dimensions(response.content)
    if dims and dims[1] > 0:
        g_logger.debug(f"Got actual dimensions for {source}: {dims[0]}x{dims[1]}")
        return dims
    return None
