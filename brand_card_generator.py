"""
Module: brand_card_generator.py

Favicon brand cards: fetch a site's icon, separate its background color
(edge histogram) from its logo color (quantized center histogram), and
center the icon on a 1200x630 canvas filled with the background color.

The card is returned without a border; callers apply the full-size and
thumbnail mat borders independently using the returned border color.
"""

import random
from collections import Counter
from io import BytesIO

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from Logging import default_trace, g_logger
from border_renderer import SIMILAR_COLOR_THRESHOLD, border_color_for
from color_utils import hex_to_rgb, rgb_to_hex
from image_utils import HEADERS
from models import BrandCard, BrandPalette

FAVICON_SERVICE_URL = ("https://t0.gstatic.com/faviconV2?client=SOCIAL&type=FAVICON"
                       "&fallback_opts=TYPE,SIZE,URL&url=http://{domain}&size={size}")
FAVICON_SIZE = 256
FAVICON_TIMEOUT = 10

CARD_WIDTH = 1200
CARD_HEIGHT = 630
ICON_FILL_RATIO = 0.65

OPAQUE_ALPHA = 200  # ~78% opacity
QUANTIZE_STEP = 32
CENTER_SAMPLE_STRIDE = 4
DEFAULT_COLOR = '#ffffff'


def favicon_url(domain, size=FAVICON_SIZE):
    return FAVICON_SERVICE_URL.format(domain=domain, size=size)


def fetch_favicon(domain, timeout=FAVICON_TIMEOUT, trace=None):
    """Download and decode the site icon. None on any HTTP, network or decode failure."""
    trace = trace or default_trace
    url = favicon_url(domain)
    trace(f"Fetching favicon for {domain}")
    try:
        response = requests.get(url, headers=HEADERS, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        g_logger.warning(f"Favicon fetch failed for {domain}: {e}")
        return None

    try:
        icon = Image.open(BytesIO(response.content))
        icon.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        g_logger.warning(f"Favicon for {domain} could not be decoded: {e}")
        return None
    return icon.convert('RGBA')


def _edge_sample_positions(width, height):
    """Four corners and four edge midpoints."""
    return [
        (0, 0), (width - 1, 0),
        (0, height - 1), (width - 1, height - 1),
        (width // 2, 0),
        (width // 2, height - 1),
        (0, height // 2),
        (width - 1, height // 2),
    ]


def _dominant(counter, rng=None):
    """Most frequent key; first inserted wins ties unless `rng` picks at random."""
    if not counter:
        return None
    max_frequency = max(counter.values())
    tied = [color for color, count in counter.items() if count == max_frequency]
    if rng is not None:
        return rng.choice(tied)
    return tied[0]


def sample_background_color(pixels, trace=None):
    """Exact-hex histogram over the eight edge samples with alpha above OPAQUE_ALPHA."""
    trace = trace or default_trace
    height, width = pixels.shape[:2]
    frequency = Counter()
    for x, y in _edge_sample_positions(width, height):
        r, g, b, a = (int(v) for v in pixels[y, x])
        if a > OPAQUE_ALPHA:
            frequency[rgb_to_hex(r, g, b)] += 1

    background = _dominant(frequency) or DEFAULT_COLOR
    if frequency:
        trace(f"Background sampling: {len(frequency)} unique colors found, dominant: {background} "
              f"({frequency[background]}/8 samples)")
    return background


def sample_logo_color(pixels, background_color, rng=None, trace=None):
    """
    Quantized histogram over every 4th pixel of the central 50% x 50% region,
    ignoring transparent pixels and pixels close to the background.
    """
    trace = trace or default_trace
    height, width = pixels.shape[:2]
    left, top = int(width * 0.25), int(height * 0.25)
    region = pixels[top:top + int(height * 0.5), left:left + int(width * 0.5)]
    samples = region.reshape(-1, 4)[::CENTER_SAMPLE_STRIDE].astype(int)

    samples = samples[samples[:, 3] > OPAQUE_ALPHA]
    background_rgb = np.array(hex_to_rgb(background_color))
    distance = np.abs(samples[:, :3] - background_rgb).sum(axis=1)
    samples = samples[distance >= SIMILAR_COLOR_THRESHOLD]

    # Round half up to the nearest step, clamped to 255
    quantized = np.minimum(255, np.floor(samples[:, :3] / QUANTIZE_STEP + 0.5) * QUANTIZE_STEP).astype(int)
    frequency = Counter(rgb_to_hex(r, g, b) for r, g, b in quantized)

    logo = _dominant(frequency, rng) or DEFAULT_COLOR
    if frequency:
        trace(f"Background: {background_color}, Logo: {logo} ({frequency[logo]} samples)")
    else:
        trace(f"Background: {background_color}, Logo: {logo} (no opaque center pixels)")
    return logo


def analyze_logo_colors(icon, random_tie_break=False, rng=None, trace=None):
    """
    Derive the brand palette of an icon image.

    With `random_tie_break`, logo-color ties are broken uniformly at random
    (using `rng` if given); otherwise the first-seen color wins.
    """
    pixels = np.asarray(icon.convert('RGBA'))
    if pixels.size == 0:
        return BrandPalette(DEFAULT_COLOR, DEFAULT_COLOR, border_color_for(DEFAULT_COLOR, DEFAULT_COLOR))

    if random_tie_break and rng is None:
        rng = random.Random()
    elif not random_tie_break:
        rng = None

    background = sample_background_color(pixels, trace)
    logo = sample_logo_color(pixels, background, rng, trace)
    return BrandPalette(
        background_color=background,
        logo_color=logo,
        border_color=border_color_for(background, logo),
    )


def compose_brand_card(icon, background_color):
    """Center `icon`, scaled to fit 65% of each card dimension, on the background."""
    canvas = Image.new('RGB', (CARD_WIDTH, CARD_HEIGHT), background_color)
    icon = icon.convert('RGBA')
    scale = min(CARD_WIDTH * ICON_FILL_RATIO / icon.width, CARD_HEIGHT * ICON_FILL_RATIO / icon.height)
    draw_width = max(1, round(icon.width * scale))
    draw_height = max(1, round(icon.height * scale))
    scaled = icon.resize((draw_width, draw_height), Image.Resampling.LANCZOS)
    x = (CARD_WIDTH - draw_width) // 2
    y = (CARD_HEIGHT - draw_height) // 2
    canvas.paste(scaled, (x, y), scaled)

    output = BytesIO()
    canvas.save(output, format='PNG')
    return output.getvalue()


def build_brand_card(domain, page_url=None, *, random_tie_break=False, rng=None,
                     fetcher=None, trace=None):
    """
    Build an unbordered favicon brand card for `domain`.

    Returns a BrandCard, or None when the icon can't be fetched or decoded so
    the caller can fall back to the plain domain card.
    """
    trace = trace or default_trace
    g_logger.info(f"Generating favicon brand card for {domain}" + (f" ({page_url})" if page_url else ""))

    icon = (fetcher or fetch_favicon)(domain, trace=trace)
    if icon is None:
        trace("Favicon fetch failed, cannot generate brand card")
        return None
    if icon.width == 0 or icon.height == 0:
        trace("Favicon has no pixels, cannot generate brand card")
        return None

    palette = analyze_logo_colors(icon, random_tie_break=random_tie_break, rng=rng, trace=trace)
    trace(f"Background: {palette.background_color}, Logo: {palette.logo_color}, Border: {palette.border_color}")

    raster = compose_brand_card(icon, palette.background_color)
    g_logger.info(f"Favicon brand card generated for {domain}")
    return BrandCard(raster=raster, palette=palette)
