"""
Module: card_generator.py

Synthetic domain cards and thumbnail cropping.

build_domain_card() is the terminal fallback of the card pipeline: pure local
drawing with Pillow, no network, and a built-in font when no TrueType font is
installed, so it always returns PNG bytes.
"""

import re
from functools import lru_cache
from io import BytesIO

from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from Logging import default_trace, g_logger
from border_renderer import add_thumbnail_border

CARD_WIDTH = 1200
CARD_HEIGHT = 630
THUMB_WIDTH = 200
THUMB_HEIGHT = 112

TEAL = '#225560'
YELLOW = '#FDCA40'
GREEN = '#179355'
WHITE = '#FFFFFF'
THUMB_BACKGROUND = '#f5f5f5'

BORDER_INSET = 8
BORDER_WIDTH = 16
ICON_X = 60
ICON_Y = 60
ICON_SIZE = 140
WORDMARK_Y = 60
WORDMARK_RIGHT = CARD_WIDTH - 60
WORDMARK_FONT_SIZE = 110
DOMAIN_Y = 470
DOMAIN_MAX_WIDTH = 1080
MIN_DOMAIN_FONT_SIZE = 48

# (max length, font size); anything longer uses the last size
DOMAIN_FONT_TIERS = ((10, 120), (15, 100), (20, 80))
SMALLEST_DOMAIN_FONT_SIZE = 64

BOLD_FONT_CANDIDATES = (
    'DejaVuSans-Bold.ttf',
    'LiberationSans-Bold.ttf',
    'Arial Bold.ttf',
    'arialbd.ttf',
)

DOMAIN_PREFIX_RE = re.compile(r'^(www\d*\.|m\.|mobile\.)', re.IGNORECASE)
CONTROL_CHARS_RE = re.compile(r'[\x00-\x1f\x7f]+')


@lru_cache(maxsize=32)
def load_bold_font(size):
    """First installed bold TrueType font at `size`, else Pillow's built-in font."""
    for name in BOLD_FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    try:
        return ImageFont.load_default(size=size)
    except (TypeError, OSError):
        # Older Pillow or no FreeType: fixed-size bitmap font
        return ImageFont.load_default()


def clean_domain(domain):
    """Strip www/www2/m./mobile. prefixes; control characters become spaces."""
    return DOMAIN_PREFIX_RE.sub('', CONTROL_CHARS_RE.sub(' ', domain or ''))


def domain_font_size(text):
    length = len(text)
    for max_length, size in DOMAIN_FONT_TIERS:
        if length <= max_length:
            return size
    return SMALLEST_DOMAIN_FONT_SIZE


def fit_domain_font(draw, text):
    """Length-graded font, shrunk proportionally if still wider than DOMAIN_MAX_WIDTH."""
    size = domain_font_size(text)
    font = load_bold_font(size)
    text_width = draw.textlength(text, font=font)
    if text_width > DOMAIN_MAX_WIDTH:
        size = max(MIN_DOMAIN_FONT_SIZE, int(size * (DOMAIN_MAX_WIDTH / text_width)))
        font = load_bold_font(size)
    return font


def _draw_centered_text(draw, center_x, top, text, font, fill):
    # Positioned by hand: text anchors are not supported by bitmap fonts
    width = draw.textlength(text, font=font)
    draw.text((center_x - width / 2, top), text, fill=fill, font=font)


def _draw_photo_icon(draw, x, y, size, color):
    """Photo placeholder glyph drawn on a 24-unit grid scaled to `size`."""
    unit = size / 24

    def point(px, py):
        return x + px * unit, y + py * unit

    stroke = max(1, round(2.5 * unit))
    draw.rounded_rectangle([point(3, 3), point(21, 21)], radius=3 * unit, outline=color, width=stroke)
    draw.line([point(3, 16), point(8, 11), point(11, 11), point(16, 16)], fill=color, width=stroke, joint='curve')
    draw.line([point(14, 14), point(15, 13), point(18, 13), point(21, 16)], fill=color, width=stroke, joint='curve')
    cx, cy = point(15, 8)
    dot = stroke / 2
    draw.ellipse([cx - dot, cy - dot, cx + dot, cy + dot], fill=color)


def _draw_wordmark(draw):
    font = load_bold_font(WORDMARK_FONT_SIZE)
    o_width = draw.textlength('O', font=font)
    g_width = draw.textlength('G', font=font)
    left = WORDMARK_RIGHT - (o_width + g_width)
    draw.text((left, WORDMARK_Y), 'O', fill=YELLOW, font=font)
    draw.text((left + o_width, WORDMARK_Y), 'G', fill=GREEN, font=font)


def build_domain_card(domain, trace=None):
    """
    Draw the fallback card for `domain` and return PNG bytes.

    Border, photo glyph, two-tone "OG" wordmark and the uppercased domain
    name centered in the lower half.
    """
    trace = trace or default_trace
    trace(f"[INFO] Generating domain card for: {domain}")

    image = Image.new('RGB', (CARD_WIDTH, CARD_HEIGHT), WHITE)
    draw = ImageDraw.Draw(image)

    # 16px stroke centered on a path inset 8px from each edge
    half = BORDER_WIDTH // 2
    draw.rectangle(
        [BORDER_INSET - half, BORDER_INSET - half,
         CARD_WIDTH - BORDER_INSET + half - 1, CARD_HEIGHT - BORDER_INSET + half - 1],
        outline=TEAL, width=BORDER_WIDTH,
    )

    _draw_photo_icon(draw, ICON_X, ICON_Y, ICON_SIZE, TEAL)
    _draw_wordmark(draw)

    domain_text = clean_domain(domain).upper()
    if not isinstance(load_bold_font(domain_font_size(domain_text)), ImageFont.FreeTypeFont):
        # Bitmap fonts only encode latin-1
        domain_text = domain_text.encode('latin-1', 'replace').decode('latin-1')
    font = fit_domain_font(draw, domain_text)
    _draw_centered_text(draw, CARD_WIDTH / 2, DOMAIN_Y, domain_text, font, TEAL)

    output = BytesIO()
    image.save(output, format='PNG')
    trace(f"[OK] Domain card generated ({CARD_WIDTH}x{CARD_HEIGHT})")
    return output.getvalue()


def create_placeholder():
    """Neutral 200x112 thumbnail used when no image could be produced."""
    image = Image.new('RGB', (THUMB_WIDTH, THUMB_HEIGHT), '#f5f5f7')
    draw = ImageDraw.Draw(image)
    font = load_bold_font(14)
    left, top, right, bottom = draw.textbbox((0, 0), 'No image', font=font)
    _draw_centered_text(draw, THUMB_WIDTH / 2, (THUMB_HEIGHT - (bottom - top)) / 2 - top, 'No image', font, '#999999')
    output = BytesIO()
    image.save(output, format='PNG')
    return output.getvalue()


def crop_to_thumbnail(image_bytes, border_color=None):
    """
    Cover-scale and center-crop an encoded image to 200x112 over a light
    grey backdrop, adding the thumbnail mat border when `border_color` is set.

    Undecodable input yields the placeholder thumbnail.
    """
    try:
        with Image.open(BytesIO(image_bytes)) as source:
            source = source.convert('RGBA')
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        g_logger.warning(f"Could not decode image for thumbnail: {e}")
        return create_placeholder()

    cropped = ImageOps.fit(source, (THUMB_WIDTH, THUMB_HEIGHT), Image.Resampling.LANCZOS, centering=(0.5, 0.5))
    thumbnail = Image.new('RGBA', (THUMB_WIDTH, THUMB_HEIGHT), THUMB_BACKGROUND)
    thumbnail.alpha_composite(cropped)
    thumbnail = thumbnail.convert('RGB')

    if border_color:
        add_thumbnail_border(thumbnail, border_color)

    output = BytesIO()
    thumbnail.save(output, format='PNG')
    return output.getvalue()
