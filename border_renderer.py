"""
Module: border_renderer.py

Border color decision and "mat" borders for brand cards. A mat border is
four filled rectangles, one per edge, so corners never double-draw and no
anti-aliased stroke appears.
"""

from io import BytesIO

from PIL import Image, ImageDraw

from color_utils import color_distance, hex_to_rgb, wcag_luminance

SIMILAR_COLOR_THRESHOLD = 50
LIGHT_BACKGROUND_BORDER = '#cccccc'
DARK_BACKGROUND_BORDER = '#444444'

FULL_SIZE_INSET = 18
FULL_SIZE_BORDER_WIDTH = 4
THUMBNAIL_INSET = 3
THUMBNAIL_BORDER_WIDTH = 1


def border_color_for(background_color, logo_color):
    """
    Logo color, unless it is nearly indistinguishable from the background;
    then a neutral grey chosen by the background's WCAG luminance.
    """
    if color_distance(background_color, logo_color) < SIMILAR_COLOR_THRESHOLD:
        if wcag_luminance(*hex_to_rgb(background_color)) > 0.5:
            return LIGHT_BACKGROUND_BORDER
        return DARK_BACKGROUND_BORDER
    return logo_color


def _fill_rect(draw, x, y, width, height, color):
    if width <= 0 or height <= 0:
        return
    draw.rectangle([x, y, x + width - 1, y + height - 1], fill=color)


def draw_mat_border(image, border_color, inset, border_width):
    """Draw the four edge rectangles onto `image` in place and return it."""
    width, height = image.size
    draw = ImageDraw.Draw(image)
    inner_width = width - inset * 2
    inner_height = height - inset * 2
    _fill_rect(draw, inset, inset, inner_width, border_width, border_color)
    _fill_rect(draw, inset, height - inset - border_width, inner_width, border_width, border_color)
    _fill_rect(draw, inset, inset, border_width, inner_height, border_color)
    _fill_rect(draw, width - inset - border_width, inset, border_width, inner_height, border_color)
    return image


def add_full_size_border(image, border_color):
    return draw_mat_border(image, border_color, FULL_SIZE_INSET, FULL_SIZE_BORDER_WIDTH)


def add_thumbnail_border(image, border_color):
    return draw_mat_border(image, border_color, THUMBNAIL_INSET, THUMBNAIL_BORDER_WIDTH)


def add_border_to_png(png_bytes, width, height, border_color, inset, border_width):
    """Decode `png_bytes`, stretch to width x height, add a mat border, re-encode."""
    with Image.open(BytesIO(png_bytes)) as source:
        image = source.convert('RGB')
    if image.size != (width, height):
        image = image.resize((width, height), Image.Resampling.LANCZOS)
    draw_mat_border(image, border_color, inset, border_width)
    output = BytesIO()
    image.save(output, format='PNG')
    return output.getvalue()
