"""
Module: color_utils.py

Hex/RGB conversion, luminance and contrast helpers used by the brand card
pipeline and the border renderer.
"""


def hex_to_rgb(hex_color):
    """
    Parse a '#rrggbb' string into an (r, g, b) tuple.

    The caller guarantees a 7-character well-formed value; nothing is checked.
    """
    r = int(hex_color[1:3], 16)
    g = int(hex_color[3:5], 16)
    b = int(hex_color[5:7], 16)
    return r, g, b


def rgb_to_hex(r, g, b):
    return f"#{int(r):02x}{int(g):02x}{int(b):02x}"


def relative_luminance(hex_color):
    """Perceived brightness in [0, 1] using the 0.299/0.587/0.114 weights."""
    r, g, b = hex_to_rgb(hex_color)
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def _linearize(channel):
    c = channel / 255
    if c <= 0.03928:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def wcag_luminance(r, g, b):
    """
    WCAG 2.0 relative luminance with sRGB linearization.

    Gives slightly different numbers than relative_luminance(); the favicon
    border decision depends on this one.
    """
    return 0.2126 * _linearize(r) + 0.7152 * _linearize(g) + 0.0722 * _linearize(b)


def contrast_ratio(color_a, color_b):
    lum_a = relative_luminance(color_a)
    lum_b = relative_luminance(color_b)
    lighter = max(lum_a, lum_b)
    darker = min(lum_a, lum_b)
    return (lighter + 0.05) / (darker + 0.05)


def color_distance(color_a, color_b):
    """Summed absolute channel difference between two hex colors (0-765)."""
    return sum(abs(a - b) for a, b in zip(hex_to_rgb(color_a), hex_to_rgb(color_b)))
