"""
Module: image_heuristics.py

Empirically tuned keyword lists and filename patterns. They are plain data so
they can be overridden from config.yaml without touching the scanners or the
scorer.
"""

import re
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Pattern, Tuple

# Filename tokens that mark chrome/UI images on content-rich pages
EXCLUDED_KEYWORDS = (
    'icon', 'avatar', 'logo', 'badge', 'button', 'sprite',
    'pixel', 'tracking', 'ad', 'banner', 'widget', 'thumb',
    'nav', 'social', 'comment', 'sidebar', 'footer', 'header',
    'menu', 'spacer', 'dot', 'arrow', 'bullet', 'bg', 'background'
)

EXCLUDED_TAGS = frozenset(['nav', 'header', 'footer', 'aside'])
ARTICLE_TAGS = frozenset(['article', 'main'])

EXCLUDED_ZONE_PATTERN = r'sidebar|comment|widget|footer|header|nav'
CONTENT_ZONE_PATTERN = r'content|post|entry'

NON_EDITORIAL_PATTERN = r'icon|newsletter|subscribe|author|avatar|profile|logo|-rev\b|albumart|album-art|thumblarge'
UI_ELEMENT_PATTERN = r'button|badge|widget|ad-|banner|thumb|square\d+'
SECTION_BRANDING_PATTERN = r'/newsletters/|/sections/|/podcasts?/|/shows?/|/series/'


def _compile(pattern):
    return re.compile(pattern, re.IGNORECASE)


@dataclass(frozen=True)
class HeuristicTables:
    """Swappable keyword tables for scanning and scoring."""
    excluded_keywords: Tuple[str, ...] = EXCLUDED_KEYWORDS
    excluded_tags: FrozenSet[str] = EXCLUDED_TAGS
    article_tags: FrozenSet[str] = ARTICLE_TAGS
    excluded_zone_re: Pattern = field(default_factory=lambda: _compile(EXCLUDED_ZONE_PATTERN))
    content_zone_re: Pattern = field(default_factory=lambda: _compile(CONTENT_ZONE_PATTERN))
    non_editorial_re: Pattern = field(default_factory=lambda: _compile(NON_EDITORIAL_PATTERN))
    ui_element_re: Pattern = field(default_factory=lambda: _compile(UI_ELEMENT_PATTERN))
    section_branding_re: Pattern = field(default_factory=lambda: _compile(SECTION_BRANDING_PATTERN))

    def has_excluded_keyword(self, filename):
        return any(keyword in filename for keyword in self.excluded_keywords)

    @classmethod
    def from_overrides(cls, overrides):
        """
        Build tables from a config mapping, keeping defaults for missing keys.

        Pattern keys take regex strings; list keys take lists of strings.
        """
        tables = cls()
        if not overrides:
            return tables

        changes = {}
        if 'excluded_keywords' in overrides:
            changes['excluded_keywords'] = tuple(k.lower() for k in overrides['excluded_keywords'])
        for key in ('excluded_tags', 'article_tags'):
            if key in overrides:
                changes[key] = frozenset(t.lower() for t in overrides[key])
        pattern_keys = {
            'excluded_zone_pattern': 'excluded_zone_re',
            'content_zone_pattern': 'content_zone_re',
            'non_editorial_pattern': 'non_editorial_re',
            'ui_element_pattern': 'ui_element_re',
            'section_branding_pattern': 'section_branding_re',
        }
        for config_key, attr in pattern_keys.items():
            if config_key in overrides:
                changes[attr] = _compile(overrides[config_key])
        return replace(tables, **changes)


DEFAULT_TABLES = HeuristicTables()
