#!/usr/bin/env python3
"""
ogcard.py

Command-line entry point: generate a link-preview card for a URL and print
the resulting descriptor. Generated rasters (domain and brand cards) can be
written to disk with --out.

Usage: python ogcard.py <url> [--brand-cards] [--no-smart-select] [--force-generated]
                              [--out card.png] [--debug] [--config config.yaml]
"""

import argparse
import dataclasses
import sys

from Logging import g_logger, set_log_level
from app_config import config_manager, get_card_config, get_log_level
from card_pipeline import CardPipeline
from models import OgCardError


def build_parser():
    parser = argparse.ArgumentParser(description="Generate an Open Graph style link-preview card for a URL")
    parser.add_argument('url', help="Page URL; bare domains get https:// prepended")
    parser.add_argument('--brand-cards', action='store_true', help="Build a favicon brand card instead of scanning the page")
    parser.add_argument('--no-smart-select', action='store_true', help="Trust og:image without scanning the page")
    parser.add_argument('--force-generated', action='store_true', help="Always draw the domain card")
    parser.add_argument('--out', help="Write the full-size generated card (PNG) to this path")
    parser.add_argument('--thumbnail-out', help="Write the 200x112 thumbnail (PNG) to this path")
    parser.add_argument('--debug', action='store_true', help="Log candidate-by-candidate trace lines")
    parser.add_argument('--config', help="Alternate config.yaml")
    return parser


def _write_png(path, data):
    with open(path, 'wb') as f:
        f.write(data)
    g_logger.info(f"Wrote {len(data)} bytes to {path}")


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.config:
        config_manager.reload(args.config)
    set_log_level('DEBUG' if args.debug else (get_log_level() or 'INFO'))

    config = get_card_config()
    overrides = {}
    if args.brand_cards:
        overrides['use_brand_cards'] = True
    if args.no_smart_select:
        overrides['smart_select'] = False
    if args.force_generated:
        overrides['force_generated_card'] = True
    if overrides:
        config = dataclasses.replace(config, **overrides)

    try:
        card = CardPipeline(config).generate(args.url)
    except OgCardError as e:
        g_logger.error(f"Card generation failed: {e}")
        return 1

    print(f"Kind:        {card.kind.value}")
    print(f"Title:       {card.title}")
    print(f"Description: {card.description}")
    print(f"Domain:      {card.domain}")
    print(f"URL:         {card.canonical_url}")
    if isinstance(card.image_reference, str):
        print(f"Image:       {card.image_reference[:120]}")
    if card.border_color:
        print(f"Border:      {card.border_color}")

    if args.out:
        if card.full_size:
            _write_png(args.out, card.full_size)
        else:
            g_logger.warning("Card references a page image; nothing generated to write")
    if args.thumbnail_out and card.thumbnail:
        _write_png(args.thumbnail_out, card.thumbnail)
    return 0


if __name__ == '__main__':
    sys.exit(main())
