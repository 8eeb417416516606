"""
Module: card_pipeline.py

End-to-end card generation for one URL: fetch and parse the page, extract
metadata, choose an image (page scan, declared preview, favicon brand card or
domain card) and record the result in the card history.
"""

import asyncio
from urllib.parse import urlparse

from Logging import g_logger
from app_config import CardConfig
from border_renderer import FULL_SIZE_BORDER_WIDTH, FULL_SIZE_INSET, add_border_to_png
from brand_card_generator import CARD_HEIGHT, CARD_WIDTH, build_brand_card
from card_generator import build_domain_card, create_placeholder, crop_to_thumbnail
from card_history import CardHistory
from image_candidate_selector import select_best_image
from image_html_parser import parse_document
from image_utils import extract_domain, fetch_image_bytes, require_page_url, to_absolute_url
from models import CardDescriptor, CardKind, GenerationInProgressError, Origin
from page_fetch import extract_metadata, fetch_page, normalize_url


class CardPipeline:
    """
    Generates cards with an explicit CardConfig.

    At most one generation runs at a time per pipeline; an overlapping call
    raises GenerationInProgressError. Abandoning a request is done by
    discarding its result, never by interrupting image loads.
    """

    def __init__(self, config=None, history=None, loader=None, favicon_fetcher=None, image_fetcher=None):
        self.config = config or CardConfig()
        self.history = history if history is not None else CardHistory(self.config.history_length)
        self.loader = loader
        self.favicon_fetcher = favicon_fetcher
        self.image_fetcher = image_fetcher or fetch_image_bytes
        self.busy = False

    def generate(self, raw_url):
        """Blocking entry point; see generate_async."""
        return asyncio.run(self.generate_async(raw_url))

    async def generate_async(self, raw_url):
        if self.busy:
            raise GenerationInProgressError("A card is already being generated")
        self.busy = True
        try:
            card = await self._generate(raw_url)
        finally:
            self.busy = False
        self.history.add(card)
        return card

    async def _generate(self, raw_url):
        url = normalize_url(raw_url)
        require_page_url(url)
        config = self.config

        final_url, html = await asyncio.to_thread(fetch_page, url, config.page_timeout)
        document = parse_document(html)
        metadata = extract_metadata(document, config.max_description_length)
        domain = extract_domain(url)

        card = CardDescriptor(
            title=metadata['title'],
            description=metadata['description'],
            domain=domain,
            canonical_url=url,
            image_reference=None,
        )

        host = urlparse(url).hostname
        if config.force_generated_card:
            g_logger.info("Force generated card enabled - skipping image search")
            self._use_domain_card(card, host)
        elif config.smart_select and config.use_brand_cards:
            await self._use_brand_card(card, host, url)
        elif config.smart_select:
            await self._use_page_image(card, document, final_url, metadata['declared_preview'], host)
        elif metadata['declared_preview']:
            g_logger.info(f"Using OG:image from meta tag: {metadata['declared_preview']}")
            card.image_reference = metadata['declared_preview']
            card.kind = CardKind.DECLARED_PREVIEW
            card.thumbnail = await self._thumbnail_for(to_absolute_url(card.image_reference, final_url))
        else:
            g_logger.info("No OG:image found")
            card.thumbnail = create_placeholder()
            card.kind = CardKind.PLACEHOLDER
        return card

    async def _use_page_image(self, card, document, page_url, declared_preview, host):
        result = await select_best_image(
            document, page_url, declared_preview,
            tables=self.config.heuristics, loader=self.loader, timeout=self.config.image_timeout,
        )
        if not result.found:
            g_logger.info("No valid images found after page scan - generating domain card fallback")
            self._use_domain_card(card, host)
            return

        winner = result.winner.candidate
        card.image_reference = winner.source
        card.kind = CardKind.DECLARED_PREVIEW if winner.origin is Origin.DECLARED_PREVIEW else CardKind.PAGE_IMAGE
        card.thumbnail = await self._thumbnail_for(winner.source, winner.data)

    async def _thumbnail_for(self, source, data=None):
        """Download (unless inline `data` is given) and crop the chosen image; placeholder on failure."""
        if data is None and source:
            data = await asyncio.to_thread(self.image_fetcher, source, self.config.image_timeout)
        if not data:
            g_logger.info(f"Could not fetch final image {source}, using placeholder thumbnail")
            return create_placeholder()
        return crop_to_thumbnail(data)

    async def _use_brand_card(self, card, host, page_url):
        brand_card = await asyncio.to_thread(
            build_brand_card, host, page_url,
            random_tie_break=self.config.random_logo_tie_break, fetcher=self.favicon_fetcher,
        )
        if brand_card is None:
            g_logger.info("Favicon brand card generation failed, falling back to domain card")
            self._use_domain_card(card, host)
            return

        # Full-size and thumbnail borders are applied independently
        card.full_size = add_border_to_png(brand_card.raster, CARD_WIDTH, CARD_HEIGHT,
                                           brand_card.border_color, FULL_SIZE_INSET, FULL_SIZE_BORDER_WIDTH)
        card.thumbnail = crop_to_thumbnail(brand_card.raster, brand_card.border_color)
        card.image_reference = card.full_size
        card.border_color = brand_card.border_color
        card.kind = CardKind.BRAND_CARD

    def _use_domain_card(self, card, host):
        raster = build_domain_card(host)
        card.full_size = raster
        card.thumbnail = crop_to_thumbnail(raster)
        card.image_reference = raster
        card.kind = CardKind.DOMAIN_CARD


def generate_card(url, config=None, history=None):
    """Generate one card with a throwaway pipeline."""
    return CardPipeline(config=config, history=history).generate(url)
