"""
card_history.py

Bounded in-memory history of generated cards, keyed by page URL.
Oldest entries are evicted first; regenerating a URL moves it to the newest
position instead of duplicating it.
"""

from cacheout import Cache

from Logging import g_logger
from app_config import DEFAULT_HISTORY_LENGTH


class CardHistory:
    """FIFO history of CardDescriptors, at most `max_size` entries."""

    def __init__(self, max_size=DEFAULT_HISTORY_LENGTH):
        self.max_size = max(1, int(max_size))
        self._cache = Cache(maxsize=self.max_size, ttl=0)

    def add(self, card):
        url = card.canonical_url
        if self._cache.has(url):
            self._cache.delete(url)
        self._cache.set(url, card)
        g_logger.debug(f"History now holds {self._cache.size()} cards (max {self.max_size})")

    def get(self, url):
        return self._cache.get(url)

    def items(self):
        """Cards oldest first."""
        return list(self._cache.values())

    def urls(self):
        return list(self._cache.keys())

    def clear(self):
        self._cache.clear()

    def __len__(self):
        return self._cache.size()

    def __contains__(self, url):
        return self._cache.has(url)
