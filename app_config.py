"""
app_config.py

Centralized configuration management for the OG card generator.

Settings are read once from config.yaml and turned into an explicit
CardConfig that callers pass into the card pipeline; nothing downstream reads
module-level settings.
"""

# =============================================================================
# STANDARD LIBRARY IMPORTS
# =============================================================================
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Optional

import yaml

from Logging import g_logger
from image_heuristics import HeuristicTables

# =============================================================================
# GLOBAL CONSTANTS
# =============================================================================

PATH: str = os.path.dirname(os.path.abspath(__file__))
CONFIG_FILE = os.environ.get("OGCARD_CONFIG", os.path.join(PATH, 'config.yaml'))

DEFAULT_HISTORY_LENGTH = 5
DEFAULT_IMAGE_TIMEOUT = 5.0
DEFAULT_PAGE_TIMEOUT = 15.0
DEFAULT_MAX_DESCRIPTION_LENGTH = 200

# =============================================================================
# CARD CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class CardConfig:
    """
    Per-request settings for card generation.

    smart_select: scan the page for the best image instead of trusting og:image
    use_brand_cards: with smart_select, build a favicon brand card instead of scanning
    force_generated_card: always draw the domain card (developer override)
    random_logo_tie_break: break logo-color ties at random instead of first-seen
    """
    smart_select: bool = True
    use_brand_cards: bool = False
    force_generated_card: bool = False
    history_length: int = DEFAULT_HISTORY_LENGTH
    image_timeout: float = DEFAULT_IMAGE_TIMEOUT
    page_timeout: float = DEFAULT_PAGE_TIMEOUT
    max_description_length: int = DEFAULT_MAX_DESCRIPTION_LENGTH
    random_logo_tie_break: bool = False
    heuristics: HeuristicTables = field(default_factory=HeuristicTables)

    @classmethod
    def from_mapping(cls, settings: Optional[Dict[str, Any]], heuristics: Optional[Dict[str, Any]] = None) -> 'CardConfig':
        """Build a CardConfig from the `card:` and `heuristics:` sections."""
        settings = settings or {}
        defaults = cls()
        return cls(
            smart_select=bool(settings.get('smart_select', defaults.smart_select)),
            use_brand_cards=bool(settings.get('use_brand_cards', defaults.use_brand_cards)),
            force_generated_card=bool(settings.get('force_generated_card', defaults.force_generated_card)),
            history_length=max(1, int(settings.get('history_length', defaults.history_length))),
            image_timeout=float(settings.get('image_timeout', defaults.image_timeout)),
            page_timeout=float(settings.get('page_timeout', defaults.page_timeout)),
            max_description_length=int(settings.get('max_description_length', defaults.max_description_length)),
            random_logo_tie_break=bool(settings.get('random_logo_tie_break', defaults.random_logo_tie_break)),
            heuristics=HeuristicTables.from_overrides(heuristics),
        )

# =============================================================================
# CONFIGURATION MANAGER CLASS
# =============================================================================

class ConfigManager:
    """
    Singleton holding the parsed config.yaml.

    A missing file means "all defaults"; a malformed file is an error.
    """

    _instance = None

    def __new__(cls, config_path=None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._config_path = config_path or CONFIG_FILE
            cls._instance._config = None
        return cls._instance

    @classmethod
    def get_instance(cls) -> 'ConfigManager':
        if cls._instance is None:
            cls._instance = ConfigManager()
        return cls._instance

    @lru_cache(maxsize=1)
    def load_config(self) -> Dict[str, Any]:
        """
        Load and cache config.yaml.

        Raises:
            ValueError: If config.yaml is malformed or not a mapping
        """
        if not os.path.exists(self._config_path):
            g_logger.debug(f"No configuration file at {self._config_path}, using defaults")
            return {}

        try:
            with open(self._config_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Malformed configuration file: {e}") from e
        except OSError as e:
            g_logger.error(f"Error reading {self._config_path}: {e}")
            raise

        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a valid YAML dictionary")
        return config

    def get_config(self) -> Dict[str, Any]:
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation, e.g. 'card.history_length'.
        """
        value = self.get_config()
        try:
            for key in key_path.split('.'):
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def require(self, key_path: str) -> Any:
        value = self.get(key_path)
        if value is None:
            raise ValueError(f"Required configuration key not found: {key_path}")
        return value

    def reload(self, config_path=None) -> None:
        """Forget the cached configuration; optionally point at another file."""
        if config_path:
            self._config_path = config_path
        self._config = None
        self.load_config.cache_clear()

# =============================================================================
# GLOBAL CONFIGURATION INSTANCE
# =============================================================================

config_manager = ConfigManager.get_instance()

# =============================================================================
# CONFIGURATION ACCESS FUNCTIONS
# =============================================================================

def get_card_config() -> CardConfig:
    """CardConfig built from the `card:` and `heuristics:` sections."""
    return CardConfig.from_mapping(config_manager.get('card', {}), config_manager.get('heuristics', {}))


def get_log_level() -> Optional[str]:
    return config_manager.get('logging.level')
