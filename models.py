"""
models.py

Data models, enumerations and exceptions shared by the image selection
pipeline and the synthetic card generators.
"""

# =============================================================================
# STANDARD LIBRARY IMPORTS
# =============================================================================
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Union

# =============================================================================
# ENUMERATIONS
# =============================================================================

class ImageFormat(str, Enum):
    """Image encoding, used only as a scoring weight."""
    SVG = "svg"
    PNG = "png"
    JPG = "jpg"


class Origin(str, Enum):
    """Which scanner produced a candidate."""
    PAGE_SCAN = "Page Scan"
    DOMAIN_MATCH = "Domain Match"
    DECLARED_PREVIEW = "OG"


class Zone(str, Enum):
    """Coarse location of an image in the document tree."""
    NONE = "none"
    CONTENT = "content"
    ARTICLE = "article"


class CardKind(str, Enum):
    """Where the card's image came from."""
    PAGE_IMAGE = "page-image"
    DECLARED_PREVIEW = "declared-preview"
    BRAND_CARD = "brand-card"
    DOMAIN_CARD = "domain-card"
    PLACEHOLDER = "placeholder"

# =============================================================================
# EXCEPTIONS
# =============================================================================

class OgCardError(Exception):
    """Base class for every error raised by this package."""


class InvalidPageUrlError(OgCardError, ValueError):
    """The page URL has no scheme or host and cannot anchor relative URLs."""

    def __init__(self, url):
        self.url = url
        super().__init__(f"Unparseable page URL: {url!r}")


class PageFetchError(OgCardError):
    """The page itself could not be fetched."""

    def __init__(self, url, message, status_code=None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class GenerationInProgressError(OgCardError):
    """A card is already being generated by this pipeline."""

# =============================================================================
# CANDIDATES
# =============================================================================

@dataclass(frozen=True)
class ImageCandidate:
    """
    A decoded image under consideration for the card.

    `source` is an absolute URL, or the original data URL for inline images
    (in which case `data` holds the decoded bytes).
    """
    source: str
    width: int
    height: int
    format: ImageFormat = ImageFormat.JPG
    origin: Origin = Origin.PAGE_SCAN
    zone: Zone = Zone.NONE
    data: Optional[bytes] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self.width < 0 or self.height <= 0:
            raise ValueError(f"Invalid image dimensions {self.width}x{self.height} for {self.source}")

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @property
    def is_data_url(self) -> bool:
        return self.source.startswith("data:")

    def short_name(self) -> str:
        """Filename part of the source, for log lines."""
        if self.is_data_url:
            return self.source[:30] + "..."
        return self.source.rstrip("/").split("/")[-1][:60]


class RelaxationTier(NamedTuple):
    """One step of the progressive minimum-size relaxation."""
    min_width: int
    min_height: int
    label: str


@dataclass(frozen=True)
class ScoredCandidate:
    """An ImageCandidate with its total score and the per-term breakdown."""
    candidate: ImageCandidate
    score: float
    terms: Dict[str, float] = field(default_factory=dict, compare=False)

    @property
    def source(self) -> str:
        return self.candidate.source

    @property
    def format(self) -> ImageFormat:
        return self.candidate.format


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of one orchestrated search."""
    winner: Optional[ScoredCandidate]
    tier: Optional[RelaxationTier]
    ranked: List[ScoredCandidate] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.winner is not None

# =============================================================================
# SYNTHETIC CARDS
# =============================================================================

@dataclass(frozen=True)
class BrandPalette:
    """Colors derived once from a site icon."""
    background_color: str
    logo_color: str
    border_color: str


@dataclass(frozen=True)
class BrandCard:
    """Unbordered brand card raster plus the palette used to border it."""
    raster: bytes
    palette: BrandPalette

    @property
    def border_color(self) -> str:
        return self.palette.border_color


@dataclass
class CardDescriptor:
    """Everything a template renderer needs for one card."""
    title: str
    description: str
    domain: str
    canonical_url: str
    image_reference: Union[str, bytes, None]
    kind: CardKind = CardKind.PLACEHOLDER
    thumbnail: Optional[bytes] = None
    full_size: Optional[bytes] = None
    border_color: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
