"""Data models for product discovery and content acquisition."""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator

PLACEHOLDER_TITLE = "Product"


class ExtractionConfidence(str, Enum):
    """Whether product data was genuinely scraped or guessed from the URL."""

    SCRAPED = "scraped"
    HEURISTIC = "heuristic"


class HeuristicConfidence(str, Enum):
    """How much a URL-derived guess can be trusted."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProxyMethod(str, Enum):
    """Escalation tier that produced a proxy result."""

    FETCH = "fetch"
    RENDER = "render"
    FALLBACK = "fallback"


class UrlHeuristic(BaseModel):
    """Best-effort product guess derived from a bare URL."""

    title: str
    retailer: str
    confidence: HeuristicConfidence


class ExtractionResult(BaseModel):
    """Structured product data for a single product page."""

    title: str = Field(..., description="Product title, never empty")
    description: str = Field("", description="Short product description")
    image: str = Field("", description="Main product image URL")
    price: Optional[str] = Field(None, description="Display price as found on the page")
    retailer: str = Field(..., description="Retailer display name")
    url: str = Field(..., description="Product page URL")
    confidence: ExtractionConfidence = Field(
        ..., description="scraped for real data, heuristic for URL-derived guesses"
    )
    heuristic_confidence: Optional[HeuristicConfidence] = Field(
        None, description="Confidence of the URL guess when confidence is heuristic"
    )

    @field_validator("title", mode="before")
    @classmethod
    def _title_not_empty(cls, value) -> str:
        value = str(value or "").strip()
        return value or PLACEHOLDER_TITLE

    @property
    def is_scraped(self) -> bool:
        return self.confidence == ExtractionConfidence.SCRAPED


class SearchCandidate(BaseModel):
    """A single ranked web-search result."""

    url: str
    title: str = ""
    snippet: str = ""


class Suggestion(BaseModel):
    """A product idea from the reasoning service, before URL resolution."""

    name: str
    retailer: str
    category: str
    reasoning: str = ""
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)


class FinalizedSuggestion(ExtractionResult):
    """A suggestion enriched with a resolved URL and extracted product fields."""

    name: str
    category: str
    reasoning: str = ""
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    product_type: str = "other"


class FallbackDescriptor(BaseModel):
    """Minimal data for a "view externally" affordance."""

    title: str
    retailer: str
    url: str


class ProxyResult(BaseModel):
    """Outcome of a content proxy request."""

    success: bool
    method: ProxyMethod
    sanitized_html: Optional[str] = None
    content_type: Optional[str] = None
    fallback_descriptor: Optional[FallbackDescriptor] = None
    is_blocked: bool = False
    error: Optional[str] = None


class BlockageVerdict(BaseModel):
    """Classification of an extraction attempt."""

    is_blocked: bool
    reason: str
    can_retry: bool
    is_generic_data: bool = False


# --- User history fed into the suggestion prompt ---


class HistoryItem(BaseModel):
    """A real product the user liked or disliked."""

    title: str
    retailer: Optional[str] = None
    price: Optional[str] = None
    description: str = ""


class RejectedSuggestion(BaseModel):
    """An AI suggestion the user previously discarded."""

    title: str
    retailer: Optional[str] = None
    reasoning: Optional[str] = None
    confidence: Optional[Union[float, str]] = None


class PriceRange(BaseModel):
    """Optional EUR price bounds for suggestions."""

    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_set(self) -> bool:
        return self.min is not None or self.max is not None


class SuggestionHistory(BaseModel):
    """Everything the user has told us about their taste so far."""

    liked: list[HistoryItem] = Field(default_factory=list)
    disliked: list[HistoryItem] = Field(default_factory=list)
    rejected: list[RejectedSuggestion] = Field(default_factory=list)
    price_range: Optional[PriceRange] = None


# --- Boundary models for third-party responses ---


class ExtractedProduct(BaseModel):
    """Fields returned by the structured-extraction API."""

    title: str = ""
    description: str = ""
    price: Optional[str] = None
    image: str = ""
    retailer: str = ""

    @field_validator("title", "description", "image", "retailer", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else str(value)

    @field_validator("price", mode="before")
    @classmethod
    def _price_to_str(cls, value):
        if value is None or value == "":
            return None
        return str(value)

    @property
    def is_empty(self) -> bool:
        return not (self.title.strip() or self.description.strip() or self.image.strip())


class ExtractionResponse(BaseModel):
    """Normalized response of the structured-extraction API."""

    success: bool = False
    data: Optional[ExtractedProduct] = None
    error: str = ""


class SerperResult(BaseModel):
    """One organic result from the search API."""

    link: str = ""
    title: str = ""
    snippet: str = ""


class SerperResponse(BaseModel):
    """Search API response; only organic results are used."""

    organic: list[SerperResult] = Field(default_factory=list)


class RawSuggestion(BaseModel):
    """A suggestion as the reasoning service wrote it, before validation."""

    name: Optional[str] = None
    retailer: Optional[str] = None
    category: Optional[str] = None
    reasoning: Optional[str] = None
    confidence: Optional[Union[float, str]] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.retailer and self.category)


class SuggestionsPayload(BaseModel):
    """Top-level JSON object expected from the reasoning service."""

    suggestions: list[Any] = Field(default_factory=list)
