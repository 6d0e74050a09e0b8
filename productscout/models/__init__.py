"""Data models for product discovery and content acquisition."""

from productscout.models.product import (
    BlockageVerdict,
    ExtractedProduct,
    ExtractionConfidence,
    ExtractionResponse,
    ExtractionResult,
    FallbackDescriptor,
    FinalizedSuggestion,
    HeuristicConfidence,
    HistoryItem,
    PriceRange,
    ProxyMethod,
    ProxyResult,
    RejectedSuggestion,
    SearchCandidate,
    Suggestion,
    SuggestionHistory,
    UrlHeuristic,
)

__all__ = [
    "BlockageVerdict",
    "ExtractedProduct",
    "ExtractionConfidence",
    "ExtractionResponse",
    "ExtractionResult",
    "FallbackDescriptor",
    "FinalizedSuggestion",
    "HeuristicConfidence",
    "HistoryItem",
    "PriceRange",
    "ProxyMethod",
    "ProxyResult",
    "RejectedSuggestion",
    "SearchCandidate",
    "Suggestion",
    "SuggestionHistory",
    "UrlHeuristic",
]
