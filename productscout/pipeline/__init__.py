"""Pipelines composing the tools into end-to-end operations."""

from productscout.pipeline.content_proxy import ContentProxy, InvalidURLError
from productscout.pipeline.suggestions import SuggestionPipeline

__all__ = ["ContentProxy", "InvalidURLError", "SuggestionPipeline"]
