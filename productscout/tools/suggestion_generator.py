"""Product suggestions from an OpenAI-compatible reasoning service.

The service only proposes product names and retailers; URLs are resolved
separately by web search. An unparseable answer is not an error: it simply
means there are no suggestions this round.
"""

import json
import logging
import re
from typing import Any, Optional, Union

from openai import AsyncOpenAI
from pydantic import ValidationError

from productscout.config import PipelineConfig
from productscout.logging_utils import LoggerLike, with_trace
from productscout.models.product import (
    HistoryItem,
    RawSuggestion,
    Suggestion,
    SuggestionHistory,
    SuggestionsPayload,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an interior designer and furniture expert. You MUST use web search to find "
    "REAL, CURRENT furniture products. NEVER generate fake data, fake URLs, or fake prices. "
    "Only return products you found through web search."
)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")


def normalize_confidence(value: Union[float, int, str, None]) -> float:
    """Map the service's confidence to [0, 1].

    The prompt asks for a 0-100 score, so the value is always divided by 100
    and clamped. A service that answers on a 0-1 scale would therefore end up
    with near-zero scores.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(str(value).strip().rstrip("%"))
    except ValueError:
        return 0.0
    if number != number:  # NaN
        return 0.0
    return max(0.0, min(1.0, number / 100.0))


def _format_money(value: Optional[str]) -> str:
    return value if value and value.strip() else "N/A"


def _format_item(item: HistoryItem) -> str:
    return (
        f"- Product: {item.title}\n"
        f"  Brand: {item.retailer or 'Unknown'}\n"
        f"  Price: {_format_money(item.price)}\n"
        f"  Description: {item.description}"
    )


def _format_rejected_confidence(confidence: Any) -> str:
    if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
        return f"{round(confidence * 100)}%"
    return str(confidence) if confidence is not None else "N/A"


def build_suggestion_prompt(category: str, history: Optional[SuggestionHistory] = None, count: int = 3) -> str:
    """User prompt with liked, disliked and discarded-suggestion sections."""
    history = history or SuggestionHistory()
    liked = "\n".join(_format_item(i) for i in history.liked)
    disliked = "\n".join(_format_item(i) for i in history.disliked)
    rejected = "\n".join(
        f"- Product: {i.title}\n"
        f"  Brand: {i.retailer or 'Unknown'}\n"
        f"  AI justification: {i.reasoning or 'N/A'}\n"
        f"  Confidence: {_format_rejected_confidence(i.confidence)}"
        for i in history.rejected
    )

    price_range = history.price_range
    if price_range is not None and price_range.is_set:
        low = price_range.min if price_range.min is not None else "any"
        high = price_range.max if price_range.max is not None else "any"
        price_line = f"Price range (EUR): {low} - {high}"
    else:
        price_line = "Price range (EUR): not specified"

    return f"""Suggest {count} {category} products from German furniture retailers. Focus on products that can be found and bought online.

User preference context:
Your past matches (liked):
{liked or '- None'}

No matches (disliked real items):
{disliked or '- None'}

No matches (discarded AI suggestions):
{rejected or '- None'}

{price_line}

Instructions:
- Use the above preferences to infer the user's current design style and what to avoid. Consider themes across liked items (materials, colors, shapes, scale) and contrasts in dislikes.
- Do not suggest any of the discarded AI suggestions again, nor close variations of them.
- Write the justification in a friendly, expert, and personal tone (address the user as "you").
- Make the justification explanatory and specific: reference style fit (e.g., materials, color palette, form factor, dimensions/scale, brand continuity) and call out why it avoids the user's past dislikes.
- Keep justification to 1-3 concise sentences.
- STRICTLY respect the price range if provided. If you cannot confidently find an item within range, skip it and return fewer suggestions.
- Return ONLY product names and retailers (no URLs/prices/images); we'll find URLs separately.
- Provide a brief reasoning (personalized justification) and a confidence score (0-100).

Format response as:
{{
  "suggestions": [
    {{ "name": "Product name", "retailer": "Retailer", "category": "{category}", "reasoning": "Personal, explanatory why it fits the current design and avoids past dislikes", "confidence": 85 }}
  ]
}}"""


def _load_json(content: str, log: LoggerLike) -> Optional[dict]:
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass

    match = _FENCED_JSON.search(content)
    if not match:
        log.error("[Suggest] Response is not JSON and has no fenced code block")
        return None
    try:
        log.info("[Suggest] Extracted JSON from fenced code block")
        return json.loads(match.group(1))
    except json.JSONDecodeError as e:
        log.error(f"[Suggest] Failed to parse fenced JSON: {e}")
        return None


def parse_suggestions(content: str, log: Optional[LoggerLike] = None) -> list[Suggestion]:
    """Parse the service's answer; anything unusable yields an empty list."""
    log = log or logger
    if not content or not content.strip():
        return []

    data = _load_json(content.strip(), log)
    if not isinstance(data, dict):
        return []
    try:
        payload = SuggestionsPayload.model_validate(data)
    except ValidationError as e:
        log.error(f"[Suggest] Unexpected response shape: {e}")
        return []

    suggestions = []
    for item in payload.suggestions:
        try:
            raw = RawSuggestion.model_validate(item)
        except ValidationError:
            log.warning(f"[Suggest] Dropping malformed suggestion: {item!r}")
            continue
        if not raw.is_complete:
            log.warning(f"[Suggest] Missing required fields: {item!r}")
            continue
        suggestions.append(
            Suggestion(
                name=raw.name.strip(),
                retailer=raw.retailer.strip(),
                category=raw.category.strip(),
                reasoning=(raw.reasoning or "").strip(),
                confidence_score=normalize_confidence(raw.confidence),
            )
        )
    return suggestions


class SuggestionGenerator:
    """Asks the reasoning service for product ideas matching a user's taste."""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        client: Optional[AsyncOpenAI] = None,
        log: Optional[LoggerLike] = None,
    ):
        self.config = config or PipelineConfig.from_env()
        self._client = client
        self.logger = log or logger

    @property
    def client(self) -> AsyncOpenAI:
        """Lazy-load the LLM client."""
        if self._client is None:
            if not self.config.suggestion_api_key:
                raise ValueError("Reasoning service API key not configured. Set PERPLEXITY_API_KEY")
            self._client = AsyncOpenAI(
                api_key=self.config.suggestion_api_key,
                base_url=self.config.suggestion_base_url,
            )
        return self._client

    async def generate(
        self,
        category: str,
        history: Optional[SuggestionHistory] = None,
        count: int = 3,
        trace_id: Optional[str] = None,
    ) -> list[Suggestion]:
        """Up to `count` suggestions for `category`; an empty list when none are usable."""
        if not category or not category.strip():
            raise ValueError("Category is required")

        log = with_trace(self.logger, trace_id)
        prompt = build_suggestion_prompt(category, history, count)
        log.info(f"[Suggest] Requesting {count} '{category}' suggestions (prompt: {len(prompt)} chars)")
        log.debug(f"[Suggest] Prompt:\n{prompt}")

        try:
            response = await self.client.chat.completions.create(
                model=self.config.suggestion_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.3,
                max_tokens=2000,
            )
            content = response.choices[0].message.content if response.choices else None
        except Exception as e:
            log.error(f"[Suggest] ❌ Reasoning service failed: {e}")
            return []

        if not content:
            log.warning("[Suggest] Empty response from reasoning service")
            return []
        log.debug(f"[Suggest] Raw response:\n{content}")

        suggestions = parse_suggestions(content, log)[: max(count, 0)]
        log.info(f"[Suggest] {len(suggestions)} valid suggestions")
        return suggestions
