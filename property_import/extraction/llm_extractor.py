"""LLM-backed caption extractor.

Renders the extraction prompt, calls the LLM endpoint (rate limited),
parses the JSON object out of the model output and validates it. Network
and parse failures never escape: they come back as an ExtractionResult
with errors, which the pipeline records as a skipped post.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError

from property_import.domain.models import ExtractedProperty, ListingType, PropertyType, RawPost
from property_import.logging import get_logger
from property_import.utils.cache import TTLCache

from .exceptions import ExtractionError, LLMResponseError
from .llm_client import LLMClient
from .models import ExtractionMethod, ExtractionResult, score_confidence
from .prompt import PromptRenderer
from .rate_limit import RateLimiter

logger = get_logger(__name__, component="extraction")

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)

_PROPERTY_TYPES = {member.value for member in PropertyType}
_LISTING_TYPES = {member.value for member in ListingType}


def extract_json_object(text: str) -> Dict[str, Any]:
    """Pull the JSON object out of model output.

    Looks for a markdown-fenced block first, then falls back to the span
    from the first '{' to the last '}'.

    Raises:
        LLMResponseError: If no object is found or it does not parse
    """
    if not text or not text.strip():
        raise LLMResponseError("LLM returned an empty response", raw_response=text or "")

    match = _FENCED_JSON_RE.search(text)
    if match:
        candidate = match.group(1)
    else:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            raise LLMResponseError("No JSON object found in LLM response", raw_response=text)
        candidate = text[start : end + 1]

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Failed to parse LLM JSON response: {e}", raw_response=text) from e

    if not isinstance(data, dict):
        raise LLMResponseError("LLM JSON response is not an object", raw_response=text)
    return data


def _cache_key(text: str) -> str:
    return " ".join(text.lower().split())


def _positive_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


class LLMExtractor:
    """Extracts property records from captions via the LLM endpoint.

    Successful results are cached by normalized caption text so re-imports
    of the same caption do not hit the endpoint again.
    """

    def __init__(
        self,
        client: LLMClient,
        rate_limiter: Optional[RateLimiter] = None,
        cache: Optional[TTLCache] = None,
        prompt_renderer: Optional[PromptRenderer] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize the extractor.

        Args:
            client: HTTP client for the LLM endpoint
            rate_limiter: Spacing between calls (defaults to 12s)
            cache: Result cache (defaults to a 1h TTLCache)
            prompt_renderer: Prompt template renderer
            logger_instance: Logger instance (defaults to module logger)
        """
        self.client = client
        self.rate_limiter = rate_limiter or RateLimiter(12.0)
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=3600)
        self.prompt_renderer = prompt_renderer or PromptRenderer()
        self.logger = logger_instance or logger

    def extract(self, post: RawPost) -> ExtractionResult:
        """Extract one post. Never raises for network or parse failures."""
        key = _cache_key(post.text)
        cached = self.cache.get(key)
        if cached is not None:
            self.logger.debug(
                "LLM extraction served from cache",
                extra={"event": "extraction.llm.cache_hit"},
            )
            return self._with_source(cached, post, ExtractionMethod.CACHE)

        raw_response = None
        try:
            prompt = self.prompt_renderer.render(post.text)
            self.rate_limiter.wait()
            raw_response = self.client.complete(prompt)
            data = extract_json_object(raw_response)
        except ExtractionError as e:
            self.logger.warning(
                f"LLM extraction failed: {e}",
                extra={"event": "extraction.llm.failed", "error_type": type(e).__name__},
            )
            return ExtractionResult(
                extracted=None,
                confidence=0.0,
                errors=[f"LLM extraction failed: {e}"],
                raw_response=raw_response,
                method=ExtractionMethod.LLM,
            )

        result = self._validate(data, raw_response)
        if result.succeeded:
            self.cache.set(key, result)

        self.logger.info(
            "LLM extraction finished",
            extra={
                "event": "extraction.llm.completed",
                "confidence": result.confidence,
                "warning_count": len(result.warnings),
                "error_count": len(result.errors),
            },
        )
        return self._with_source(result, post, ExtractionMethod.LLM)

    def _validate(self, data: Dict[str, Any], raw_response: str) -> ExtractionResult:
        warnings = []
        errors = []

        if not _positive_number(data.get("price")):
            errors.append("Price is required and must be positive")
        location = data.get("location")
        if not isinstance(location, str) or not location.strip():
            errors.append("Location is required")
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            warnings.append("Title is missing or empty")

        property_type = data.get("property_type")
        if property_type not in _PROPERTY_TYPES:
            warnings.append(f"Invalid property_type: {property_type}, defaulting to residential")
            data["property_type"] = PropertyType.RESIDENTIAL.value

        listing_type = data.get("listing_type")
        if listing_type not in _LISTING_TYPES:
            warnings.append(f"Invalid listing_type: {listing_type}, defaulting to sale")
            data["listing_type"] = ListingType.SALE.value

        known_fields = set(ExtractedProperty.model_fields)
        try:
            candidate = ExtractedProperty(
                **{k: v for k, v in data.items() if k in known_fields and v is not None}
            )
        except ValidationError as e:
            errors.append(f"LLM returned fields of the wrong type: {e.error_count()} invalid")
            return ExtractionResult(
                extracted=None,
                errors=errors,
                warnings=warnings,
                raw_response=raw_response,
                method=ExtractionMethod.LLM,
            )

        return ExtractionResult(
            extracted=candidate,
            confidence=score_confidence(candidate),
            warnings=warnings,
            errors=errors,
            raw_response=raw_response,
            method=ExtractionMethod.LLM,
        )

    @staticmethod
    def _with_source(
        result: ExtractionResult, post: RawPost, method: ExtractionMethod
    ) -> ExtractionResult:
        """Copy the result, attaching the post's source metadata."""
        extracted = None
        if result.extracted is not None:
            extracted = result.extracted.model_copy(
                deep=True,
                update={
                    "description": result.extracted.description or post.text,
                    "source_url": post.post_url,
                    "source_handle": post.account_handle,
                    "images": list(post.images),
                },
            )
        return ExtractionResult(
            extracted=extracted,
            confidence=result.confidence,
            warnings=list(result.warnings),
            errors=list(result.errors),
            raw_response=result.raw_response,
            method=method,
        )
