"""Turning Instagram captions into candidate property records."""

from .exceptions import ExtractionError, LLMHTTPError, LLMResponseError, LLMTimeoutError
from .fields import FIELD_EXTRACTORS
from .llm_client import LLMClient
from .llm_extractor import LLMExtractor, extract_json_object
from .models import ExtractionMethod, ExtractionResult, score_confidence
from .prompt import PromptRenderer
from .rate_limit import RateLimiter
from .regex_extractor import RegexExtractor
from .service import ExtractionService

__all__ = [
    "ExtractionError",
    "LLMHTTPError",
    "LLMResponseError",
    "LLMTimeoutError",
    "FIELD_EXTRACTORS",
    "LLMClient",
    "LLMExtractor",
    "extract_json_object",
    "ExtractionMethod",
    "ExtractionResult",
    "score_confidence",
    "PromptRenderer",
    "RateLimiter",
    "RegexExtractor",
    "ExtractionService",
]
