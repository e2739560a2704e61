"""Extraction mode selection: regex, llm or auto."""

import logging
from typing import Optional

from property_import.config.models import ExtractionMode
from property_import.domain.models import RawPost
from property_import.logging import get_logger

from .llm_extractor import LLMExtractor
from .models import ExtractionResult
from .regex_extractor import RegexExtractor

logger = get_logger(__name__, component="extraction")


class ExtractionService:
    """Dispatches each post to the configured extractor.

    Modes:
    - regex: heuristics only
    - llm: LLM only
    - auto: heuristics first; the LLM is consulted only when price or
      location is missing and an LLM extractor is configured
    """

    def __init__(
        self,
        mode: ExtractionMode = ExtractionMode.AUTO,
        regex_extractor: Optional[RegexExtractor] = None,
        llm_extractor: Optional[LLMExtractor] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize the service.

        Raises:
            ValueError: If mode is llm but no LLM extractor is given
        """
        self.mode = ExtractionMode(mode)
        if self.mode == ExtractionMode.LLM and llm_extractor is None:
            raise ValueError("Extraction mode 'llm' requires an LLM extractor")

        self.regex_extractor = regex_extractor or RegexExtractor()
        self.llm_extractor = llm_extractor
        self.logger = logger_instance or logger

    def extract(self, post: RawPost) -> ExtractionResult:
        if self.mode == ExtractionMode.REGEX:
            return self.regex_extractor.extract(post)

        if self.mode == ExtractionMode.LLM:
            return self.llm_extractor.extract(post)

        regex_result = self.regex_extractor.extract(post)
        candidate = regex_result.extracted
        complete = candidate is not None and candidate.price is not None and candidate.location
        if complete or self.llm_extractor is None:
            return regex_result

        self.logger.info(
            "Regex extraction incomplete, falling back to LLM",
            extra={"event": "extraction.auto.llm_fallback"},
        )
        llm_result = self.llm_extractor.extract(post)
        if llm_result.succeeded:
            return llm_result

        regex_result.warnings.extend(llm_result.errors)
        return regex_result
