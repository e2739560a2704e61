"""Heuristic caption extractor built on the regex field extractors."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from property_import.domain.models import ExtractedProperty, RawPost
from property_import.logging import get_logger

from .fields import FIELD_EXTRACTORS, Extractor
from .models import ExtractionMethod, ExtractionResult, score_confidence

logger = get_logger(__name__, component="extraction")


class RegexExtractor:
    """Builds an ExtractedProperty by running each field extractor in order.

    Missing price or location is reported as a warning here; the normalizer
    turns it into a blocking error.
    """

    def __init__(
        self,
        extractors: Optional[List[Tuple[str, Extractor]]] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.extractors = extractors if extractors is not None else FIELD_EXTRACTORS
        self.logger = logger_instance or logger

    def extract(self, post: RawPost) -> ExtractionResult:
        values: Dict[str, Any] = {}
        for field_name, extractor in self.extractors:
            value = extractor(post.text)
            if value is not None:
                values[field_name] = value

        candidate = ExtractedProperty(
            **values,
            description=post.text,
            source_url=post.post_url,
            source_handle=post.account_handle,
            images=list(post.images),
        )

        warnings = []
        if candidate.price is None:
            warnings.append("Price not found in post text")
        if candidate.location is None:
            warnings.append("Location not found in post text")

        confidence = score_confidence(candidate)
        self.logger.debug(
            "Regex extraction finished",
            extra={
                "event": "extraction.regex.completed",
                "fields_found": sorted(values),
                "confidence": confidence,
            },
        )

        return ExtractionResult(
            extracted=candidate,
            confidence=confidence,
            warnings=warnings,
            method=ExtractionMethod.REGEX,
        )
