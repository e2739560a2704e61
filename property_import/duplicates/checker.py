"""Duplicate detection against already-stored properties.

Strategies, in order:
1. Exact source URL (short-circuits with a single match)
2. Exact contact phone, boosted when locations are similar
3. Exact contact email
4. Fuzzy location/area over properties within a price band

Matches from all strategies are merged, keeping the best per stored
property, and ranked by confidence.
"""

import logging
from typing import Dict, List, Optional, Protocol

from property_import.config.models import DuplicateConfig
from property_import.domain.models import ExtractedProperty
from property_import.logging import get_logger

from .models import DuplicateCheckResult, DuplicateMatch, ExistingProperty
from .similarity import area_similarity, location_similarity

logger = get_logger(__name__, component="duplicates")


class PropertyLookup(Protocol):
    """Read access to stored properties needed by the checker."""

    def find_by_source_url(self, source_url: str) -> List[ExistingProperty]:
        """All properties with this source URL, oldest first."""
        ...

    def find_by_phone(self, phone: str, limit: int) -> List[ExistingProperty]:
        ...

    def find_by_email(self, email: str, limit: int) -> List[ExistingProperty]:
        ...

    def find_in_price_range(
        self, min_price: float, max_price: float, limit: int
    ) -> List[ExistingProperty]:
        ...


class DuplicateChecker:
    """Scores how likely a normalized candidate duplicates a stored property.

    Lookup errors propagate to the caller; the pipeline records them as a
    failed post.
    """

    def __init__(
        self,
        lookup: PropertyLookup,
        config: Optional[DuplicateConfig] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.lookup = lookup
        self.config = config or DuplicateConfig()
        self.logger = logger_instance or logger

    def check(self, candidate: ExtractedProperty) -> DuplicateCheckResult:
        """Check one normalized candidate.

        Args:
            candidate: Normalized record (price is integer rupees)

        Returns:
            DuplicateCheckResult with ranked matches
        """
        cfg = self.config

        if candidate.source_url:
            url_match = self._check_source_url(candidate.source_url)
            if url_match is not None:
                self._log_result(candidate, [url_match], url_match.confidence)
                return DuplicateCheckResult(
                    is_duplicate=True,
                    matches=[url_match],
                    highest_confidence=url_match.confidence,
                )

        matches: List[DuplicateMatch] = []
        if candidate.contact_phone:
            matches.extend(self._check_phone(candidate))
        if candidate.contact_email:
            matches.extend(self._check_email(candidate))
        if isinstance(candidate.price, (int, float)) and candidate.price > 0:
            matches.extend(self._check_price_band(candidate))

        ranked = self._merge(matches)[: cfg.max_matches]
        highest = ranked[0].confidence if ranked else 0.0

        self._log_result(candidate, ranked, highest)
        return DuplicateCheckResult(
            is_duplicate=highest >= cfg.duplicate_threshold,
            matches=ranked,
            highest_confidence=highest,
        )

    def _check_source_url(self, source_url: str) -> Optional[DuplicateMatch]:
        rows = self.lookup.find_by_source_url(source_url)
        if not rows:
            return None

        if len(rows) > 1:
            self.logger.warning(
                "Multiple properties share a source URL, using the oldest",
                extra={
                    "event": "duplicates.source_url.ambiguous",
                    "source_url": source_url,
                    "row_count": len(rows),
                },
            )

        existing = rows[0]
        return DuplicateMatch(
            candidate_id=existing.id,
            confidence=self.config.source_url_confidence,
            reason="Exact source URL match",
            matched_field="source_url",
            existing_summary=existing.summary(),
        )

    def _check_phone(self, candidate: ExtractedProperty) -> List[DuplicateMatch]:
        cfg = self.config
        matches = []
        for existing in self.lookup.find_by_phone(candidate.contact_phone, cfg.contact_match_limit):
            loc_sim = location_similarity(candidate.location, existing.location)
            if loc_sim >= cfg.phone_location_similarity:
                matches.append(
                    DuplicateMatch(
                        candidate_id=existing.id,
                        confidence=cfg.phone_location_confidence,
                        reason="Same phone number and similar location",
                        matched_field="source_contact_phone",
                        existing_summary=existing.summary(),
                    )
                )
            else:
                matches.append(
                    DuplicateMatch(
                        candidate_id=existing.id,
                        confidence=cfg.phone_confidence,
                        reason="Same phone number, different location",
                        matched_field="source_contact_phone",
                        existing_summary=existing.summary(),
                    )
                )
        return matches

    def _check_email(self, candidate: ExtractedProperty) -> List[DuplicateMatch]:
        cfg = self.config
        return [
            DuplicateMatch(
                candidate_id=existing.id,
                confidence=cfg.email_confidence,
                reason="Same email address",
                matched_field="source_contact_email",
                existing_summary=existing.summary(),
            )
            for existing in self.lookup.find_by_email(candidate.contact_email, cfg.contact_match_limit)
        ]

    def _check_price_band(self, candidate: ExtractedProperty) -> List[DuplicateMatch]:
        cfg = self.config
        price = candidate.price
        min_price = price * (1 - cfg.price_band)
        max_price = price * (1 + cfg.price_band)

        matches = []
        for existing in self.lookup.find_in_price_range(min_price, max_price, cfg.price_band_limit):
            loc_sim = location_similarity(candidate.location, existing.location)
            area_sim = area_similarity(candidate.area, existing.area)
            price_sim = (1 - abs(existing.price - price) / price) * 100

            if loc_sim > cfg.fuzzy_location_high:
                confidence = cfg.fuzzy_base_confidence
                if area_sim > cfg.area_high_similarity:
                    confidence = cfg.area_high_confidence
                elif area_sim > cfg.area_medium_similarity:
                    confidence = cfg.area_medium_confidence

                reason = f"Similar location ({loc_sim:.0f}%), price ({price_sim:.0f}%)"
                if area_sim > 0:
                    reason += f", area ({area_sim:.0f}%)"
                matches.append(
                    DuplicateMatch(
                        candidate_id=existing.id,
                        confidence=confidence,
                        reason=reason,
                        matched_field="location_price",
                        existing_summary=existing.summary(),
                    )
                )
            elif loc_sim > cfg.fuzzy_location_moderate and area_sim > cfg.area_moderate_similarity:
                matches.append(
                    DuplicateMatch(
                        candidate_id=existing.id,
                        confidence=cfg.moderate_match_confidence,
                        reason=(
                            f"Similar location ({loc_sim:.0f}%), area ({area_sim:.0f}%), "
                            f"price ({price_sim:.0f}%)"
                        ),
                        matched_field="location_area_price",
                        existing_summary=existing.summary(),
                    )
                )
        return matches

    @staticmethod
    def _merge(matches: List[DuplicateMatch]) -> List[DuplicateMatch]:
        """Keep the highest-confidence match per stored property, best first.

        Ties keep strategy order (phone, email, fuzzy).
        """
        best: Dict[str, DuplicateMatch] = {}
        for match in matches:
            current = best.get(match.candidate_id)
            if current is None or match.confidence > current.confidence:
                best[match.candidate_id] = match
        return sorted(best.values(), key=lambda m: m.confidence, reverse=True)

    def _log_result(
        self, candidate: ExtractedProperty, matches: List[DuplicateMatch], highest: float
    ) -> None:
        self.logger.info(
            "Duplicate check completed",
            extra={
                "event": "duplicates.check.completed",
                "match_count": len(matches),
                "highest_confidence": highest,
                "is_duplicate": highest >= self.config.duplicate_threshold,
                "top_match_id": matches[0].candidate_id if matches else None,
            },
        )
