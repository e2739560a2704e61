"""Data models for import run tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from property_import.domain.models import JobStatus
from property_import.duplicates.models import DuplicateCheckResult


class RecordStatus(str, Enum):
    """What happened to one post."""

    ADDED = "added"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RecordOutcome:
    """Outcome of importing a single post.

    Attributes:
        index: Position of the post in the batch (0-based)
        status: added, updated, skipped or failed
        property_id: Id of the written property row (added/updated only)
        messages: Skip reasons or failure messages
        warnings: Extraction and normalization warnings
        duplicate: Duplicate check result, when the check ran
        post_url: Source URL of the post, for reporting
    """

    index: int
    status: RecordStatus
    property_id: Optional[str] = None
    messages: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    duplicate: Optional[DuplicateCheckResult] = None
    post_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "index": self.index,
            "status": self.status.value,
            "propertyId": self.property_id,
            "postUrl": self.post_url,
            "messages": list(self.messages),
            "warnings": list(self.warnings),
        }
        if self.duplicate is not None:
            data["duplicate"] = {
                "isDuplicate": self.duplicate.is_duplicate,
                "highestConfidence": self.duplicate.highest_confidence,
                "matchIds": [m.candidate_id for m in self.duplicate.matches],
            }
        return data


@dataclass
class ImportSummary:
    """Counters for one run.

    Attributes:
        total: Posts received
        added: New property rows
        updated: Existing rows refreshed from a re-imported post
        skipped: Posts with nothing persistable (missing price/location, ...)
        errors: Posts whose duplicate check or write failed
    """

    total: int = 0
    added: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0

    @classmethod
    def from_outcomes(cls, total: int, outcomes: List[RecordOutcome]) -> "ImportSummary":
        counts = {status: 0 for status in RecordStatus}
        for outcome in outcomes:
            counts[outcome.status] += 1
        return cls(
            total=total,
            added=counts[RecordStatus.ADDED],
            updated=counts[RecordStatus.UPDATED],
            skipped=counts[RecordStatus.SKIPPED],
            errors=counts[RecordStatus.FAILED],
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "added": self.added,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
        }


@dataclass
class ImportRunResult:
    """Aggregate result of one import batch.

    Attributes:
        job_id: Id of the import job row
        status: Terminal job status
        summary: Counters
        records: Per-post outcomes, in input order
        error_messages: Failure messages (one per failed post)
        started_at: When the job started (UTC)
        completed_at: When the job finished (UTC)
    """

    job_id: str
    status: JobStatus
    summary: ImportSummary
    records: List[RecordOutcome] = field(default_factory=list)
    error_messages: List[str] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return self.status == JobStatus.COMPLETED

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def to_response(self, include_records: bool = False) -> Dict[str, Any]:
        """Wire-format summary: {success, jobId, summary, errorMessages?}."""
        response: Dict[str, Any] = {
            "success": self.success,
            "jobId": self.job_id,
            "summary": self.summary.to_dict(),
        }
        if self.error_messages:
            response["errorMessages"] = list(self.error_messages)
        if include_records:
            response["records"] = [record.to_dict() for record in self.records]
        return response
