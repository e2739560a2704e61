"""Job bookkeeping and property writes.

The Finalizer owns the import job lifecycle (start_job / finish_job) and
the per-record write decision (persist): update on an exact source-URL
match, insert otherwise.
"""

import logging
from datetime import datetime
from typing import Callable, ContextManager, List, Optional, Tuple

from sqlalchemy.orm import Session

from property_import.config.models import ImportingConfig
from property_import.domain.models import ImportJob, PropertyRecord, RawPost
from property_import.duplicates.models import DuplicateCheckResult
from property_import.logging import get_logger
from property_import.normalization.models import PropertyNormalization
from property_import.persistence.database import get_session
from property_import.persistence.exceptions import PersistenceError
from property_import.persistence.repositories import (
    ImportJobRepository,
    PropertyImageRepository,
    PropertyRepository,
    new_id,
)
from property_import.utils.timestamps import utc_now

from .exceptions import ImportAbortedError, InvalidPropertyError
from .models import RecordOutcome, RecordStatus

logger = get_logger(__name__, component="finalizer")


def _raw_source_data(post: RawPost) -> dict:
    return post.model_dump(mode="json")


class Finalizer:
    """Writes import jobs and property rows.

    Attributes:
        config: Importing settings (platform, update-on-URL-match)
    """

    def __init__(
        self,
        config: Optional[ImportingConfig] = None,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.config = config or ImportingConfig()
        self.session_factory = session_factory
        self.clock = clock
        self.logger = logger_instance or logger

    def start_job(self, posts: List[RawPost], triggered_by: Optional[str] = None) -> ImportJob:
        """Create the job row in running state, storing the raw posts.

        Raises:
            ImportAbortedError: If the job row cannot be written
        """
        job = ImportJob(
            id=new_id(),
            platform=self.config.platform,
            triggered_by=triggered_by,
            properties_found=len(posts),
        )
        job.start(self.clock())

        try:
            with self.session_factory() as session:
                ImportJobRepository(session).create(
                    job, import_data=[_raw_source_data(post) for post in posts]
                )
        except PersistenceError as e:
            self.logger.error(
                f"Could not create import job: {e}",
                extra={"event": "import.job.create_failed", "error_type": type(e).__name__},
            )
            raise ImportAbortedError(f"Could not create import job: {e}") from e

        self.logger.info(
            "Import job started",
            extra={
                "event": "import.job.started",
                "job_id": job.id,
                "post_count": len(posts),
                "triggered_by": triggered_by,
            },
        )
        return job

    def persist(
        self,
        session: Session,
        normalized: PropertyNormalization,
        duplicate_result: Optional[DuplicateCheckResult],
        job: ImportJob,
        raw_post: RawPost,
    ) -> Tuple[RecordStatus, PropertyRecord]:
        """Write one normalized record.

        Returns:
            (RecordStatus.UPDATED or RecordStatus.ADDED, the written row)

        Raises:
            InvalidPropertyError: If the record has errors, no positive price or no location
            PersistenceError: If the write fails
        """
        candidate = normalized.property
        if not normalized.is_persistable:
            raise InvalidPropertyError(
                f"Record has blocking errors: {'; '.join(normalized.errors)}"
            )
        if not isinstance(candidate.price, int) or candidate.price <= 0:
            raise InvalidPropertyError(f"Price must be a positive integer, got: {candidate.price!r}")
        if not candidate.location or not candidate.location.strip():
            raise InvalidPropertyError("Location is required")

        properties = PropertyRepository(session)
        images = PropertyImageRepository(session)
        now = self.clock()
        raw = _raw_source_data(raw_post)

        url_match = duplicate_result.source_url_match if duplicate_result else None
        if url_match is not None and self.config.update_on_source_url_match:
            record = properties.update_from_import(
                url_match.candidate_id,
                candidate,
                import_job_id=job.id,
                raw_source_data=raw,
                now=now,
            )
            images.replace_images(record.id, candidate.images)
            self.logger.info(
                "Property updated from re-imported post",
                extra={"event": "import.property.updated", "property_id": record.id},
            )
            return RecordStatus.UPDATED, record

        duplicate_of = None
        duplicate_confidence = None
        if duplicate_result is not None and duplicate_result.is_duplicate:
            duplicate_of = duplicate_result.top_match.candidate_id
            duplicate_confidence = duplicate_result.highest_confidence

        record = properties.insert(
            candidate,
            platform=self.config.platform,
            import_job_id=job.id,
            raw_source_data=raw,
            duplicate_of=duplicate_of,
            duplicate_confidence=duplicate_confidence,
            now=now,
        )
        images.add_images(record.id, candidate.images)

        self.logger.info(
            "Property added",
            extra={
                "event": "import.property.added",
                "property_id": record.id,
                "duplicate_of": duplicate_of,
                "duplicate_confidence": duplicate_confidence,
            },
        )
        return RecordStatus.ADDED, record

    def finish_job(self, job: ImportJob, outcomes: List[RecordOutcome]) -> ImportJob:
        """Write final counters and the terminal status.

        The job ends completed_with_errors iff at least one record failed.

        Raises:
            ImportAbortedError: If the job row cannot be updated
        """
        counts = {status: 0 for status in RecordStatus}
        error_messages = []
        for outcome in outcomes:
            counts[outcome.status] += 1
            if outcome.status == RecordStatus.FAILED:
                error_messages.extend(f"Post {outcome.index + 1}: {m}" for m in outcome.messages)

        job.finish(
            completed_at=self.clock(),
            added=counts[RecordStatus.ADDED],
            updated=counts[RecordStatus.UPDATED],
            skipped=counts[RecordStatus.SKIPPED],
            failed=counts[RecordStatus.FAILED],
            error_messages=error_messages,
        )

        try:
            with self.session_factory() as session:
                ImportJobRepository(session).update(job)
        except PersistenceError as e:
            self.logger.error(
                f"Could not finalize import job {job.id}: {e}",
                extra={"event": "import.job.finish_failed", "job_id": job.id},
            )
            raise ImportAbortedError(f"Could not finalize import job: {e}", job_id=job.id) from e

        self.logger.info(
            "Import job finished",
            extra={
                "event": "import.job.completed",
                "job_id": job.id,
                "status": job.status.value,
                "added": job.properties_added,
                "updated": job.properties_updated,
                "skipped": job.properties_skipped,
                "failed": job.properties_failed,
            },
        )
        return job
