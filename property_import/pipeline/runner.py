"""Pipeline orchestration for importing a batch of Instagram posts."""

import logging
from typing import Callable, ContextManager, List, Optional

from sqlalchemy.orm import Session

from property_import.config.models import DuplicateConfig, NormalizationConfig
from property_import.domain.models import ImportJob, RawPost
from property_import.duplicates.checker import DuplicateChecker
from property_import.extraction.service import ExtractionService
from property_import.logging import get_logger
from property_import.logging.context import log_context
from property_import.normalization.service import normalize_property
from property_import.persistence.database import get_session
from property_import.persistence.repositories import PropertyRepository

from .finalizer import Finalizer
from .models import ImportRunResult, ImportSummary, RecordOutcome, RecordStatus

logger = get_logger(__name__, component="pipeline")


class ImportPipeline:
    """
    Runs one import batch: extract -> normalize -> duplicate check -> persist.

    Posts are processed one at a time in input order. Each post gets its own
    database transaction, so a failing post never rolls back the others.
    """

    def __init__(
        self,
        extraction_service: ExtractionService,
        finalizer: Optional[Finalizer] = None,
        normalization_config: Optional[NormalizationConfig] = None,
        duplicate_config: Optional[DuplicateConfig] = None,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """
        Initialize the import pipeline.

        Args:
            extraction_service: Turns captions into candidate records
            finalizer: Job bookkeeping and property writes
            normalization_config: Default city and locality aliases
            duplicate_config: Duplicate detection thresholds
            session_factory: Context manager yielding a transactional session
            logger_instance: Logger override (tests)
        """
        self.extraction_service = extraction_service
        self.session_factory = session_factory
        self.finalizer = finalizer or Finalizer(session_factory=session_factory)
        self.normalization_config = normalization_config or NormalizationConfig()
        self.duplicate_config = duplicate_config or DuplicateConfig()
        self.logger = logger_instance or logger

    def run(self, posts: List[RawPost], triggered_by: Optional[str] = None) -> ImportRunResult:
        """
        Import a batch of posts.

        The job is finalized only after every post has been attempted.

        Returns:
            ImportRunResult with counters and per-post outcomes

        Raises:
            ImportAbortedError: If the job row cannot be created or finalized.
                Per-post problems never raise; they are recorded as skipped
                or failed outcomes.
        """
        job = self.finalizer.start_job(posts, triggered_by=triggered_by)

        with log_context(job_id=job.id):
            outcomes = [self._process_post(index, post, job) for index, post in enumerate(posts)]
            job = self.finalizer.finish_job(job, outcomes)

            result = ImportRunResult(
                job_id=job.id,
                status=job.status,
                summary=ImportSummary.from_outcomes(len(posts), outcomes),
                records=outcomes,
                error_messages=list(job.error_messages),
                started_at=job.started_at,
                completed_at=job.completed_at,
            )

            self.logger.info(
                "Import run completed",
                extra={
                    "event": "import.run.completed",
                    "status": result.status.value,
                    "duration_ms": int(result.duration_seconds * 1000),
                    **result.summary.to_dict(),
                },
            )
            return result

    def _process_post(self, index: int, post: RawPost, job: ImportJob) -> RecordOutcome:
        """Run one post through the pipeline and classify the outcome."""
        outcome = RecordOutcome(index=index, status=RecordStatus.SKIPPED, post_url=post.post_url)

        with log_context(post_index=index):
            try:
                extraction = self.extraction_service.extract(post)
                outcome.warnings.extend(extraction.warnings)

                if extraction.errors or extraction.extracted is None:
                    outcome.messages.extend(extraction.errors or ["No property data extracted"])
                    return self._skipped(outcome, "extraction")

                normalized = normalize_property(
                    extraction.extracted,
                    default_city=self.normalization_config.default_city,
                    aliases=self.normalization_config.location_aliases,
                )
                outcome.warnings.extend(normalized.warnings)

                if not normalized.is_persistable:
                    outcome.messages.extend(normalized.errors)
                    return self._skipped(outcome, "normalization")

                with self.session_factory() as session:
                    checker = DuplicateChecker(PropertyRepository(session), self.duplicate_config)
                    duplicate_result = checker.check(normalized.property)
                    outcome.duplicate = duplicate_result

                    status, record = self.finalizer.persist(
                        session, normalized, duplicate_result, job, post
                    )

                outcome.status = status
                outcome.property_id = record.id
                return outcome

            except Exception as e:
                # One bad post must not stop the batch
                outcome.status = RecordStatus.FAILED
                outcome.messages.append(str(e) or type(e).__name__)
                self.logger.error(
                    f"Failed to import post {index + 1}: {e}",
                    extra={
                        "event": "import.post.failed",
                        "error_type": type(e).__name__,
                        "post_url": post.post_url,
                    },
                    exc_info=True,
                )
                return outcome

    def _skipped(self, outcome: RecordOutcome, stage: str) -> RecordOutcome:
        outcome.status = RecordStatus.SKIPPED
        self.logger.info(
            f"Post {outcome.index + 1} skipped at {stage}",
            extra={
                "event": "import.post.skipped",
                "stage": stage,
                "reasons": list(outcome.messages),
                "post_url": outcome.post_url,
            },
        )
        return outcome
