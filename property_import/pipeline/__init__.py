"""Import batch orchestration and job bookkeeping."""

from .exceptions import ImportAbortedError, InvalidPropertyError, JobStateError
from .finalizer import Finalizer
from .models import ImportRunResult, ImportSummary, RecordOutcome, RecordStatus
from .runner import ImportPipeline

__all__ = [
    "ImportAbortedError",
    "InvalidPropertyError",
    "JobStateError",
    "Finalizer",
    "ImportRunResult",
    "ImportSummary",
    "RecordOutcome",
    "RecordStatus",
    "ImportPipeline",
]
