"""Pipeline exceptions."""

from typing import Optional

from property_import.domain.models import JobStateError


class ImportAbortedError(Exception):
    """The batch could not run at all (e.g. the job row could not be created).

    This is the only failure that propagates out of ImportPipeline.run().
    """

    def __init__(self, message: str, job_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.job_id = job_id


class InvalidPropertyError(ValueError):
    """A record reached persistence without a positive price or a location."""

    pass


__all__ = ["ImportAbortedError", "InvalidPropertyError", "JobStateError"]
