"""Custom exceptions for caption extraction."""


class ExtractionError(Exception):
    """Base exception for all extraction errors.

    Catching this exception covers every failure of the LLM extraction path
    (network, HTTP status, unparseable output). The extractor converts these
    into a skipped record rather than aborting the batch.
    """

    pass


class LLMHTTPError(ExtractionError):
    """LLM endpoint returned a 4xx/5xx status or the connection failed.

    status_code is 0 when no HTTP response was received.
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class LLMTimeoutError(ExtractionError):
    """LLM request did not complete within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class LLMResponseError(ExtractionError):
    """LLM response could not be parsed into a property record.

    Covers invalid JSON bodies, a missing response field and model output
    that contains no usable JSON object.
    """

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response
