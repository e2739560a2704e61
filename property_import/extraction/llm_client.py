"""HTTP client for the LLM reasoning endpoint."""

import logging
from typing import Any, Dict, Optional

import requests

from property_import.logging import get_logger

from .exceptions import LLMHTTPError, LLMResponseError, LLMTimeoutError

logger = get_logger(__name__, component="extraction")

DEFAULT_CONTEXT = {"task": "property_extraction", "source": "instagram"}


class LLMClient:
    """Posts prompts to the LLM endpoint and returns the model's text output.

    Request body: {"query": <prompt>, "context": {...}}, authenticated with a
    bearer token. The reply is a JSON object whose `response_field` key holds
    the model output.

    Attributes:
        endpoint_url: Full URL of the reasoning endpoint
        timeout: Per-request timeout in seconds
        response_field: JSON key holding the model output
    """

    def __init__(
        self,
        endpoint_url: str,
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        response_field: str = "reasoning",
        user_agent: str = "PropertyImport/0.1",
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint_url: Full URL of the reasoning endpoint
            api_key: Bearer token (omitted from headers when None)
            timeout: Per-request timeout in seconds
            response_field: JSON key holding the model output
            user_agent: User-Agent header for requests
            session: Optional pre-built session (tests inject a mock)

        Raises:
            ValueError: If endpoint_url is empty or timeout is not positive
        """
        if not endpoint_url or not endpoint_url.strip():
            raise ValueError("endpoint_url cannot be empty")
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got: {timeout}")

        self.endpoint_url = endpoint_url.strip()
        self.timeout = timeout
        self.response_field = response_field

        self._session = session or requests.Session()
        self._session.headers.update(
            {"User-Agent": user_agent, "Content-Type": "application/json"}
        )
        if api_key:
            self._session.headers.update({"Authorization": f"Bearer {api_key}"})

    def complete(self, prompt: str, context: Optional[Dict[str, Any]] = None) -> str:
        """Send a prompt and return the model output text.

        Args:
            prompt: Fully rendered prompt
            context: Extra context object sent alongside the prompt

        Returns:
            Text found under response_field (may be empty)

        Raises:
            LLMTimeoutError: Request exceeded the timeout
            LLMHTTPError: Connection failure or 4xx/5xx status
            LLMResponseError: Body is not JSON or lacks the response field
        """
        payload = {"query": prompt, "context": context or DEFAULT_CONTEXT}
        url = self.endpoint_url

        try:
            logger.debug(
                f"HTTP POST request to {url}",
                extra={"event": "llm.request.started", "url": url, "timeout": self.timeout},
            )
            response = self._session.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"LLM request timed out after {self.timeout} seconds",
                extra={"event": "llm.request.timeout", "url": url, "timeout": self.timeout},
            )
            raise LLMTimeoutError(
                f"LLM request to {url} timed out after {self.timeout} seconds", url=url
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"LLM request to {url} failed: {e}",
                extra={"event": "llm.request.error", "error_type": type(e).__name__, "url": url},
            )
            raise LLMHTTPError(f"LLM request to {url} failed: {e}", status_code=0, url=url) from e

        if response.status_code >= 400:
            is_retryable = response.status_code >= 500
            logger.log(
                logging.WARNING if is_retryable else logging.ERROR,
                f"HTTP {response.status_code} error from LLM endpoint",
                extra={
                    "event": "llm.request.retryable_error" if is_retryable else "llm.request.error",
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise LLMHTTPError(
                f"LLM API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
                url=url,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise LLMResponseError(f"LLM endpoint returned invalid JSON: {e}") from e

        if not isinstance(data, dict) or self.response_field not in data:
            raise LLMResponseError(
                f"LLM response is missing the '{self.response_field}' field"
            )

        output = data[self.response_field]
        if output is None:
            return ""
        if not isinstance(output, str):
            raise LLMResponseError(
                f"LLM response field '{self.response_field}' is not text: {type(output).__name__}"
            )

        logger.debug(
            "LLM request succeeded",
            extra={"event": "llm.request.succeeded", "status_code": response.status_code},
        )
        return output
