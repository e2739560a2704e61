"""Environment variable loading and validation."""

import os
from typing import Optional
from urllib.parse import urlparse

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/property_import.db"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        llm_endpoint_url: Optional[str] = None,
        llm_api_key: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.llm_endpoint_url = llm_endpoint_url
        self.llm_api_key = llm_api_key
        self.log_level = log_level
        self.environment = environment or "local"

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_endpoint_url)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/property_import.db)
    - LLM_ENDPOINT_URL: HTTP endpoint of the LLM extraction function
    - LLM_API_KEY: Bearer token sent to the LLM endpoint
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Label attached to every log record (default: local)

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If any variable is present but invalid
    """
    errors = []

    database_url = os.getenv("DATABASE_URL")
    llm_endpoint_url = os.getenv("LLM_ENDPOINT_URL")
    llm_api_key = os.getenv("LLM_API_KEY")
    log_level = os.getenv("LOG_LEVEL")
    environment = os.getenv("ENVIRONMENT")

    if database_url is not None and "://" not in database_url:
        errors.append(
            f"Invalid DATABASE_URL: '{database_url}'. Expected a URL like sqlite:///./data/import.db"
        )

    if llm_endpoint_url:
        parsed = urlparse(llm_endpoint_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(
                f"Invalid LLM_ENDPOINT_URL: '{llm_endpoint_url}'. Must be an http(s) URL."
            )

    if llm_api_key and not llm_endpoint_url:
        errors.append("LLM_API_KEY is set but LLM_ENDPOINT_URL is not.")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your values",
                "Unset variables you do not need; all of them are optional",
            ],
        )

    return EnvironmentConfig(
        database_url=database_url,
        llm_endpoint_url=llm_endpoint_url,
        llm_api_key=llm_api_key,
        log_level=log_level.upper() if log_level else None,
        environment=environment,
    )
