"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check raw configuration for settings that are valid but risky.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    extraction = config_dict.get("extraction", {})
    if isinstance(extraction, dict):
        llm = extraction.get("llm", {})
        if isinstance(llm, dict):
            interval = llm.get("rate_limit_interval")
            if interval is not None:
                try:
                    if parse_duration(interval) < 12:
                        warning_messages.append(
                            f"rate_limit_interval ({interval}) is below 12s and may exceed "
                            "the LLM endpoint's 5 requests/minute limit"
                        )
                except DurationParseError:
                    # Reported properly by model validation
                    pass

        if extraction.get("mode") == "llm" and isinstance(llm, dict) and llm.get("enabled") is False:
            warning_messages.append(
                "extraction.mode is 'llm' but extraction.llm.enabled is false; LLM will be used anyway"
            )

    duplicates = config_dict.get("duplicates", {})
    if isinstance(duplicates, dict):
        threshold = duplicates.get("duplicate_threshold")
        if isinstance(threshold, (int, float)) and threshold < 0.7:
            warning_messages.append(
                f"duplicate_threshold ({threshold}) is low; fuzzy matches alone will flag duplicates"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
