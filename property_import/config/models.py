"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class ExtractionMode(str, Enum):
    """How captions are turned into candidate records."""

    REGEX = "regex"
    LLM = "llm"
    AUTO = "auto"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _validated_duration(value: str, label: str, min_seconds: float, max_seconds: float) -> str:
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, min_seconds=min_seconds, max_seconds=max_seconds, label=label)
    except DurationParseError as e:
        raise ValueError(str(e)) from e
    return value


class LLMConfig(BaseModel):
    """Settings for the LLM extraction endpoint.

    The endpoint URL and API key are secrets and come from the environment
    (LLM_ENDPOINT_URL, LLM_API_KEY), not from this file.
    """

    enabled: bool = Field(False, description="Whether LLM extraction may be used")
    timeout: str = Field("5s", description="Per-request timeout")
    rate_limit_interval: str = Field(
        "12s", description="Minimum spacing between consecutive LLM calls"
    )
    response_field: str = Field(
        "reasoning", min_length=1, description="JSON key holding the model's text output"
    )
    user_agent: str = Field("PropertyImport/0.1", min_length=1)

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: str) -> str:
        return _validated_duration(v, "LLM timeout", 0.5, 300)

    @field_validator("rate_limit_interval")
    @classmethod
    def validate_rate_limit_interval(cls, v: str) -> str:
        return _validated_duration(v, "Rate limit interval", 0, 3600)

    @property
    def timeout_seconds(self) -> float:
        return parse_duration(self.timeout)

    @property
    def rate_limit_seconds(self) -> float:
        return parse_duration(self.rate_limit_interval)


class ExtractionConfig(BaseModel):
    """Caption extraction settings."""

    mode: ExtractionMode = Field(ExtractionMode.AUTO, description="regex, llm or auto")
    llm: LLMConfig = Field(default_factory=LLMConfig)
    cache_ttl: str = Field("1h", description="Lifetime of cached LLM extractions")
    cache_max_entries: int = Field(1024, ge=0)

    @field_validator("cache_ttl")
    @classmethod
    def validate_cache_ttl(cls, v: str) -> str:
        return _validated_duration(v, "Cache TTL", 1, 7 * 86400)

    @property
    def cache_ttl_seconds(self) -> float:
        return parse_duration(self.cache_ttl)

    model_config = {"use_enum_values": True}


class NormalizationConfig(BaseModel):
    """Field normalization settings."""

    default_city: str = Field("Hyderabad", min_length=1)
    location_aliases: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra locality aliases merged over the built-in table",
    )

    @field_validator("default_city")
    @classmethod
    def strip_city(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("default_city cannot be empty")
        return stripped

    @field_validator("location_aliases")
    @classmethod
    def normalize_alias_keys(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Alias keys are matched against lowercase, space-free text."""
        normalized = {}
        for key, value in v.items():
            compact = "".join(key.lower().split())
            if compact and value.strip():
                normalized[compact] = value.strip()
        return normalized


class DuplicateConfig(BaseModel):
    """Duplicate detection thresholds.

    Confidences are in [0, 1]; similarities are percentages in [0, 100].
    The defaults are hand-tuned product heuristics.
    """

    duplicate_threshold: float = Field(0.85, ge=0, le=1)
    max_matches: int = Field(5, ge=1, le=50)

    source_url_confidence: float = Field(1.0, ge=0, le=1)

    phone_confidence: float = Field(0.75, ge=0, le=1)
    phone_location_confidence: float = Field(0.95, ge=0, le=1)
    phone_location_similarity: float = Field(70.0, ge=0, le=100)

    email_confidence: float = Field(0.85, ge=0, le=1)
    contact_match_limit: int = Field(5, ge=1)

    price_band: float = Field(0.10, gt=0, lt=1, description="Fractional price window (±)")
    price_band_limit: int = Field(50, ge=1)
    fuzzy_location_high: float = Field(85.0, ge=0, le=100)
    fuzzy_location_moderate: float = Field(70.0, ge=0, le=100)
    fuzzy_base_confidence: float = Field(0.70, ge=0, le=1)
    area_high_similarity: float = Field(90.0, ge=0, le=100)
    area_high_confidence: float = Field(0.90, ge=0, le=1)
    area_medium_similarity: float = Field(80.0, ge=0, le=100)
    area_medium_confidence: float = Field(0.85, ge=0, le=1)
    area_moderate_similarity: float = Field(85.0, ge=0, le=100)
    moderate_match_confidence: float = Field(0.75, ge=0, le=1)

    @model_validator(mode="after")
    def validate_ordering(self):
        if self.fuzzy_location_moderate > self.fuzzy_location_high:
            raise ValueError(
                "fuzzy_location_moderate cannot exceed fuzzy_location_high"
            )
        if self.area_medium_similarity > self.area_high_similarity:
            raise ValueError("area_medium_similarity cannot exceed area_high_similarity")
        return self


class ImportingConfig(BaseModel):
    """Finalizer behaviour."""

    platform: str = Field("instagram", min_length=1)
    update_on_source_url_match: bool = Field(
        True, description="Re-imported posts update the existing row instead of inserting"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the property importer."""

    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    duplicates: DuplicateConfig = Field(default_factory=DuplicateConfig)
    importing: ImportingConfig = Field(default_factory=ImportingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def llm_required(self) -> bool:
        """Whether the configured extraction mode needs an LLM endpoint."""
        return self.extraction.mode == ExtractionMode.LLM.value or self.extraction.llm.enabled
