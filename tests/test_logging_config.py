"""Tests for logging configuration, formatters and component loggers."""

import io
import json
import logging
import sys
from datetime import datetime, timezone

import pytest

from property_import.logging import ComponentLoggerAdapter, get_logger
from property_import.logging.config import (
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from property_import.logging.context import log_context

KV_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _record(message="Import run completed", **extra):
    logger = logging.getLogger("tests.logging")
    return logger.makeRecord(
        "property_import.pipeline.runner",
        logging.INFO,
        "runner.py",
        1,
        message,
        (),
        None,
        extra=extra or None,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJSONFormatter:
    def test_mandatory_fields(self):
        log_obj = json.loads(JSONFormatter().format(_record()))

        assert log_obj["level"] == "INFO"
        assert log_obj["logger"] == "property_import.pipeline.runner"
        assert log_obj["message"] == "Import run completed"
        # 2025-03-14T09:30:00.123Z
        assert log_obj["timestamp"].endswith("Z")
        assert len(log_obj["timestamp"]) == 24
        assert "name" not in log_obj

    def test_extra_fields(self):
        record = _record(
            event="import.run.completed",
            added=2,
            is_duplicate=False,
            reasons=["Price is required"],
            started_at=datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc),
        )

        log_obj = json.loads(JSONFormatter().format(record))

        assert log_obj["event"] == "import.run.completed"
        assert log_obj["added"] == 2
        assert log_obj["is_duplicate"] is False
        assert log_obj["reasons"] == ["Price is required"]
        assert log_obj["started_at"] == "2025-03-14T09:30:00+00:00"

    def test_non_ascii_is_kept(self):
        log_obj = json.loads(JSONFormatter().format(_record("Price unusually low: ₹50,000")))
        assert log_obj["message"] == "Price unusually low: ₹50,000"

    def test_exception_is_formatted(self):
        try:
            raise RuntimeError("db down")
        except RuntimeError:
            record = logging.getLogger("tests").makeRecord(
                "tests", logging.ERROR, "x.py", 1, "failed", (), sys.exc_info()
            )

        log_obj = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: db down" in log_obj["exc_info"]


class TestKeyValueFormatter:
    def test_extras_are_sorted_and_quoted(self):
        formatter = KeyValueFormatter(KV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        record = _record(event="import.post.skipped", stage="normalization", reason="no price here")

        output = formatter.format(record)

        assert "[INFO] property_import.pipeline.runner: Import run completed" in output
        assert output.endswith(
            'event=import.post.skipped reason="no price here" stage=normalization'
        )

    def test_service_fields_are_omitted(self):
        formatter = KeyValueFormatter(KV_FORMAT)
        record = _record(event="x")
        ContextualFilter(environment="test").filter(record)

        output = formatter.format(record)

        assert "service=" not in output
        assert "environment=" not in output

    def test_value_rendering(self):
        formatter = KeyValueFormatter(KV_FORMAT)
        output = formatter.format(_record(flag=True, missing=None))
        assert "flag=true" in output
        assert "missing=null" in output


class TestContextualFilter:
    def test_adds_service_environment_and_context(self):
        with log_context(job_id="3f9c", post_index=2):
            record = _record()
            ContextualFilter(environment="staging").filter(record)

        assert record.service == "property-import"
        assert record.environment == "staging"
        assert record.job_id == "3f9c"
        assert record.post_index == 2

    def test_explicit_extra_wins_over_context(self):
        with log_context(post_index=2):
            record = _record(post_index=7)
            ContextualFilter().filter(record)

        assert record.post_index == 7


class TestComponentLogger:
    def test_component_is_attached(self, caplog):
        logger = get_logger("tests.component", component="duplicates")
        assert isinstance(logger, ComponentLoggerAdapter)

        with caplog.at_level(logging.INFO, logger="tests.component"):
            logger.info("Duplicate check completed", extra={"event": "duplicates.check.completed"})

        record = caplog.records[-1]
        assert record.component == "duplicates"
        assert record.event == "duplicates.check.completed"

    def test_plain_logger_without_component(self):
        assert isinstance(get_logger("tests.plain"), logging.Logger)


class TestConfigureLogging:
    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="LOUD")

    def test_invalid_format(self):
        with pytest.raises(ValueError, match="Invalid log format"):
            configure_logging(format_type="xml")

    def test_json_to_stream(self, restore_root_logger):
        stream = io.StringIO()

        configure_logging(level="DEBUG", format_type="json", environment="test", stream=stream)
        with log_context(job_id="job1"):
            logging.getLogger("property_import.tests").info(
                "Import job started", extra={"event": "import.job.started"}
            )

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert lines[0]["event"] == "logging.configured"
        assert lines[-1]["event"] == "import.job.started"
        assert lines[-1]["job_id"] == "job1"
        assert lines[-1]["environment"] == "test"
        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1

    def test_key_value_handler(self, restore_root_logger):
        configure_logging(level="warning", stream=io.StringIO())

        handler = restore_root_logger.handlers[0]
        assert isinstance(handler.formatter, KeyValueFormatter)
        assert restore_root_logger.level == logging.WARNING
