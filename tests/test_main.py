"""Unit tests for the main entry point.

Tests the main() function including:
- CLI argument parsing
- Configuration loading with priority (CLI > env > config)
- Extraction service wiring
- Exit code handling
- Error handling
"""

import json
import logging
from unittest.mock import patch

import pytest

from property_import.config.environment import EnvironmentConfig
from property_import.config.exceptions import ConfigurationError
from property_import.config.models import AppConfig
from property_import.extraction import LLMExtractor
from property_import.main import (
    build_extraction_service,
    build_parser,
    load_runtime_config,
    main,
)
from property_import.pipeline import ImportAbortedError

ENV_VARS = ("DATABASE_URL", "LLM_ENDPOINT_URL", "LLM_API_KEY", "LOG_LEVEL", "ENVIRONMENT")

POSTS = [
    {
        "text": "Luxury 3BHK Villa for sale in Gachibowli, Price 1.5 Cr, call 98765 43210",
        "postUrl": "https://www.instagram.com/p/villa001/",
        "accountHandle": "siliconhomeshyd",
    },
    {
        "text": "Beautiful 2BHK apartment in Kondapur, DM for details",
        "postUrl": "https://www.instagram.com/p/noprice003/",
    },
]


@pytest.fixture
def env(monkeypatch, tmp_path):
    """Isolated environment: no host variables, in-memory database, empty cwd."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def posts_file(tmp_path):
    path = tmp_path / "posts.json"
    path.write_text(json.dumps(POSTS), encoding="utf-8")
    return path


class TestBuildParser:
    def test_defaults(self):
        args = build_parser().parse_args(["posts.json"])

        assert str(args.posts_file) == "posts.json"
        assert args.posts_format == "json"
        assert args.config is None
        assert args.extraction_mode is None
        assert args.triggered_by is None

    def test_check_config_option(self):
        args = build_parser().parse_args(["--check-config", "config.yaml"])
        assert str(args.check_config) == "config.yaml"
        assert args.posts_file is None

    def test_rejects_unknown_format(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["posts.csv", "--format", "csv"])


class TestLoadRuntimeConfig:
    """Test suite for load_runtime_config helper."""

    def test_log_level_priority_cli_wins(self, env):
        env.setenv("LOG_LEVEL", "WARNING")
        _, env_config = load_runtime_config(None, "DEBUG", None)
        assert env_config.log_level == "DEBUG"

    def test_log_level_from_environment(self, env):
        env.setenv("LOG_LEVEL", "warning")
        _, env_config = load_runtime_config(None, None, None)
        assert env_config.log_level == "WARNING"

    def test_log_level_from_config(self, env, tmp_path):
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("logging:\n  level: ERROR\n")

        _, env_config = load_runtime_config(config_file, None, None)

        assert env_config.log_level == "ERROR"

    def test_extraction_mode_override(self, env):
        app_config, _ = load_runtime_config(None, None, "regex")
        assert app_config.extraction.mode == "regex"

    def test_llm_override_requires_endpoint(self, env):
        with pytest.raises(ConfigurationError, match="LLM_ENDPOINT_URL"):
            load_runtime_config(None, None, "llm")


class TestBuildExtractionService:
    def test_regex_only_without_llm(self):
        service = build_extraction_service(AppConfig(), EnvironmentConfig())
        assert service.llm_extractor is None

    def test_llm_wired_when_enabled_and_configured(self):
        app_config = AppConfig.model_validate(
            {"extraction": {"llm": {"enabled": True, "timeout": "8s", "rate_limit_interval": "15s"}}}
        )
        env_config = EnvironmentConfig(
            llm_endpoint_url="https://llm.internal.test/functions/v1/reasoning", llm_api_key="k"
        )

        service = build_extraction_service(app_config, env_config)

        assert isinstance(service.llm_extractor, LLMExtractor)
        assert service.llm_extractor.client.timeout == 8.0
        assert service.llm_extractor.rate_limiter.min_interval == 15.0


class TestMain:
    """Test suite for main() entry point."""

    def test_successful_import(self, env, posts_file, capsys):
        exit_code = main([str(posts_file), "--extraction-mode", "regex", "--triggered-by", "tests"])

        assert exit_code == 0
        response = json.loads(capsys.readouterr().out)
        assert response["success"] is True
        assert response["jobId"]
        assert response["summary"] == {
            "total": 2,
            "added": 1,
            "updated": 0,
            "skipped": 1,
            "errors": 0,
        }

    def test_invalid_post_is_dropped_and_import_continues(self, env, tmp_path, capsys):
        path = tmp_path / "posts.json"
        path.write_text(json.dumps([POSTS[0], {"text": "   "}, POSTS[1]]), encoding="utf-8")

        exit_code = main([str(path), "--extraction-mode", "regex"])

        assert exit_code == 0
        response = json.loads(capsys.readouterr().out)
        assert response["summary"]["total"] == 2
        assert response["summary"]["added"] == 1
        assert response["summary"]["skipped"] == 1

    def test_export_format(self, env, tmp_path, capsys):
        export = tmp_path / "export.txt"
        export.write_text(
            "1\nOpen plot for sale at Kokapet, 75 Lakhs\nKokapet Plots\nkokapetplots\n"
            "https://www.instagram.com/p/plot002/\n2025-03-14T09:30:00.000Z\n",
            encoding="utf-8",
        )

        exit_code = main([str(export), "--format", "export", "--extraction-mode", "regex"])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out)["summary"]["added"] == 1

    def test_check_config_valid(self, env, tmp_path, capsys):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("extraction:\n  mode: regex\n")

        assert main(["--check-config", str(config_file)]) == 0
        assert "✓" in capsys.readouterr().out

    def test_check_config_invalid(self, env, tmp_path, capsys):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("extraction:\n  mode: telepathy\n")

        assert main(["--check-config", str(config_file)]) == 1
        assert "✗" in capsys.readouterr().out

    def test_posts_file_required_without_check_config(self, env):
        with pytest.raises(SystemExit):
            main([])

    def test_missing_posts_file(self, env, tmp_path, capsys):
        exit_code = main([str(tmp_path / "missing.json")])

        assert exit_code == 1
        assert "Posts Error" in capsys.readouterr().err

    def test_configuration_error(self, env, posts_file, capsys):
        exit_code = main([str(posts_file), "--config", "nonexistent.yaml"])

        assert exit_code == 1
        assert "Configuration Error" in capsys.readouterr().err

    def test_failed_posts_exit_non_zero(self, env, posts_file, capsys):
        with patch(
            "property_import.pipeline.runner.DuplicateChecker.check",
            side_effect=RuntimeError("lookup failed"),
        ):
            exit_code = main([str(posts_file), "--extraction-mode", "regex"])

        assert exit_code == 1
        response = json.loads(capsys.readouterr().out)
        assert response["success"] is False
        assert response["summary"]["errors"] == 1
        assert response["errorMessages"] == ["Post 1: lookup failed"]

    def test_aborted_import(self, env, posts_file, capsys):
        with patch(
            "property_import.pipeline.runner.Finalizer.start_job",
            side_effect=ImportAbortedError("Could not create import job: locked"),
        ):
            exit_code = main([str(posts_file), "--extraction-mode", "regex"])

        assert exit_code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Import aborted" in captured.err

    def test_unexpected_error(self, env, posts_file, capsys):
        with patch("property_import.main.init_database", side_effect=RuntimeError("boom")):
            exit_code = main([str(posts_file), "--extraction-mode", "regex"])

        assert exit_code == 1
        assert "Fatal error: boom" in capsys.readouterr().err

    def test_keyboard_interrupt(self, env, posts_file, capsys):
        with patch("property_import.main.load_posts", side_effect=KeyboardInterrupt):
            exit_code = main([str(posts_file)])

        assert exit_code == 1
        assert "interrupted" in capsys.readouterr().err
