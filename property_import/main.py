"""Command-line entry point for the property importer."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

from property_import.config.environment import EnvironmentConfig
from property_import.config.exceptions import ConfigurationError
from property_import.config.loader import load_config, validate_config_file
from property_import.config.models import AppConfig, ExtractionMode
from property_import.extraction.llm_client import LLMClient
from property_import.extraction.llm_extractor import LLMExtractor
from property_import.extraction.prompt import PromptRenderer
from property_import.extraction.rate_limit import RateLimiter
from property_import.extraction.service import ExtractionService
from property_import.logging import get_logger
from property_import.logging.config import configure_logging
from property_import.persistence.database import close_database, init_database
from property_import.pipeline import Finalizer, ImportAbortedError, ImportPipeline
from property_import.sources import SUPPORTED_FORMATS, PostSourceError, load_posts
from property_import.utils.cache import TTLCache

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path],
    log_level_override: Optional[str],
    extraction_mode_override: Optional[str],
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and apply command-line overrides.

    Log level priority: CLI > environment > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if extraction_mode_override:
        extraction = app_config.extraction.model_copy(update={"mode": extraction_mode_override})
        app_config = app_config.model_copy(update={"extraction": extraction})
        if app_config.llm_required and not env_config.llm_configured:
            raise ConfigurationError(
                "Extraction mode 'llm' requires an LLM endpoint",
                errors=["LLM_ENDPOINT_URL is not set"],
                suggestions=["Set LLM_ENDPOINT_URL in your environment or .env"],
            )

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_extraction_service(
    app_config: AppConfig, env_config: EnvironmentConfig
) -> ExtractionService:
    """Wire the regex extractor and, when configured, the LLM extractor."""
    extraction = app_config.extraction
    llm_extractor = None

    if app_config.llm_required and env_config.llm_configured:
        llm = extraction.llm
        client = LLMClient(
            endpoint_url=env_config.llm_endpoint_url,
            api_key=env_config.llm_api_key,
            timeout=llm.timeout_seconds,
            response_field=llm.response_field,
            user_agent=llm.user_agent,
        )
        llm_extractor = LLMExtractor(
            client,
            rate_limiter=RateLimiter(llm.rate_limit_seconds),
            cache=TTLCache(extraction.cache_ttl_seconds, max_entries=extraction.cache_max_entries),
            prompt_renderer=PromptRenderer(default_city=app_config.normalization.default_city),
        )

    return ExtractionService(mode=ExtractionMode(extraction.mode), llm_extractor=llm_extractor)


def build_pipeline(app_config: AppConfig, env_config: EnvironmentConfig) -> ImportPipeline:
    return ImportPipeline(
        extraction_service=build_extraction_service(app_config, env_config),
        finalizer=Finalizer(config=app_config.importing),
        normalization_config=app_config.normalization,
        duplicate_config=app_config.duplicates,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="property-import",
        description="Import Instagram property posts into the listings database",
    )
    parser.add_argument("posts_file", type=Path, nargs="?", help="Posts file to import")
    parser.add_argument(
        "--check-config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Validate a configuration file and exit",
    )
    parser.add_argument(
        "--format",
        dest="posts_format",
        default="json",
        choices=sorted(SUPPORTED_FORMATS),
        help="Posts file format (default: json)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--extraction-mode",
        default=None,
        choices=[mode.value for mode in ExtractionMode],
        help="Extraction mode (overrides config)",
    )
    parser.add_argument(
        "--triggered-by",
        default=None,
        help="Who or what started this import (stored on the job)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def main(argv: Optional[list] = None) -> int:
    """
    Run one import batch and print the JSON summary to stdout.

    Returns:
        0 when the job completed, 1 when it completed with errors or could not run
    """
    start_time = time.time()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.check_config is not None:
        return 0 if validate_config_file(args.check_config) else 1
    if args.posts_file is None:
        parser.error("posts_file is required unless --check-config is given")

    try:
        app_config, env_config = load_runtime_config(
            args.config, args.log_level, args.extraction_mode
        )

        # Logs go to stderr; stdout carries only the JSON summary
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
            stream=sys.stderr,
        )

        logger.info(
            "Property import starting",
            extra={
                "event": "service.starting",
                "posts_file": str(args.posts_file),
                "posts_format": args.posts_format,
                "extraction_mode": app_config.extraction.mode,
            },
        )

        posts = load_posts(args.posts_file, args.posts_format)
        logger.info(
            f"Loaded {len(posts)} posts",
            extra={"event": "posts.loaded", "post_count": len(posts)},
        )

        init_database(env_config.database_url)
        try:
            pipeline = build_pipeline(app_config, env_config)
            result = pipeline.run(posts, triggered_by=args.triggered_by)
        finally:
            close_database()

        print(json.dumps(result.to_response(), indent=2))

        logger.info(
            "Property import finished",
            extra={
                "event": "service.stopping",
                "status": result.status.value,
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )
        return 0 if result.success else 1

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except PostSourceError as e:
        print(f"Posts Error: {e}", file=sys.stderr)
        logger.error(
            f"Could not load posts: {e}",
            extra={"event": "posts.load_failed", "error_type": type(e).__name__},
        )
        return 1
    except ImportAbortedError as e:
        print(f"Import aborted: {e}", file=sys.stderr)
        logger.critical(
            f"Import aborted: {e}",
            extra={"event": "import.job.aborted", "job_id": e.job_id},
        )
        return 1
    except KeyboardInterrupt:
        print("\nImport interrupted by user", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during import",
            extra={
                "event": "service.import.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
