"""JSON posts files."""

import json
from pathlib import Path
from typing import Any, List

from pydantic import ValidationError

from property_import.domain.models import RawPost
from property_import.logging import get_logger

from .exceptions import PostSourceError

logger = get_logger(__name__, component="sources")


def parse_posts(payload: Any) -> List[RawPost]:
    """Validate a decoded posts payload.

    Accepts a list of post objects or a mapping with a "posts" list, the
    shape of the import endpoint's request body.

    Invalid post entries are logged and left out of the batch; only a wrong
    payload shape is fatal.

    Raises:
        PostSourceError: If the payload shape is wrong
    """
    if isinstance(payload, dict):
        if "posts" not in payload:
            raise PostSourceError('Expected a list of posts or an object with a "posts" key')
        payload = payload["posts"]

    if not isinstance(payload, list):
        raise PostSourceError(f"Posts must be a list, got {type(payload).__name__}")

    posts = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            _log_invalid_post(index, f"expected an object, got {type(item).__name__}")
            continue
        try:
            posts.append(RawPost.model_validate(item))
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            _log_invalid_post(index, details)

    return posts


def _log_invalid_post(index: int, reason: str) -> None:
    logger.warning(
        f"Post {index + 1} is invalid and was dropped: {reason}",
        extra={"event": "sources.post.invalid", "post_number": index + 1, "reason": reason},
    )


def load_posts_json(path: Path) -> List[RawPost]:
    """Read posts from a JSON file.

    Raises:
        PostSourceError: If the file cannot be read, is not JSON or has the wrong shape
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as e:
        raise PostSourceError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise PostSourceError(f"Failed to read posts file {path}: {e}") from e

    return parse_posts(payload)
