"""Readers that turn posts files into RawPost batches."""

from pathlib import Path
from typing import List

from property_import.domain.models import RawPost

from .exceptions import PostSourceError, UnsupportedFormatError
from .instagram_export import load_instagram_export, parse_instagram_export
from .json_file import load_posts_json, parse_posts

SUPPORTED_FORMATS = {
    "json": load_posts_json,
    "export": load_instagram_export,
}


def load_posts(path: Path, fmt: str = "json") -> List[RawPost]:
    """Load a batch of posts in the given format ("json" or "export").

    Raises:
        UnsupportedFormatError: If the format is unknown
        PostSourceError: If the file cannot be read or parsed
    """
    loader = SUPPORTED_FORMATS.get(fmt.lower())
    if loader is None:
        supported = ", ".join(sorted(SUPPORTED_FORMATS))
        raise UnsupportedFormatError(f"Unknown posts format: {fmt}. Supported formats: {supported}")
    return loader(Path(path))


__all__ = [
    "PostSourceError",
    "UnsupportedFormatError",
    "load_posts",
    "load_posts_json",
    "load_instagram_export",
    "parse_posts",
    "parse_instagram_export",
    "SUPPORTED_FORMATS",
]
