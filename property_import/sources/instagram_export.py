"""Parser for the raw text export copied out of the Instagram scraper.

The export is a sequence of numbered entries:

    1
    🏡 3BHK villa in Kokapet, 2.5 Cr ...   (caption, one or more lines)
    Silicon Homes                          (account name)
    siliconhomeshyd                        (handle)
    https://www.instagram.com/p/abc123/
    2024-05-01T10:15:00.000Z
    152                                    (engagement counts)
    3 items
    2
    ...
"""

import re
from pathlib import Path
from typing import List, Optional

from property_import.domain.models import RawPost
from property_import.logging import get_logger

from .exceptions import PostSourceError

logger = get_logger(__name__, component="sources")

INSTAGRAM_URL_PREFIXES = ("https://www.instagram.com", "https://instagram.com")

_NUMBER_RE = re.compile(r"^-?\d+$")
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T")
_ITEMS_RE = re.compile(r"^\d+\s+items?$", re.IGNORECASE)


class _Entry:
    def __init__(self):
        self.lines: List[str] = []
        self.url: Optional[str] = None
        self.timestamp: Optional[str] = None

    def to_post(self) -> Optional[RawPost]:
        """Build a post, or None when caption or URL is missing."""
        if self.url is None:
            return None

        lines = list(self.lines)
        account_handle = None
        if len(lines) >= 3:
            # Last two lines before the URL are account name and handle
            account_handle = lines.pop().lstrip("@").strip() or None
            lines.pop()

        caption = "\n".join(lines).strip()
        if not caption:
            return None

        return RawPost(
            text=caption,
            post_url=self.url,
            account_handle=account_handle,
            timestamp=self.timestamp,
        )


def parse_instagram_export(text: str) -> List[RawPost]:
    """Parse a raw export into posts.

    A bare number starts a new entry when it is the next entry number;
    other bare numbers are engagement counts and are ignored, as are
    "N items" lines. Entries without both caption and URL are dropped, and
    so are entries that fail validation (e.g. an unparseable timestamp).
    """
    entries: List[_Entry] = []
    current: Optional[_Entry] = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if _NUMBER_RE.match(line):
            if int(line) == len(entries) + 1:
                current = _Entry()
                entries.append(current)
            continue

        if current is None or _ITEMS_RE.match(line):
            continue

        if line.startswith(INSTAGRAM_URL_PREFIXES):
            if current.url is None:
                current.url = line
            continue

        if current.url is not None:
            if current.timestamp is None and _TIMESTAMP_RE.match(line):
                current.timestamp = line
            continue

        current.lines.append(line)

    posts = []
    for number, entry in enumerate(entries, start=1):
        try:
            post = entry.to_post()
        except ValueError as e:
            logger.warning(
                f"Export entry {number} is invalid and was dropped: {e}",
                extra={"event": "sources.post.invalid", "post_number": number, "reason": str(e)},
            )
            continue
        if post is not None:
            posts.append(post)

    dropped = len(entries) - len(posts)
    if dropped:
        logger.warning(
            f"Dropped {dropped} of {len(entries)} export entries",
            extra={"event": "sources.export.entries_dropped", "dropped": dropped, "entries": len(entries)},
        )

    return posts


def load_instagram_export(path: Path) -> List[RawPost]:
    """Read and parse an export file.

    Raises:
        PostSourceError: If the file cannot be read or parsed
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise PostSourceError(f"Failed to read export file {path}: {e}") from e
    return parse_instagram_export(text)
