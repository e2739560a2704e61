"""Exceptions raised while reading post batches."""


class PostSourceError(Exception):
    """The posts file could not be read or contains invalid posts.

    Raised before any job is created, so nothing is written to the database.
    """

    pass


class UnsupportedFormatError(PostSourceError):
    """Unknown posts file format."""

    pass
