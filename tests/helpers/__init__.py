"""Test helper utilities for property importer tests."""

from .fakes import FakeLLMClient, InMemoryLookup, make_existing

__all__ = ["FakeLLMClient", "InMemoryLookup", "make_existing"]
