"""In-memory adapters for offline use and tests."""

from .curation_store import InMemoryCurationStore

__all__ = ["InMemoryCurationStore"]
