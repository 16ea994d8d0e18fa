"""Storage abstractions for engine state."""

from .registry import RecordStore, InMemoryStore

__all__ = ["RecordStore", "InMemoryStore"]
