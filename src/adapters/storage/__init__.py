"""Storage adapters - Document blob stores."""

from .memory import InMemoryDocumentStore

__all__ = ["InMemoryDocumentStore"]
