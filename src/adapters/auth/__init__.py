"""Auth adapters - Authentication provider implementations."""

from .memory import InMemoryAuthProvider

__all__ = ["InMemoryAuthProvider"]
