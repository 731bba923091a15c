"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryApplicationRepository, InMemoryProfileStore
from .postgres import PostgresApplicationRepository, PostgresProfileStore, run_migrations

__all__ = [
    "InMemoryApplicationRepository",
    "InMemoryProfileStore",
    "PostgresApplicationRepository",
    "PostgresProfileStore",
    "run_migrations",
]
