"""
In-memory repository adapters - Implement ProfileStore and ApplicationRepository.

Used for local development and tests. State lives on the instance, so
each application or test owns its own store.
"""

import threading
from collections.abc import Mapping
from typing import Any

from src.domain.ports import Role
from src.domain.workflow import ApplicationRecord


class InMemoryProfileStore:
    """
    Implements ProfileStore protocol with a dict.

    New rows get the 'user' role, mirroring the SQL column default.
    """

    def __init__(self) -> None:
        self._rows: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get_role(self, user_id: str) -> Role | None:
        with self._lock:
            row = self._rows.get(user_id)
        if row is None:
            return None
        return Role(row["role"])

    def upsert_profile(self, user_id: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            row = self._rows.setdefault(user_id, {"role": Role.USER.value})
            row.update(fields)


class InMemoryApplicationRepository:
    """Implements ApplicationRepository protocol with a dict of frozen records."""

    def __init__(self) -> None:
        self._records: dict[str, ApplicationRecord] = {}
        self._lock = threading.Lock()

    def load(self, user_id: str) -> ApplicationRecord | None:
        with self._lock:
            return self._records.get(user_id)

    def save(self, user_id: str, record: ApplicationRecord) -> None:
        with self._lock:
            self._records[user_id] = record
