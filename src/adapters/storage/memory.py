"""In-memory document store - Implements DocumentStore protocol."""

import threading
import uuid
from dataclasses import dataclass

from src.domain.ports import DocumentSlot


@dataclass(frozen=True)
class StoredDocument:
    user_id: str
    slot: DocumentSlot
    content_type: str
    data: bytes


class InMemoryDocumentStore:
    """Keeps uploaded blobs in a dict keyed by reference."""

    def __init__(self) -> None:
        self._blobs: dict[str, StoredDocument] = {}
        self._lock = threading.Lock()

    def put(self, user_id: str, slot: DocumentSlot, content_type: str, data: bytes) -> str:
        reference = f"{user_id}/{slot.value}/{uuid.uuid4().hex}"
        with self._lock:
            self._blobs[reference] = StoredDocument(user_id, slot, content_type, data)
        return reference

    def delete(self, reference: str) -> None:
        with self._lock:
            self._blobs.pop(reference, None)

    def get(self, reference: str) -> StoredDocument | None:
        with self._lock:
            return self._blobs.get(reference)
