"""
Profile sections and completion scoring.

The completion score is derived on every call from the current section
data. Nothing is cached, so the score always reflects the latest edits.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any

from .exceptions import DocumentRejected
from .ports import DocumentSlot

ALLOWED_DOCUMENT_TYPES = frozenset({"image/jpeg", "image/png"})
MAX_DOCUMENT_BYTES = 3 * 1024 * 1024

DOCUMENT_TYPE_REJECTED = "Only JPG and PNG images are allowed."
DOCUMENT_TOO_LARGE = "File must be smaller than 3MB."

REQUIRED_DOCUMENTS = (
    DocumentSlot.CITIZENSHIP_FRONT,
    DocumentSlot.CITIZENSHIP_BACK,
    DocumentSlot.PASSPORT_PHOTO,
    DocumentSlot.SIGNATURE,
)


def _filled(value: str | None) -> bool:
    return bool(value and value.strip())


class _Section:
    """Shared helpers for the text-field sections."""

    REQUIRED: tuple[str, ...] = ()

    def is_complete(self) -> bool:
        return all(_filled(getattr(self, name)) for name in self.REQUIRED)

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED if not _filled(getattr(self, name))]

    def updated(self, changes: Mapping[str, Any]):
        """Return a copy with the known fields in changes applied."""
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class PersonalDetails(_Section):
    full_name: str | None = None
    dob: str | None = None
    gender: str | None = None
    phone: str | None = None
    email: str | None = None
    guardian_name: str | None = None

    REQUIRED = ("full_name", "dob", "gender", "phone", "guardian_name")


@dataclass(frozen=True)
class AddressDetails(_Section):
    province: str | None = None
    district: str | None = None
    municipality: str | None = None
    ward: str | None = None
    permanent_address: str | None = None
    temporary_address: str | None = None
    postal_code: str | None = None

    REQUIRED = ("province", "district", "municipality", "ward", "permanent_address")


@dataclass(frozen=True)
class DocumentSet:
    """Stored document references keyed by slot. Birth certificate is optional."""

    references: Mapping[DocumentSlot, str] = field(default_factory=dict)

    def get(self, slot: DocumentSlot) -> str | None:
        return self.references.get(slot)

    def is_complete(self) -> bool:
        return all(self.references.get(slot) for slot in REQUIRED_DOCUMENTS)

    def missing_fields(self) -> list[str]:
        return [slot.value for slot in REQUIRED_DOCUMENTS if not self.references.get(slot)]

    def with_document(self, slot: DocumentSlot, reference: str | None) -> "DocumentSet":
        references = dict(self.references)
        if reference is None:
            references.pop(slot, None)
        else:
            references[slot] = reference
        return DocumentSet(references=references)

    def to_dict(self) -> dict[str, str]:
        return {slot.value: ref for slot, ref in self.references.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> "DocumentSet":
        return cls(references={DocumentSlot(key): ref for key, ref in data.items() if ref})


def completion(personal: PersonalDetails, address: AddressDetails, documents: DocumentSet) -> int:
    """
    Profile completion percentage, 0-100.

    Each of the three sections counts as one third; a section counts only
    when all of its required fields are filled.
    """
    sections = (personal, address, documents)
    completed = sum(1 for section in sections if section.is_complete())
    return round(100 * completed / len(sections))


def check_document(content_type: str | None, size: int) -> None:
    """
    Intake check run before any upload is attempted.

    Raises:
        DocumentRejected: Type is not JPEG/PNG or size exceeds 3 MiB
    """
    if content_type not in ALLOWED_DOCUMENT_TYPES:
        raise DocumentRejected(DOCUMENT_TYPE_REJECTED)
    if size > MAX_DOCUMENT_BYTES:
        raise DocumentRejected(DOCUMENT_TOO_LARGE)
