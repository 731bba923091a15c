"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the state enums shared across the domain and the
interfaces (ports) the domain requires from external collaborators:
authentication, profile storage, document storage and application
persistence. Adapters implement these protocols.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .workflow import ApplicationRecord


class Role(str, Enum):
    """Account role. Advisory only; used for display labels."""

    USER = "user"
    ADMIN = "admin"


class VerificationStatus(str, Enum):
    """
    Government verification states for a licence application.

    Transitions:
    - NOT_SUBMITTED -> PENDING (citizen submits at 100% completion)
    - PENDING -> APPROVED | REJECTED (external reviewer decision)
    - REJECTED -> PENDING (citizen resubmits)

    APPROVED is terminal for citizen-triggered transitions.
    """

    NOT_SUBMITTED = "not_submitted"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewDecision(str, Enum):
    """Outcome delivered by the external reviewer."""

    APPROVE = "approve"
    REJECT = "reject"


class ExamPhase(str, Enum):
    """
    Theory exam eligibility phases.

    State Transitions:
    - NOT_TAKEN -> PASSED (score >= 80, terminal)
    - NOT_TAKEN -> FAILED_LOCKED (score < 80, 90-day cooldown)
    - FAILED_LOCKED -> NOT_TAKEN (cooldown lapses, retry allowed)
    """

    NOT_TAKEN = "not_taken"
    PASSED = "passed"
    FAILED_LOCKED = "failed_locked"


class DocumentSlot(str, Enum):
    """Named document uploads on a licence application."""

    CITIZENSHIP_FRONT = "citizenship_front"
    CITIZENSHIP_BACK = "citizenship_back"
    PASSPORT_PHOTO = "passport_photo"
    BIRTH_CERTIFICATE = "birth_certificate"
    SIGNATURE = "signature"


class AuthEventKind(str, Enum):
    """Session-change notifications emitted by the auth provider."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


@dataclass(frozen=True)
class SessionIdentity:
    """Authenticated user as reported by the auth provider."""

    user_id: str
    email: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def metadata_role(self) -> str | None:
        return self.metadata.get("role")


@dataclass(frozen=True)
class AuthEvent:
    """Inbound session-change event; identity is None when signed out."""

    kind: AuthEventKind
    identity: SessionIdentity | None = None


class AuthProvider(Protocol):
    """Port interface for the external authentication backend.

    Every method raises AuthProviderError with the provider's message
    on failure.
    """

    def create_account(self, email: str, password: str, metadata: Mapping[str, Any]) -> str:
        """
        Create an account pending email confirmation.

        Args:
            email: Account email
            password: Plaintext password (hashed by the provider)
            metadata: Registration details stored alongside the account

        Returns:
            The new user id
        """
        ...

    def confirm_email(self, token: str) -> SessionIdentity:
        """Redeem a signup confirmation token; the account can then sign in."""
        ...

    def authenticate(self, email: str, password: str) -> SessionIdentity:
        """Verify credentials and open a session."""
        ...

    def current_session(self) -> SessionIdentity | None:
        """Return the identity of the open session, if any."""
        ...

    def sign_out(self) -> None:
        """Close the open session."""
        ...

    def request_password_reset(self, email: str) -> None:
        """Send a password-reset link to the email address."""
        ...

    def recover(self, token: str) -> AuthEvent:
        """Redeem a password-reset token, yielding a PASSWORD_RECOVERY event."""
        ...

    def update_password(self, identity: SessionIdentity | None, new_password: str) -> None:
        """
        Change the password of the given session's user.

        A missing identity means no session is open and fails with the
        provider's "session missing" error.
        """
        ...

    def resend_confirmation(self, email: str) -> None:
        """Send the signup confirmation email again."""
        ...


class ProfileStore(Protocol):
    """Port interface for profile rows.

    Raises ProfileTableMissing when the backing relation does not exist
    and ProfileStoreError for any other failure.
    """

    def get_role(self, user_id: str) -> Role | None:
        """Return the stored role, or None when no profile row exists."""
        ...

    def upsert_profile(self, user_id: str, fields: Mapping[str, Any]) -> None:
        """Insert or update the profile row for user_id."""
        ...


class DocumentStore(Protocol):
    """Port interface for uploaded document blobs."""

    def put(self, user_id: str, slot: DocumentSlot, content_type: str, data: bytes) -> str:
        """
        Store a document that already passed the intake check.

        Returns:
            Opaque reference to the stored blob
        """
        ...

    def delete(self, reference: str) -> None:
        """Remove a stored blob; unknown references are ignored."""
        ...


class ApplicationRepository(Protocol):
    """Port interface for the per-citizen application record.

    The store is the last-write-wins arbiter; the domain re-derives
    state from the loaded record on every operation.
    """

    def load(self, user_id: str) -> ApplicationRecord | None:
        """Return the stored record, or None for a new citizen."""
        ...

    def save(self, user_id: str, record: ApplicationRecord) -> None:
        """Persist the record, replacing any previous version."""
        ...


class Mailer(Protocol):
    """Port interface for transactional auth email."""

    def send_confirmation(self, email: str, token: str) -> None:
        """Deliver a signup confirmation token."""
        ...

    def send_password_reset(self, email: str, token: str) -> None:
        """Deliver a password-reset token."""
        ...
