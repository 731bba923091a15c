"""
Domain exceptions - Semantic error types for the licence workflow.

This module defines domain-specific exceptions that communicate
business rule violations and collaborator failures without leaking
infrastructure details. Every exception carries a message that is safe
to show to the citizen as-is.
"""


class PortalError(Exception):
    """Base class for licence portal domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RegistrationRejected(PortalError):
    """Signup submission failed one of the ordered validation rules."""

    def __init__(self, kind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class DocumentRejected(PortalError):
    """Uploaded file violates the type or size constraint."""

    pass


class InvalidTransition(PortalError):
    """Requested transition is not allowed from the current state."""

    pass


class InvalidScore(PortalError):
    """Exam score outside the 0-100 range."""

    pass


class VerificationRefused(PortalError):
    """Verification submitted before the profile is complete."""

    def __init__(self, message: str, completion: int) -> None:
        super().__init__(message)
        self.completion = completion

    @property
    def shortfall(self) -> int:
        """Percentage points still missing."""
        return 100 - self.completion


class ExamLocked(PortalError):
    """Exam attempted while the retry cooldown is active."""

    def __init__(self, remaining_days: int) -> None:
        unit = "day" if remaining_days == 1 else "days"
        super().__init__(
            "You are not eligible to retake the exam yet. "
            f"You can retake your online exam in {remaining_days} {unit}."
        )
        self.remaining_days = remaining_days


class AuthProviderError(PortalError):
    """Opaque failure reported by the external authentication provider."""

    pass


class ProfileStoreError(PortalError):
    """Opaque failure reported by the profile store."""

    pass


class ProfileTableMissing(ProfileStoreError):
    """Profile relation does not exist yet; callers fall back to defaults."""

    pass
