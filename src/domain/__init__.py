"""
Domain layer - Pure business logic with zero framework imports.

This package contains the application workflow and eligibility engine
for the driving licence portal: dual-calendar dates, registration
validation, profile completion, and the verification and theory exam
state machines. It defines its own port interfaces for the external
auth, profile, document and application stores.
"""

from .calendar import CalendarSystem, DualCalendarDate, IsoDate, ad_to_bs, age_in_years_as_of, bs_to_ad
from .exam import ExamAttemptState, record_attempt
from .exceptions import (
    AuthProviderError,
    DocumentRejected,
    ExamLocked,
    InvalidScore,
    InvalidTransition,
    PortalError,
    ProfileStoreError,
    ProfileTableMissing,
    RegistrationRejected,
    VerificationRefused,
)
from .ports import (
    ApplicationRepository,
    AuthEvent,
    AuthEventKind,
    AuthProvider,
    DocumentSlot,
    DocumentStore,
    ExamPhase,
    Mailer,
    ProfileStore,
    ReviewDecision,
    Role,
    SessionIdentity,
    VerificationStatus,
)
from .profile import AddressDetails, DocumentSet, PersonalDetails, completion
from .registration import ErrorKind, RegistrationService, RegistrationSubmission, validate_registration
from .session import AuthSessionCoordinator, SessionState, StatusNotice
from .verification import VerificationState
from .workflow import ApplicationRecord, ApplicationWorkflow

__all__ = [
    "AddressDetails",
    "ApplicationRecord",
    "ApplicationRepository",
    "ApplicationWorkflow",
    "AuthEvent",
    "AuthEventKind",
    "AuthProvider",
    "AuthProviderError",
    "AuthSessionCoordinator",
    "CalendarSystem",
    "DocumentRejected",
    "DocumentSet",
    "DocumentSlot",
    "DocumentStore",
    "DualCalendarDate",
    "ErrorKind",
    "ExamAttemptState",
    "ExamLocked",
    "ExamPhase",
    "InvalidScore",
    "InvalidTransition",
    "IsoDate",
    "Mailer",
    "PersonalDetails",
    "PortalError",
    "ProfileStore",
    "ProfileStoreError",
    "ProfileTableMissing",
    "RegistrationRejected",
    "RegistrationService",
    "RegistrationSubmission",
    "ReviewDecision",
    "Role",
    "SessionIdentity",
    "SessionState",
    "StatusNotice",
    "VerificationRefused",
    "VerificationState",
    "VerificationStatus",
    "ad_to_bs",
    "age_in_years_as_of",
    "bs_to_ad",
    "completion",
    "record_attempt",
    "validate_registration",
]
