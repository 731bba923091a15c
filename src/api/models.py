"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Registration fields are deliberately loose here: the domain pipeline owns
the ordered validation rules and their messages.
"""

import datetime

from pydantic import BaseModel, Field

from src.domain.calendar import CalendarSystem
from src.domain.ports import DocumentSlot, ExamPhase, VerificationStatus
from src.domain.workflow import ApplicationRecord


class RegisterRequest(BaseModel):
    """Request model for citizen signup."""

    first_name: str = ""
    middle_name: str = ""
    last_name: str = ""
    full_name_nepali: str = ""
    dob_ad: str = ""
    dob_bs: str = ""
    dob_source: CalendarSystem = CalendarSystem.AD
    email: str = ""
    phone: str = ""
    password: str = ""
    confirm_password: str = ""
    accepted_terms: bool = False


class RegisterResponse(BaseModel):
    """Response model for successful signup."""

    message: str
    user_id: str
    email: str


class PasswordResetRequest(BaseModel):
    email: str


class ConfirmEmailRequest(BaseModel):
    """Token from the signup confirmation email."""

    token: str = Field(..., min_length=1)


class PasswordResetConfirmRequest(BaseModel):
    """Token from the reset email plus the new password, entered twice."""

    token: str = Field(..., min_length=1)
    new_password: str = ""
    confirm_password: str = ""


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str


class CalendarConvertRequest(BaseModel):
    """Request model for a date conversion."""

    date: str = Field(..., description="Date as YYYY-MM-DD")
    calendar: CalendarSystem = Field(..., description="Calendar the date is written in")


class CalendarConvertResponse(BaseModel):
    ad: str
    bs: str


class PersonalDetailsUpdate(BaseModel):
    full_name: str | None = None
    dob: str | None = None
    gender: str | None = None
    phone: str | None = None
    email: str | None = None
    guardian_name: str | None = None


class AddressDetailsUpdate(BaseModel):
    province: str | None = None
    district: str | None = None
    municipality: str | None = None
    ward: str | None = None
    permanent_address: str | None = None
    temporary_address: str | None = None
    postal_code: str | None = None


class ExamAttemptRequest(BaseModel):
    """Score reported by the external grader."""

    score: int = Field(..., ge=0, le=100)


class VerificationView(BaseModel):
    status: VerificationStatus
    label: str
    reason: str


class ExamView(BaseModel):
    phase: ExamPhase
    has_taken_exam: bool
    passed: bool
    score: int
    locked_until: datetime.datetime | None
    is_locked: bool
    remaining_days: int
    eligibility_label: str


class ApplicationResponse(BaseModel):
    """Citizen's application with all derived values computed for `now`."""

    completion: int
    personal: PersonalDetailsUpdate
    address: AddressDetailsUpdate
    documents: dict[DocumentSlot, str]
    verification: VerificationView
    exam: ExamView

    @classmethod
    def from_record(cls, record: ApplicationRecord, now: datetime.datetime) -> "ApplicationResponse":
        exam = record.exam
        return cls(
            completion=record.completion,
            personal=PersonalDetailsUpdate(**record.personal.to_dict()),
            address=AddressDetailsUpdate(**record.address.to_dict()),
            documents=dict(record.documents.references),
            verification=VerificationView(
                status=record.verification.status,
                label=record.verification.label,
                reason=record.verification.reason,
            ),
            exam=ExamView(
                phase=exam.phase(now),
                has_taken_exam=exam.has_taken_exam,
                passed=exam.passed,
                score=exam.score,
                locked_until=exam.locked_until,
                is_locked=exam.is_locked(now),
                remaining_days=exam.remaining_days(now),
                eligibility_label=exam.eligibility_label,
            ),
        )
