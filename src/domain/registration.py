"""
Registration domain - Signup validation pipeline and account creation.

This module contains the ordered validation pass over a signup
submission and the service that hands a validated registration to the
external auth provider.

Validation Pipeline (Fail-Fast)
===============================

Rules are evaluated in this fixed order and evaluation stops at the
first failure; errors are never aggregated:

    1. first and last name present
    2. date of birth present in AD or BS
    3. full name in Nepali present and written in Devanagari
    4. effective AD date of birth resolvable and age >= 18
    5. email format
    6. Nepali phone format
    7. password length >= 6
    8. password equals confirmation
    9. terms accepted

Cheap presence checks run before date conversion and the age check.
On success both calendar representations of the date of birth are
back-filled and string fields are trimmed.
"""

import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from . import validators
from .calendar import CalendarSystem, IsoDate, age_in_years_as_of, resolve_dual_date
from .exceptions import ProfileTableMissing, RegistrationRejected
from .ports import AuthProvider, ProfileStore

logger = logging.getLogger(__name__)

NAME_MISSING = "Please enter your first and last name."
DOB_MISSING = "Please enter your date of birth in AD or BS."
TERMS_NOT_ACCEPTED = (
    "You must agree to the terms and conditions related to the online written exam "
    "and driving rules."
)


class ErrorKind(Enum):
    """Registration rule that rejected a submission, in pipeline order."""

    NAME_MISSING = "name_missing"
    DOB_MISSING = "dob_missing"
    LOCAL_NAME_MISSING = "local_name_missing"
    LOCAL_NAME_INVALID = "local_name_invalid"
    DOB_INVALID = "dob_invalid"
    UNDERAGE = "underage"
    EMAIL_INVALID = "email_invalid"
    PHONE_INVALID = "phone_invalid"
    PASSWORD_TOO_SHORT = "password_too_short"
    PASSWORD_MISMATCH = "password_mismatch"
    TERMS_NOT_ACCEPTED = "terms_not_accepted"


@dataclass(frozen=True)
class RegistrationSubmission:
    """Raw signup form input. Transient; never persisted by the domain."""

    first_name: str
    last_name: str
    full_name_local_script: str
    email: str
    phone: str
    password: str
    password_confirmation: str
    accepted_terms: bool = False
    middle_name: str = ""
    dob_ad: str = ""
    dob_bs: str = ""
    dob_source: CalendarSystem = CalendarSystem.AD


@dataclass(frozen=True)
class NormalizedRegistration:
    """Validated registration ready for account creation."""

    first_name: str
    middle_name: str
    last_name: str
    full_name_local_script: str
    dob_ad: IsoDate
    dob_bs: IsoDate | None
    email: str
    phone: str
    password: str
    age: int

    def account_metadata(self) -> dict[str, Any]:
        """Details stored with the account by the auth provider."""
        return {
            "first_name": self.first_name,
            "middle_name": self.middle_name,
            "last_name": self.last_name,
            "full_name_nepali": self.full_name_local_script,
            "dob_ad": str(self.dob_ad),
            "dob_bs": str(self.dob_bs) if self.dob_bs else "",
            "phone": self.phone,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Either a normalized registration or the first failing rule."""

    registration: NormalizedRegistration | None = None
    error: ErrorKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "ValidationResult":
        return cls(error=error, message=message)


def validate_registration(
    submission: RegistrationSubmission, today: datetime.date
) -> ValidationResult:
    """
    Run the ordered registration rules against a submission.

    Args:
        submission: Raw form input
        today: Reference date for the age check

    Returns:
        ValidationResult carrying the normalized registration, or the
        first failing ErrorKind with its fixed message
    """
    first_name = submission.first_name.strip()
    last_name = submission.last_name.strip()
    if not first_name or not last_name:
        return ValidationResult.failure(ErrorKind.NAME_MISSING, NAME_MISSING)

    if not submission.dob_ad and not submission.dob_bs:
        return ValidationResult.failure(ErrorKind.DOB_MISSING, DOB_MISSING)

    local_name = submission.full_name_local_script.strip()
    if not local_name:
        return ValidationResult.failure(
            ErrorKind.LOCAL_NAME_MISSING, validators.LOCAL_NAME_MISSING
        )
    check = validators.validate_local_script_name(local_name)
    if not check:
        return ValidationResult.failure(ErrorKind.LOCAL_NAME_INVALID, check.message)

    dob = resolve_dual_date(submission.dob_ad, submission.dob_bs, submission.dob_source)
    if dob is None:
        return ValidationResult.failure(ErrorKind.DOB_INVALID, validators.DOB_INVALID)
    check = validators.validate_majority_age(dob.ad, today)
    if not check:
        return ValidationResult.failure(ErrorKind.UNDERAGE, check.message)

    check = validators.validate_email(submission.email)
    if not check:
        return ValidationResult.failure(ErrorKind.EMAIL_INVALID, check.message)

    check = validators.validate_nepali_phone(submission.phone)
    if not check:
        return ValidationResult.failure(ErrorKind.PHONE_INVALID, check.message)

    check = validators.validate_password(submission.password)
    if not check:
        return ValidationResult.failure(ErrorKind.PASSWORD_TOO_SHORT, check.message)

    check = validators.validate_password_match(
        submission.password, submission.password_confirmation
    )
    if not check:
        return ValidationResult.failure(ErrorKind.PASSWORD_MISMATCH, check.message)

    if not submission.accepted_terms:
        return ValidationResult.failure(ErrorKind.TERMS_NOT_ACCEPTED, TERMS_NOT_ACCEPTED)

    registration = NormalizedRegistration(
        first_name=first_name,
        middle_name=submission.middle_name.strip(),
        last_name=last_name,
        full_name_local_script=local_name,
        dob_ad=dob.ad,
        dob_bs=dob.bs,
        email=submission.email.strip(),
        phone=submission.phone.strip(),
        password=submission.password,
        age=age_in_years_as_of(dob.ad, today),
    )
    return ValidationResult(registration=registration)


@dataclass(frozen=True)
class RegisteredAccount:
    """Account created by the auth provider, awaiting email confirmation."""

    user_id: str
    email: str


@dataclass
class RegistrationService:
    """
    Domain service for citizen signup.

    Orchestrates the registration flow: ordered validation, account
    creation with the auth provider, and the initial profile row.
    """

    auth_provider: AuthProvider
    profile_store: ProfileStore
    today: Callable[[], datetime.date] = datetime.date.today

    def register(self, submission: RegistrationSubmission) -> RegisteredAccount:
        """
        Validate a signup submission and create the account.

        Args:
            submission: Raw signup form input

        Returns:
            The created account

        Raises:
            RegistrationRejected: First failing validation rule
            AuthProviderError: Account creation failed upstream
            ProfileStoreError: Profile row could not be written
        """
        result = validate_registration(submission, self.today())
        if not result.ok:
            logger.info("Registration rejected: %s", result.error.value)
            raise RegistrationRejected(result.error, result.message)

        registration = result.registration
        user_id = self.auth_provider.create_account(
            registration.email,
            registration.password,
            registration.account_metadata(),
        )
        logger.info("Account created for %s", registration.email)

        try:
            # Role is left to the store default
            self.profile_store.upsert_profile(user_id, {"email": registration.email})
        except ProfileTableMissing:
            logger.warning("Profiles table missing; skipping profile row for %s", user_id)

        return RegisteredAccount(user_id=user_id, email=registration.email)
