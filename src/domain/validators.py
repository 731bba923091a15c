"""
Field validators - Independent checks over single registration fields.

Each validator is pure and returns a FieldCheck. Malformed input is a
failing check with its own fixed message, never an exception.
"""

import re
from dataclasses import dataclass

from .calendar import DateInput, age_in_years_as_of

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
# ASCII digits only; \d would also accept Devanagari numerals.
NEPALI_PHONE_PATTERN = re.compile(r"98\d{8}|97\d{8}|01\d{7}", re.ASCII)
# Devanagari block U+0900-U+097F plus whitespace and period.
NEPALI_NAME_PATTERN = re.compile(r"[\u0900-\u097F\s.]+")

MIN_PASSWORD_LENGTH = 6
MAJORITY_AGE = 18

EMAIL_INVALID = "Please enter a valid email address."
PHONE_INVALID = "Please enter a valid Nepali phone number (e.g. 98XXXXXXXX or 01XXXXXXX)."
LOCAL_NAME_MISSING = "Please enter your full name in Nepali."
LOCAL_NAME_INVALID = "Full name in Nepali must use Devanagari characters only."
PASSWORD_TOO_SHORT = "Password must be at least 6 characters long."
PASSWORD_MISMATCH = "Password and confirm password do not match."
DOB_INVALID = "Please enter a valid date of birth."
UNDERAGE = "You must be at least 18 years old to create an account."


@dataclass(frozen=True)
class FieldCheck:
    """Outcome of one validator: ok, or failed with a fixed message."""

    ok: bool
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok


PASS = FieldCheck(ok=True)


def _fail(message: str) -> FieldCheck:
    return FieldCheck(ok=False, message=message)


def validate_email(email: str | None) -> FieldCheck:
    if email and EMAIL_PATTERN.fullmatch(email):
        return PASS
    return _fail(EMAIL_INVALID)


def validate_nepali_phone(phone: str | None) -> FieldCheck:
    """Mobile 98/97 + 8 digits, or Kathmandu landline 01 + 7 digits."""
    if phone and NEPALI_PHONE_PATTERN.fullmatch(phone.strip()):
        return PASS
    return _fail(PHONE_INVALID)


def validate_local_script_name(name: str | None) -> FieldCheck:
    trimmed = (name or "").strip()
    if not trimmed:
        return _fail(LOCAL_NAME_MISSING)
    if not NEPALI_NAME_PATTERN.fullmatch(trimmed):
        return _fail(LOCAL_NAME_INVALID)
    return PASS


def validate_password(password: str | None, message: str = PASSWORD_TOO_SHORT) -> FieldCheck:
    if password and len(password) >= MIN_PASSWORD_LENGTH:
        return PASS
    return _fail(message)


def validate_password_match(
    password: str | None, confirmation: str | None, message: str = PASSWORD_MISMATCH
) -> FieldCheck:
    # Exact comparison; no trimming or case folding.
    if password == confirmation:
        return PASS
    return _fail(message)


def validate_majority_age(dob_ad: DateInput, today: DateInput) -> FieldCheck:
    age = age_in_years_as_of(dob_ad, today)
    if age is None:
        return _fail(DOB_INVALID)
    if age < MAJORITY_AGE:
        return _fail(UNDERAGE)
    return PASS
