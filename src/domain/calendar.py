"""
Calendar conversion - Gregorian (AD) and Bikram Sambat (BS) dates.

Conversion is a pure function pair backed by the nepali-datetime
library, which supports BS years 1975-2100. Every entry point returns
None instead of raising for malformed, impossible or out-of-range input,
so callers can treat a failed conversion exactly like a malformed date.

Round-trip law: for any date d inside the supported range,
bs_to_ad(ad_to_bs(d)) == d and ad_to_bs(bs_to_ad(d)) == d.
"""

import datetime
import logging
import re
from dataclasses import dataclass
from enum import Enum

import nepali_datetime

logger = logging.getLogger(__name__)

ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)

# BS months run up to 32 days; calendar-specific validity is checked on conversion.
_MAX_DAY = 32

_CONVERSION_ERRORS = (ValueError, OverflowError, IndexError, KeyError)


class CalendarSystem(str, Enum):
    """Calendar a date was entered in."""

    AD = "AD"
    BS = "BS"


@dataclass(frozen=True, order=True)
class IsoDate:
    """A (year, month, day) triple in one calendar, rendered as YYYY-MM-DD."""

    year: int
    month: int
    day: int

    @classmethod
    def parse(cls, text: str | None) -> "IsoDate | None":
        """
        Parse canonical YYYY-MM-DD text.

        Returns None unless the text has exactly that shape and all three
        components are non-zero with month in 1-12.
        """
        if not text or not ISO_DATE_PATTERN.fullmatch(text):
            return None
        year, month, day = (int(part) for part in text.split("-"))
        if not year or not month or not day:
            return None
        if month > 12 or day > _MAX_DAY:
            return None
        return cls(year, month, day)

    @classmethod
    def from_date(cls, value: datetime.date) -> "IsoDate":
        return cls(value.year, value.month, value.day)

    def to_date(self) -> datetime.date:
        """Interpret as a Gregorian date. Raises ValueError if impossible."""
        return datetime.date(self.year, self.month, self.day)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


@dataclass(frozen=True)
class DualCalendarDate:
    """
    A date known in both calendars.

    ad is always present once resolved; bs is None only when the AD date
    falls outside the BS library's range.
    """

    ad: IsoDate
    bs: IsoDate | None


DateInput = IsoDate | datetime.date | str | None


def _coerce(value: DateInput) -> IsoDate | None:
    if value is None:
        return None
    if isinstance(value, IsoDate):
        return value
    if isinstance(value, datetime.date):
        return IsoDate.from_date(value)
    return IsoDate.parse(value)


def ad_to_bs(value: DateInput) -> IsoDate | None:
    """Convert a Gregorian date to Bikram Sambat, or None if not convertible."""
    ad = _coerce(value)
    if ad is None:
        return None
    try:
        gregorian = ad.to_date()
        converted = nepali_datetime.date.from_datetime_date(gregorian)
        back = converted.to_datetime_date()
    except _CONVERSION_ERRORS as exc:
        logger.debug("AD date %s not convertible to BS: %s", ad, exc)
        return None
    if back != gregorian:
        return None
    return IsoDate(converted.year, converted.month, converted.day)


def bs_to_ad(value: DateInput) -> IsoDate | None:
    """Convert a Bikram Sambat date to Gregorian, or None if not convertible."""
    bs = _coerce(value)
    if bs is None:
        return None
    try:
        converted = nepali_datetime.date(bs.year, bs.month, bs.day)
        gregorian = converted.to_datetime_date()
        back = nepali_datetime.date.from_datetime_date(gregorian)
    except _CONVERSION_ERRORS as exc:
        logger.debug("BS date %s not convertible to AD: %s", bs, exc)
        return None
    if (back.year, back.month, back.day) != (bs.year, bs.month, bs.day):
        return None
    return IsoDate.from_date(gregorian)


def age_in_years_as_of(dob: DateInput, today: DateInput) -> int | None:
    """
    Whole years elapsed between dob and today.

    age = today.year - dob.year, minus one when today's (month, day)
    falls before the birthday. Returns None if either date is malformed.
    """
    birth = _coerce(dob)
    reference = _coerce(today)
    if birth is None or reference is None:
        return None
    age = reference.year - birth.year
    if (reference.month, reference.day) < (birth.month, birth.day):
        age -= 1
    return age


def resolve_dual_date(
    ad: DateInput, bs: DateInput, source: CalendarSystem
) -> DualCalendarDate | None:
    """
    Resolve the effective AD date and back-fill the other calendar.

    The declared source calendar wins: an AD-sourced date uses the AD field
    and recomputes BS; a BS-sourced date converts BS to AD. Returns None
    when the effective AD date cannot be determined.
    """
    if source is CalendarSystem.AD:
        ad_date = _coerce(ad)
        if ad_date is None:
            return None
        try:
            ad_date.to_date()
        except ValueError:
            return None
        return DualCalendarDate(ad=ad_date, bs=ad_to_bs(ad_date))

    bs_date = _coerce(bs)
    ad_date = bs_to_ad(bs_date)
    if ad_date is None:
        return None
    return DualCalendarDate(ad=ad_date, bs=bs_date)
