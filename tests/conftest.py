"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A valid signup submission and a factory for variations
- In-memory adapters
- A controllable clock for time-dependent workflow tests
"""

import datetime
from dataclasses import replace

import pytest

from src.adapters.repository.memory import InMemoryApplicationRepository, InMemoryProfileStore
from src.adapters.storage.memory import InMemoryDocumentStore
from src.domain.registration import RegistrationSubmission

REFERENCE_DATE = datetime.date(2024, 1, 1)
T0 = datetime.datetime(2024, 1, 1, 9, 30, tzinfo=datetime.timezone.utc)

HARI = RegistrationSubmission(
    first_name="Hari",
    last_name="Sharma",
    full_name_local_script="हरि शर्मा",
    dob_ad="2000-01-01",
    email="hari@example.com",
    phone="9812345678",
    password="secret1",
    password_confirmation="secret1",
    accepted_terms=True,
)


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime.datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, delta: datetime.timedelta) -> None:
        self.now += delta


@pytest.fixture
def submission() -> RegistrationSubmission:
    """The reference signup submission that passes every rule."""
    return HARI


@pytest.fixture
def make_submission():
    """Factory returning the reference submission with fields overridden."""

    def _make(**changes) -> RegistrationSubmission:
        return replace(HARI, **changes)

    return _make


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def application_repository() -> InMemoryApplicationRepository:
    return InMemoryApplicationRepository()


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def reference_date() -> datetime.date:
    """Fixed 'today' for age checks."""
    return REFERENCE_DATE


@pytest.fixture
def t0() -> datetime.datetime:
    """Fixed attempt instant for exam tests."""
    return T0
