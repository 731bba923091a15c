"""
Unit tests for the PostgreSQL adapters.

Uses a mocked connection pool to verify SQL parameters and the
translation of driver errors into domain exceptions. No database needed.
"""

import datetime
from unittest.mock import MagicMock

import pytest
from psycopg import errors
from psycopg.types.json import Jsonb

from src.adapters.repository.postgres import (
    PostgresApplicationRepository,
    PostgresProfileStore,
    record_from_row,
    record_to_row,
)
from src.domain.exam import ExamAttemptState
from src.domain.exceptions import ProfileStoreError, ProfileTableMissing
from src.domain.ports import DocumentSlot, Role, VerificationStatus
from src.domain.profile import AddressDetails, DocumentSet, PersonalDetails
from src.domain.verification import VerificationState
from src.domain.workflow import ApplicationRecord

LOCKED_UNTIL = datetime.datetime(2024, 3, 31, 9, 30, tzinfo=datetime.timezone.utc)

RECORD = ApplicationRecord(
    personal=PersonalDetails(full_name="Hari Sharma", gender="male"),
    address=AddressDetails(district="Kathmandu"),
    documents=DocumentSet({DocumentSlot.SIGNATURE: "user-1/signature/abc"}),
    verification=VerificationState(VerificationStatus.REJECTED, "Blurry photo"),
    exam=ExamAttemptState(has_taken_exam=True, passed=False, score=42, locked_until=LOCKED_UNTIL),
)


@pytest.fixture
def pool() -> MagicMock:
    return MagicMock()


def cursor_of(pool: MagicMock) -> MagicMock:
    conn = pool.connection.return_value.__enter__.return_value
    return conn.cursor.return_value.__enter__.return_value


class TestProfileStoreGetRole:
    def test_returns_stored_role(self, pool) -> None:
        cursor_of(pool).fetchone.return_value = ("admin",)

        assert PostgresProfileStore(pool).get_role("user-1") is Role.ADMIN
        cursor_of(pool).execute.assert_called_once_with(
            "SELECT role FROM profiles WHERE id = %s", ("user-1",)
        )

    def test_missing_row_returns_none(self, pool) -> None:
        cursor_of(pool).fetchone.return_value = None
        assert PostgresProfileStore(pool).get_role("user-1") is None

    def test_unknown_role_returns_none(self, pool, caplog: pytest.LogCaptureFixture) -> None:
        cursor_of(pool).fetchone.return_value = ("superuser",)

        assert PostgresProfileStore(pool).get_role("user-1") is None
        assert "Unknown role" in caplog.text

    def test_undefined_table_maps_to_table_missing(self, pool) -> None:
        """SQLSTATE 42P01 is reported as a missing profiles table."""
        cursor_of(pool).execute.side_effect = errors.UndefinedTable('relation "profiles" does not exist')

        with pytest.raises(ProfileTableMissing):
            PostgresProfileStore(pool).get_role("user-1")

    def test_other_errors_map_to_store_error(self, pool) -> None:
        cursor_of(pool).execute.side_effect = errors.OperationalError("connection refused")

        with pytest.raises(ProfileStoreError) as exc_info:
            PostgresProfileStore(pool).get_role("user-1")

        assert not isinstance(exc_info.value, ProfileTableMissing)
        assert "connection refused" in exc_info.value.message


class TestProfileStoreUpsert:
    def test_writes_known_columns_only(self, pool) -> None:
        PostgresProfileStore(pool).upsert_profile("user-1", {"email": "hari@example.com", "role": "admin"})

        sql, params = cursor_of(pool).execute.call_args.args
        assert "INSERT INTO profiles (id, email)" in sql
        assert "DO UPDATE SET email = EXCLUDED.email" in sql
        assert "role" not in sql
        assert params == ("user-1", "hari@example.com")
        pool.connection.return_value.__enter__.return_value.commit.assert_called_once()

    def test_no_columns_does_nothing_on_conflict(self, pool) -> None:
        PostgresProfileStore(pool).upsert_profile("user-1", {})

        sql, params = cursor_of(pool).execute.call_args.args
        assert "ON CONFLICT (id) DO NOTHING" in sql
        assert params == ("user-1",)

    def test_undefined_table(self, pool) -> None:
        cursor_of(pool).execute.side_effect = errors.UndefinedTable("missing")

        with pytest.raises(ProfileTableMissing):
            PostgresProfileStore(pool).upsert_profile("user-1", {"email": "hari@example.com"})


class TestApplicationRepository:
    def test_load_missing_returns_none(self, pool) -> None:
        cursor_of(pool).fetchone.return_value = None
        assert PostgresApplicationRepository(pool).load("user-1") is None

    def test_load_rebuilds_record(self, pool) -> None:
        cursor_of(pool).fetchone.return_value = record_to_row(RECORD)
        assert PostgresApplicationRepository(pool).load("user-1") == RECORD

    def test_save_wraps_sections_as_jsonb(self, pool) -> None:
        PostgresApplicationRepository(pool).save("user-1", RECORD)

        _, params = cursor_of(pool).execute.call_args.args
        assert params[0] == "user-1"
        assert len(params) == 6
        assert all(isinstance(part, Jsonb) for part in params[1:])


class TestRowMapping:
    def test_row_is_json_compatible(self) -> None:
        _, _, documents, verification, exam = record_to_row(RECORD)

        assert documents == {"signature": "user-1/signature/abc"}
        assert verification == {"status": "rejected", "reason": "Blurry photo"}
        assert exam["locked_until"] == "2024-03-31T09:30:00+00:00"

    def test_round_trip(self) -> None:
        assert record_from_row(record_to_row(RECORD)) == RECORD

    def test_empty_row_gives_default_record(self) -> None:
        """NULL sections fall back to defaults."""
        assert record_from_row((None, None, None, None, None)) == ApplicationRecord()
