"""
PostgreSQL repository adapters - Implement ProfileStore and ApplicationRepository.

This module provides PostgreSQL implementations of the domain's storage
ports using psycopg3 with raw SQL.

Error Translation:
------------------
The profile store translates driver errors into domain exceptions:

1. **UndefinedTable** (SQLSTATE 42P01): The profiles relation has not been
   created yet. Raised as ProfileTableMissing so callers fall back to the
   default role instead of failing.

2. **Any other psycopg.Error**: Raised as ProfileStoreError carrying the
   driver message verbatim.

Application records are stored as one row per citizen with a JSONB column
per section. Writes are plain upserts; the last write wins.
"""

import datetime
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import psycopg
from psycopg import errors
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from src.domain.exam import ExamAttemptState
from src.domain.exceptions import ProfileStoreError, ProfileTableMissing
from src.domain.ports import Role, VerificationStatus
from src.domain.profile import AddressDetails, DocumentSet, PersonalDetails
from src.domain.verification import VerificationState
from src.domain.workflow import ApplicationRecord

logger = logging.getLogger(__name__)

# Columns a profile upsert may write; role is left to the table default.
_PROFILE_COLUMNS = ("email", "first_name", "last_name", "phone")


class PostgresProfileStore:
    """
    Implements ProfileStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def get_role(self, user_id: str) -> Role | None:
        """
        Look up the stored role for a user.

        Returns:
            The role, or None when the user has no profile row

        Raises:
            ProfileTableMissing: profiles relation does not exist
            ProfileStoreError: any other database failure
        """
        sql = "SELECT role FROM profiles WHERE id = %s"

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (user_id,))
                row = cursor.fetchone()
        except errors.UndefinedTable as e:
            raise ProfileTableMissing(str(e)) from e
        except psycopg.Error as e:
            raise ProfileStoreError(str(e)) from e

        if row is None or row[0] is None:
            return None
        try:
            return Role(row[0])
        except ValueError:
            logger.warning(f"Unknown role {row[0]!r} for user {user_id}")
            return None

    def upsert_profile(self, user_id: str, fields: Mapping[str, Any]) -> None:
        """
        Insert or update a profile row.

        Only known columns are written; unknown keys are ignored.

        Raises:
            ProfileTableMissing: profiles relation does not exist
            ProfileStoreError: any other database failure
        """
        columns = [name for name in _PROFILE_COLUMNS if name in fields]
        values = [fields[name] for name in columns]
        assignments = ", ".join(f"{name} = EXCLUDED.{name}" for name in columns)
        conflict = f"DO UPDATE SET {assignments}" if columns else "DO NOTHING"
        column_list = ", ".join(["id", *columns])
        placeholders = ", ".join(["%s"] * (len(columns) + 1))

        sql = f"""
            INSERT INTO profiles ({column_list})
            VALUES ({placeholders})
            ON CONFLICT (id) {conflict}
        """

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (user_id, *values))
                conn.commit()
        except errors.UndefinedTable as e:
            raise ProfileTableMissing(str(e)) from e
        except psycopg.Error as e:
            raise ProfileStoreError(str(e)) from e


class PostgresApplicationRepository:
    """
    Implements ApplicationRepository protocol via psycopg3.

    One row per citizen; sections are stored as JSONB.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def load(self, user_id: str) -> ApplicationRecord | None:
        sql = """
            SELECT personal, address, documents, verification, exam
            FROM applications
            WHERE user_id = %s
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (user_id,))
            row = cursor.fetchone()

        if row is None:
            return None
        return record_from_row(row)

    def save(self, user_id: str, record: ApplicationRecord) -> None:
        sql = """
            INSERT INTO applications (user_id, personal, address, documents, verification, exam, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s, NOW())
            ON CONFLICT (user_id) DO UPDATE
            SET personal = EXCLUDED.personal,
                address = EXCLUDED.address,
                documents = EXCLUDED.documents,
                verification = EXCLUDED.verification,
                exam = EXCLUDED.exam,
                updated_at = NOW()
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (user_id, *(Jsonb(part) for part in record_to_row(record))))
            conn.commit()


def record_to_row(record: ApplicationRecord) -> tuple[dict, dict, dict, dict, dict]:
    """Serialize a record into JSON-compatible section dicts."""
    locked_until = record.exam.locked_until
    return (
        record.personal.to_dict(),
        record.address.to_dict(),
        record.documents.to_dict(),
        {
            "status": record.verification.status.value,
            "reason": record.verification.reason,
        },
        {
            "has_taken_exam": record.exam.has_taken_exam,
            "passed": record.exam.passed,
            "score": record.exam.score,
            "locked_until": locked_until.isoformat() if locked_until else None,
        },
    )


def record_from_row(row: tuple) -> ApplicationRecord:
    """Rebuild a record from the five JSONB section columns."""
    personal, address, documents, verification, exam = (part or {} for part in row)
    locked_until = exam.get("locked_until")
    return ApplicationRecord(
        personal=PersonalDetails(**personal),
        address=AddressDetails(**address),
        documents=DocumentSet.from_dict(documents),
        verification=VerificationState(
            status=VerificationStatus(verification.get("status", "not_submitted")),
            reason=verification.get("reason", ""),
        ),
        exam=ExamAttemptState(
            has_taken_exam=exam.get("has_taken_exam", False),
            passed=exam.get("passed", False),
            score=exam.get("score", 0),
            locked_until=datetime.datetime.fromisoformat(locked_until) if locked_until else None,
        ),
    )


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())
            logger.info(f"Migration complete: {sql_file.name}")
        except psycopg.Error as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
