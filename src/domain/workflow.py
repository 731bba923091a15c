"""
Application workflow service - Gates progression through the licence process.

Every operation loads the citizen's ApplicationRecord from the
repository, applies exactly one transition and saves the result. The
repository is the arbiter of concurrent writes; nothing is cached
between calls.
"""

import datetime
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from . import exam, verification
from .exam import ExamAttemptState
from .exceptions import ExamLocked, InvalidTransition, VerificationRefused
from .ports import ApplicationRepository, DocumentSlot, DocumentStore, ReviewDecision
from .profile import AddressDetails, DocumentSet, PersonalDetails, check_document, completion
from .verification import VerificationState

logger = logging.getLogger(__name__)

EXAM_ALREADY_PASSED = "You have already passed the theory exam."


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class ApplicationRecord:
    """Everything persisted for one citizen's licence application."""

    personal: PersonalDetails = field(default_factory=PersonalDetails)
    address: AddressDetails = field(default_factory=AddressDetails)
    documents: DocumentSet = field(default_factory=DocumentSet)
    verification: VerificationState = field(default_factory=VerificationState)
    exam: ExamAttemptState = field(default_factory=ExamAttemptState)

    @property
    def completion(self) -> int:
        return completion(self.personal, self.address, self.documents)


@dataclass
class ApplicationWorkflow:
    """
    Domain service for the citizen's application after signup.

    Orchestrates profile edits, document intake, verification submission,
    reviewer decisions and theory exam attempts.
    """

    repository: ApplicationRepository
    document_store: DocumentStore
    clock: Callable[[], datetime.datetime] = _utcnow

    def get(self, user_id: str) -> ApplicationRecord:
        return self.repository.load(user_id) or ApplicationRecord()

    def update_personal(self, user_id: str, changes: Mapping[str, Any]) -> ApplicationRecord:
        record = self.get(user_id)
        return self._save(user_id, replace(record, personal=record.personal.updated(changes)))

    def update_address(self, user_id: str, changes: Mapping[str, Any]) -> ApplicationRecord:
        record = self.get(user_id)
        return self._save(user_id, replace(record, address=record.address.updated(changes)))

    def attach_document(
        self, user_id: str, slot: DocumentSlot, content_type: str | None, data: bytes
    ) -> ApplicationRecord:
        """
        Check and store one document, then record its reference.

        A document already in the slot is deleted once the new reference
        is saved.

        Raises:
            DocumentRejected: File failed the intake check; nothing is uploaded
        """
        check_document(content_type, len(data))
        reference = self.document_store.put(user_id, slot, content_type, data)
        logger.info("Stored %s for %s", slot.value, user_id)
        record = self.get(user_id)
        previous = record.documents.get(slot)
        documents = record.documents.with_document(slot, reference)
        saved = self._save(user_id, replace(record, documents=documents))
        if previous and previous != reference:
            self.document_store.delete(previous)
        return saved

    def remove_document(self, user_id: str, slot: DocumentSlot) -> ApplicationRecord:
        record = self.get(user_id)
        previous = record.documents.get(slot)
        documents = record.documents.with_document(slot, None)
        saved = self._save(user_id, replace(record, documents=documents))
        if previous:
            self.document_store.delete(previous)
        return saved

    def submit_for_verification(self, user_id: str) -> ApplicationRecord:
        """
        Citizen submits the application for government review.

        Raises:
            VerificationRefused: Profile is not 100% complete
            InvalidTransition: Application already approved
        """
        record = self.get(user_id)
        score = record.completion
        try:
            state = verification.submit_for_verification(record.verification, score)
        except VerificationRefused:
            logger.warning("Verification refused for %s at %d%%", user_id, score)
            raise
        logger.info("Application %s submitted for verification", user_id)
        return self._save(user_id, replace(record, verification=state))

    def record_review_decision(
        self, user_id: str, decision: ReviewDecision, reason: str = ""
    ) -> ApplicationRecord:
        """Apply a reviewer decision delivered by the external review system."""
        record = self.get(user_id)
        state = verification.apply_review(record.verification, decision, reason)
        logger.info("Application %s review: %s", user_id, state.status.value)
        return self._save(user_id, replace(record, verification=state))

    def submit_exam_attempt(self, user_id: str, score: int) -> ApplicationRecord:
        """
        Record a graded theory exam attempt.

        Args:
            user_id: Citizen's user id
            score: Score from the external grader, 0-100

        Raises:
            InvalidTransition: Exam already passed
            ExamLocked: Retry cooldown still running
            InvalidScore: Score outside 0-100
        """
        now = self.clock()
        record = self.get(user_id)
        if record.exam.passed:
            raise InvalidTransition(EXAM_ALREADY_PASSED)
        if record.exam.is_locked(now):
            days = record.exam.remaining_days(now)
            logger.warning("Exam attempt refused for %s: locked for %d more day(s)", user_id, days)
            raise ExamLocked(days)

        state = exam.record_attempt(score, now)
        logger.info(
            "Exam attempt for %s scored %d (%s)",
            user_id,
            score,
            "passed" if state.passed else "failed",
        )
        return self._save(user_id, replace(record, exam=state))

    def _save(self, user_id: str, record: ApplicationRecord) -> ApplicationRecord:
        self.repository.save(user_id, record)
        return record
