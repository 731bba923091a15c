"""
Theory exam eligibility state machine.

Each attempt carries a score from the external grader. A score of 80 or
more passes and is terminal. A lower score starts a 90-day cooldown
measured from the attempt instant.

The state machine only reports whether a retry is allowed; refusing an
attempt while locked is the caller's job (see ApplicationWorkflow).

All instants are timezone-aware datetimes.
"""

import datetime
from dataclasses import dataclass

from .exceptions import InvalidScore
from .ports import ExamPhase

PASS_MARK = 80
COOLDOWN = datetime.timedelta(days=90)
_ONE_DAY = datetime.timedelta(days=1)


@dataclass(frozen=True)
class ExamAttemptState:
    has_taken_exam: bool = False
    passed: bool = False
    score: int = 0
    locked_until: datetime.datetime | None = None

    def is_locked(self, now: datetime.datetime) -> bool:
        return self.locked_until is not None and now < self.locked_until

    def remaining_days(self, now: datetime.datetime) -> int:
        """Whole days left in the cooldown; a partial day counts as one."""
        if not self.is_locked(now):
            return 0
        # Ceiling division on timedelta stays exact.
        return -((now - self.locked_until) // _ONE_DAY)

    def can_attempt(self, now: datetime.datetime) -> bool:
        return not self.passed and not self.is_locked(now)

    def phase(self, now: datetime.datetime) -> ExamPhase:
        if self.passed:
            return ExamPhase.PASSED
        if self.is_locked(now):
            return ExamPhase.FAILED_LOCKED
        return ExamPhase.NOT_TAKEN

    @property
    def eligibility_label(self) -> str:
        if not self.has_taken_exam:
            return "Awaiting theory exam"
        if self.passed:
            return "Eligible for Trial Exam"
        return "Not eligible – failed theory exam"


def record_attempt(score: int, now: datetime.datetime) -> ExamAttemptState:
    """
    State after an attempt graded at score, taken at now.

    Raises:
        InvalidScore: score is not an integer in 0-100
    """
    if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= 100:
        raise InvalidScore(f"Exam score must be an integer between 0 and 100, got {score!r}")
    if score >= PASS_MARK:
        return ExamAttemptState(has_taken_exam=True, passed=True, score=score)
    return ExamAttemptState(
        has_taken_exam=True,
        passed=False,
        score=score,
        locked_until=now + COOLDOWN,
    )
