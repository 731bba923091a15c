"""
Government verification state machine.

Valid Transitions:
    NOT_SUBMITTED -> PENDING    (citizen submits, completion == 100)
    REJECTED      -> PENDING    (citizen resubmits, completion == 100)
    any           -> APPROVED   (reviewer decision, authoritative)
    any           -> REJECTED   (reviewer decision, authoritative)

Citizen submission while PENDING leaves the state unchanged; submission
after APPROVED is an invalid transition. Reviewer decisions are external
events and are applied without re-validation.
"""

from dataclasses import dataclass

from .exceptions import InvalidTransition, VerificationRefused
from .ports import ReviewDecision, VerificationStatus

INCOMPLETE_PROFILE = "Please complete all required sections before submitting for verification."
ALREADY_APPROVED = "Your application has already been approved."


@dataclass(frozen=True)
class VerificationState:
    status: VerificationStatus = VerificationStatus.NOT_SUBMITTED
    reason: str = ""

    @property
    def can_submit(self) -> bool:
        return self.status in (VerificationStatus.NOT_SUBMITTED, VerificationStatus.REJECTED)

    @property
    def label(self) -> str:
        if self.status is VerificationStatus.NOT_SUBMITTED:
            return "Not submitted"
        return self.status.value.capitalize()


def submit_for_verification(state: VerificationState, completion: int) -> VerificationState:
    """
    Citizen-triggered submission.

    Raises:
        VerificationRefused: completion is below 100; state is unchanged
        InvalidTransition: application is already approved
    """
    if state.status is VerificationStatus.APPROVED:
        raise InvalidTransition(ALREADY_APPROVED)
    if completion < 100:
        raise VerificationRefused(INCOMPLETE_PROFILE, completion)
    if state.status is VerificationStatus.PENDING:
        return state
    return VerificationState(status=VerificationStatus.PENDING)


def apply_review(
    state: VerificationState, decision: ReviewDecision, reason: str = ""
) -> VerificationState:
    """Apply an external reviewer decision."""
    if decision is ReviewDecision.APPROVE:
        return VerificationState(status=VerificationStatus.APPROVED)
    return VerificationState(status=VerificationStatus.REJECTED, reason=reason.strip())
