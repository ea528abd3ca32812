"""
Branch outcomes and their aggregate for the dual-write pipeline.

Each submission fans out into two branches (store write, email send). A
branch never raises past the coordinator; it resolves to a BranchOutcome
tagged with one OutcomeKind. The pair is then reduced to a SubmissionResult
whose status is one of BOTH_SUCCEEDED, PARTIAL_FAILURE or BOTH_FAILED.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel


class Branch(str, Enum):
    STORE = "store"
    NOTIFICATION = "notification"


class OutcomeKind(str, Enum):
    OK = "ok"
    STORE_WRITE_FAILED = "store_write_failed"
    NOTIFICATION_SEND_FAILED = "notification_send_failed"
    SERVICE_UNAVAILABLE = "service_unavailable"


class AggregateStatus(str, Enum):
    BOTH_SUCCEEDED = "both_succeeded"
    PARTIAL_FAILURE = "partial_failure"
    BOTH_FAILED = "both_failed"


# Failure kind used when a branch's own call raises or times out
FAILURE_KIND = {
    Branch.STORE: OutcomeKind.STORE_WRITE_FAILED,
    Branch.NOTIFICATION: OutcomeKind.NOTIFICATION_SEND_FAILED,
}


class BranchOutcome(BaseModel):
    """
    Normalized result of one branch.

    skipped is set when the branch was intentionally not run (the email is
    sent by the store change webhook instead); a skipped branch counts as ok.
    """
    model_config = {"frozen": True}

    branch: Branch
    kind: OutcomeKind
    error: Optional[str] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.OK

    @classmethod
    def success(cls, branch: Branch, skipped: bool = False) -> "BranchOutcome":
        return cls(branch=branch, kind=OutcomeKind.OK, skipped=skipped)

    @classmethod
    def failed(cls, branch: Branch, reason: str) -> "BranchOutcome":
        return cls(branch=branch, kind=FAILURE_KIND[branch], error=reason)

    @classmethod
    def unavailable(cls, branch: Branch, reason: str) -> "BranchOutcome":
        return cls(branch=branch, kind=OutcomeKind.SERVICE_UNAVAILABLE, error=reason)


class SubmissionResult(BaseModel):
    """The reduced pair of branch outcomes for one submission."""

    status: AggregateStatus
    store: BranchOutcome
    notification: BranchOutcome
    record_id: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == AggregateStatus.BOTH_SUCCEEDED

    @property
    def failed_branches(self) -> list[Branch]:
        return [o.branch for o in (self.store, self.notification) if not o.ok]

    @property
    def success_text(self) -> str:
        if self.notification.skipped:
            return "Message saved successfully!"
        return "Message saved and email sent successfully!"

    @property
    def error_text(self) -> Optional[str]:
        """
        Caller-facing description of what failed.

        The two partial cases are worded differently because the recovery
        differs: a saved-but-not-emailed message is still in the store, an
        emailed-but-not-saved one only exists in the operator's inbox.
        """
        store_ok = self.store.ok
        notification_ok = self.notification.ok

        if store_ok and notification_ok:
            return None
        if not store_ok and not notification_ok:
            return (
                "Message was not saved and no email notification was sent "
                f"(store write failed: {self.store.error}; "
                f"email send failed: {self.notification.error})"
            )
        if not store_ok:
            return (
                "Email notification sent, but the message was not saved "
                f"(store write failed: {self.store.error})"
            )
        return (
            "Message saved, but the email notification was not sent "
            f"(email send failed: {self.notification.error})"
        )


def reduce_outcomes(
    store: BranchOutcome,
    notification: BranchOutcome,
    record_id: Optional[str] = None,
) -> SubmissionResult:
    """Combine both branch outcomes into a SubmissionResult."""
    if store.ok and notification.ok:
        status = AggregateStatus.BOTH_SUCCEEDED
    elif store.ok or notification.ok:
        status = AggregateStatus.PARTIAL_FAILURE
    else:
        status = AggregateStatus.BOTH_FAILED

    return SubmissionResult(
        status=status,
        store=store,
        notification=notification,
        record_id=record_id if store.ok else None,
    )
