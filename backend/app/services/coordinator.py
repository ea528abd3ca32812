"""
Dual-write coordinator.

Turns one validated submission into a stored record AND an operator email.
The two branches run concurrently, each under its own timeout, and each is
normalized into a BranchOutcome before the join, so a failure in one never
cancels or hides the other. The join waits for both branches.

Branch outcomes:
  store        ok | store_write_failed(reason) | service_unavailable
  notification ok | notification_send_failed(reason) | service_unavailable
               | ok(skipped) when the store change webhook owns the email

Retried submissions are not deduplicated: a second POST of the same form
produces a second row and a second email.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from app.config import Settings
from app.models.outcome import Branch, BranchOutcome, SubmissionResult, reduce_outcomes
from app.models.submission import RequestMetadata, SubmissionRequest
from app.services.email_template import build_notification
from app.services.notifier import BrevoNotifier
from app.services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

STORE_UNAVAILABLE = "store not initialized"
NOTIFIER_UNAVAILABLE = "email client not initialized"
TIMEOUT = "timeout"


class DualWriteCoordinator:
    """
    Runs the store and notification branches for each submission.

    store / notifier are the process-wide clients built at startup; either
    may be None (or an unavailable store) when its initialization failed.
    """

    def __init__(
        self,
        store: Optional[SubmissionStore],
        notifier: Optional[BrevoNotifier],
        settings: Settings,
    ):
        self.store = store
        self.notifier = notifier
        self.settings = settings

    @property
    def store_available(self) -> bool:
        return self.store is not None and self.store.available

    @property
    def notifier_available(self) -> bool:
        return self.notifier is not None

    async def submit(
        self,
        submission: SubmissionRequest,
        metadata: Optional[RequestMetadata] = None,
    ) -> SubmissionResult:
        """Run both branches, wait for both, and reduce their outcomes."""
        metadata = metadata or RequestMetadata()

        (store_outcome, record_id), notification_outcome = await asyncio.gather(
            self._store_branch(submission, metadata),
            self._notification_branch(submission),
        )

        result = reduce_outcomes(store_outcome, notification_outcome, record_id)
        if result.succeeded:
            logger.info(f"Submission {record_id} saved and notified")
        else:
            logger.warning(
                f"Submission finished with {result.status.value}: {result.error_text}"
            )
        return result

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    async def _store_branch(
        self,
        submission: SubmissionRequest,
        metadata: RequestMetadata,
    ) -> tuple[BranchOutcome, Optional[str]]:
        if not self.store_available:
            logger.warning("Skipping store write: store not initialized")
            return BranchOutcome.unavailable(Branch.STORE, STORE_UNAVAILABLE), None

        record_id: Optional[str] = None

        async def write() -> None:
            nonlocal record_id
            record = await asyncio.to_thread(self.store.save, submission, metadata)
            record_id = record.id

        outcome = await _run_branch(
            Branch.STORE, write, self.settings.store_timeout_seconds
        )
        return outcome, record_id

    async def _notification_branch(self, submission: SubmissionRequest) -> BranchOutcome:
        if not self.settings.notify_inline:
            return BranchOutcome.success(Branch.NOTIFICATION, skipped=True)
        if not self.notifier_available:
            logger.warning("Skipping notification: email client not initialized")
            return BranchOutcome.unavailable(Branch.NOTIFICATION, NOTIFIER_UNAVAILABLE)

        message = build_notification(submission, self.settings)
        return await _run_branch(
            Branch.NOTIFICATION,
            lambda: self.notifier.send(message),
            self.settings.notification_timeout_seconds,
        )


async def _run_branch(
    branch: Branch,
    operation: Callable[[], Awaitable[T]],
    timeout: float,
) -> BranchOutcome:
    """
    Await one branch under its own timeout and normalize the result.

    Any exception the branch raises becomes a failed outcome; a timeout
    becomes failed("timeout"). Nothing propagates to the caller.
    """
    try:
        await asyncio.wait_for(operation(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{branch.value} branch timed out after {timeout}s")
        return BranchOutcome.failed(branch, TIMEOUT)
    except Exception as exc:
        logger.warning(f"{branch.value} branch failed: {exc}")
        return BranchOutcome.failed(branch, str(exc) or exc.__class__.__name__)
    return BranchOutcome.success(branch)
