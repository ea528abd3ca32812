"""
Tests for branch outcome reduction and the caller-facing result text.
"""

import pytest

from app.models.outcome import (
    AggregateStatus,
    Branch,
    BranchOutcome,
    OutcomeKind,
    reduce_outcomes,
)

STORE_OK = BranchOutcome.success(Branch.STORE)
NOTIFY_OK = BranchOutcome.success(Branch.NOTIFICATION)
STORE_FAILED = BranchOutcome.failed(Branch.STORE, "permission denied")
NOTIFY_FAILED = BranchOutcome.failed(Branch.NOTIFICATION, "invalid api key")


class TestBranchOutcome:
    def test_failed_kind_depends_on_branch(self):
        assert STORE_FAILED.kind == OutcomeKind.STORE_WRITE_FAILED
        assert NOTIFY_FAILED.kind == OutcomeKind.NOTIFICATION_SEND_FAILED

    def test_unavailable_is_not_ok(self):
        outcome = BranchOutcome.unavailable(Branch.STORE, "store not initialized")
        assert outcome.kind == OutcomeKind.SERVICE_UNAVAILABLE
        assert not outcome.ok

    def test_skipped_branch_counts_as_ok(self):
        outcome = BranchOutcome.success(Branch.NOTIFICATION, skipped=True)
        assert outcome.ok
        assert outcome.skipped


class TestReduceOutcomes:
    @pytest.mark.parametrize(
        "store, notification, expected",
        [
            (STORE_OK, NOTIFY_OK, AggregateStatus.BOTH_SUCCEEDED),
            (STORE_FAILED, NOTIFY_OK, AggregateStatus.PARTIAL_FAILURE),
            (STORE_OK, NOTIFY_FAILED, AggregateStatus.PARTIAL_FAILURE),
            (STORE_FAILED, NOTIFY_FAILED, AggregateStatus.BOTH_FAILED),
        ],
    )
    def test_status_covers_every_pair(self, store, notification, expected):
        assert reduce_outcomes(store, notification).status == expected

    def test_success_has_no_error_text(self):
        result = reduce_outcomes(STORE_OK, NOTIFY_OK, record_id="row-1")

        assert result.succeeded
        assert result.error_text is None
        assert result.success_text == "Message saved and email sent successfully!"
        assert result.record_id == "row-1"

    def test_skipped_notification_changes_success_text(self):
        result = reduce_outcomes(STORE_OK, BranchOutcome.success(Branch.NOTIFICATION, skipped=True))
        assert result.success_text == "Message saved successfully!"

    def test_store_failure_text_says_not_saved_but_emailed(self):
        result = reduce_outcomes(STORE_FAILED, NOTIFY_OK)

        assert result.failed_branches == [Branch.STORE]
        assert "not saved" in result.error_text
        assert "Email notification sent" in result.error_text
        assert "store write failed: permission denied" in result.error_text

    def test_notification_failure_text_says_saved_but_not_emailed(self):
        result = reduce_outcomes(STORE_OK, NOTIFY_FAILED)

        assert result.failed_branches == [Branch.NOTIFICATION]
        assert result.error_text.startswith("Message saved")
        assert "email send failed: invalid api key" in result.error_text

    def test_both_failed_text_contains_both_reasons(self):
        result = reduce_outcomes(STORE_FAILED, NOTIFY_FAILED)

        assert result.failed_branches == [Branch.STORE, Branch.NOTIFICATION]
        assert "permission denied" in result.error_text
        assert "invalid api key" in result.error_text

    def test_record_id_dropped_when_store_failed(self):
        result = reduce_outcomes(STORE_FAILED, NOTIFY_OK, record_id="row-1")
        assert result.record_id is None
