"""
Supabase-backed store for contact submissions.
Appends one row per accepted submission; rows are never updated or deleted.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError
from supabase import Client

from app.models.submission import RequestMetadata, SubmissionRecord, SubmissionRequest

logger = logging.getLogger(__name__)


class StoreWriteError(Exception):
    """The insert did not produce a stored row."""


def record_from_row(row: dict) -> SubmissionRecord:
    """
    Convert a table row to a SubmissionRecord.

    Null columns fall back to the model defaults and the database id is
    stringified (the column may be a bigint or a uuid).
    """
    values = {key: value for key, value in row.items() if value is not None}
    if "id" in values:
        values["id"] = str(values["id"])
    return SubmissionRecord(**values)


class SubmissionStore:
    """
    Thin adapter over the submissions table.

    client may be None when the Supabase client failed to initialize at
    startup; available is then False and callers skip the write entirely.
    """

    def __init__(self, client: Optional[Client], table: str):
        self.client = client
        self.table = table

    @property
    def available(self) -> bool:
        return self.client is not None

    def build_record(
        self,
        submission: SubmissionRequest,
        metadata: RequestMetadata,
        now: Optional[datetime] = None,
    ) -> SubmissionRecord:
        created_at = (now or datetime.now(timezone.utc)).isoformat()
        return SubmissionRecord(
            name=submission.name,
            email=submission.email,
            message=submission.message,
            created_at=created_at,
            client_ip=metadata.client_ip,
            client_user_agent=metadata.user_agent,
            idempotency_key=metadata.idempotency_key,
        )

    def save(
        self,
        submission: SubmissionRequest,
        metadata: RequestMetadata,
        now: Optional[datetime] = None,
    ) -> SubmissionRecord:
        """
        Insert a submission and return the stored record.

        Blocking (the Supabase client is synchronous); the coordinator runs it
        in a worker thread.

        Raises:
            StoreWriteError: client unavailable, API error, or no row returned.
        """
        if not self.available:
            raise StoreWriteError("store not initialized")

        record = self.build_record(submission, metadata, now)

        try:
            result = self.client.table(self.table).insert(record.insert_payload()).execute()
        except Exception as e:
            raise StoreWriteError(f"Failed to insert submission: {str(e)}")

        if not result.data:
            raise StoreWriteError("Failed to insert submission: no row returned")

        row = result.data[0]
        try:
            stored = record_from_row(row)
        except ValidationError as e:
            # The insert already succeeded; only the echoed row is unexpected.
            logger.warning(f"Inserted row in {self.table} did not match the record shape: {e}")
            row_id = row.get("id") if isinstance(row, dict) else None
            stored = record.model_copy(
                update={"id": str(row_id) if row_id is not None else None}
            )

        logger.info(f"Saved submission {stored.id} to {self.table}")
        return stored

