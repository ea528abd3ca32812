"""
Store change notifier.

Alternate trigger for the operator email: a Supabase database webhook posts
each INSERT on the submissions table here, and the same notification the
HTTP path would send is rendered from the stored row.

Only active when NOTIFICATION_TRIGGER=store; the coordinator then skips its
own email branch, so each submission produces exactly one email. Sends are
attempted once, logged, and never retried or written back to the store.

Supabase database webhook payload:

  type        "INSERT" | "UPDATE" | "DELETE"
  table       table name
  schema      schema name
  record      new row (dict)
  old_record  previous row or null
"""

import asyncio
import logging
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from app.config import Settings
from app.services.email_template import build_notification_from_record
from app.services.notifier import BrevoNotifier
from app.services.submission_store import record_from_row

logger = logging.getLogger(__name__)

STATUS_SENT = "sent"
STATUS_FAILED = "failed"
STATUS_IGNORED = "ignored"


class StoreChangeEvent(BaseModel):
    """Subset of the database webhook body the notifier uses."""
    model_config = {"extra": "ignore"}

    type: str
    table: str
    schema_name: Optional[str] = None
    record: Optional[dict[str, Any]] = None
    old_record: Optional[dict[str, Any]] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "StoreChangeEvent":
        data = dict(payload)
        # "schema" shadows a BaseModel attribute
        data["schema_name"] = data.pop("schema", None)
        return cls(**data)


def _result(status: str, **extra: Any) -> dict:
    return {"status": status, **extra}


async def handle_store_change(
    event: StoreChangeEvent,
    notifier: Optional[BrevoNotifier],
    settings: Settings,
) -> dict:
    """
    Send the operator email for one inserted submission row.

    Returns a small status dict for the webhook response; never raises for
    send failures so the database does not redeliver the event.
    """
    if settings.notify_inline:
        logger.info("Store change event ignored: NOTIFICATION_TRIGGER is 'request'")
        return _result(STATUS_IGNORED, reason="notifications are sent by the request handler")

    if event.type.upper() != "INSERT" or event.table != settings.submissions_table:
        logger.info(f"Store change event ignored: {event.type} on {event.table}")
        return _result(STATUS_IGNORED, reason="not a new submission")

    if not event.record:
        logger.warning("Store change event has no record")
        return _result(STATUS_IGNORED, reason="event has no record")

    try:
        record = record_from_row(event.record)
    except ValidationError as exc:
        logger.warning(f"Store change record is incomplete: {exc.error_count()} error(s)")
        return _result(STATUS_IGNORED, reason="record is missing required fields")

    if notifier is None:
        logger.error(f"Cannot notify for submission {record.id}: email client not initialized")
        return _result(STATUS_FAILED, error="email client not initialized")

    message = build_notification_from_record(record, settings)
    timeout = settings.notification_timeout_seconds
    try:
        message_id = await asyncio.wait_for(notifier.send(message), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Notification for submission {record.id} timed out after {timeout}s")
        return _result(STATUS_FAILED, error="timeout")
    except Exception as exc:
        logger.error(f"Notification for submission {record.id} failed: {exc}")
        return _result(STATUS_FAILED, error=str(exc))

    logger.info(f"Notification for submission {record.id} sent")
    return _result(STATUS_SENT, message_id=message_id)
