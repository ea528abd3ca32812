"""
Store change webhook.

Receives Supabase database webhooks for the submissions table and hands
INSERT events to the change notifier.

Environment variables
---------------------
CHANGE_WEBHOOK_SECRET   Shared secret expected in the X-Webhook-Secret header.
NOTIFICATION_TRIGGER    Must be "store" for events to send email.

Endpoints:
  POST /webhooks/submission-created   (auth: X-Webhook-Secret)

Every authenticated request answers 200, including failed sends, so the
database does not redeliver and trigger a second email.
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException
from pydantic import ValidationError

from app.config import Settings, get_settings
from app.dependencies import get_notifier
from app.services.change_notifier import STATUS_IGNORED, StoreChangeEvent, handle_store_change
from app.services.notifier import BrevoNotifier

logger = logging.getLogger(__name__)

router = APIRouter()


def _verify_webhook_secret(
    x_webhook_secret: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Check the shared secret on an inbound store webhook.

    Raises 401 if the secret is missing, unconfigured, or does not match.
    """
    expected = settings.change_webhook_secret
    if not expected:
        logger.warning(
            "CHANGE_WEBHOOK_SECRET is not configured — all store webhook requests will be rejected"
        )
        raise HTTPException(status_code=401, detail="Webhook secret not configured")

    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret, expected):
        raise HTTPException(status_code=401, detail="Invalid webhook secret")


@router.post("/submission-created", dependencies=[Depends(_verify_webhook_secret)])
async def submission_created(
    payload: dict = Body(...),
    notifier: Optional[BrevoNotifier] = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    try:
        event = StoreChangeEvent.from_payload(payload)
    except ValidationError:
        logger.warning("Malformed store webhook payload ignored")
        return {"status": STATUS_IGNORED, "reason": "malformed payload"}

    return await handle_store_change(event, notifier, settings)
