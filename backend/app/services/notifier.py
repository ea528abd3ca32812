"""
Brevo transactional-email adapter.

Sends a NotificationMessage through Brevo's v3 `smtp/email` endpoint.

Brevo request shape (JSON, header `api-key: <key>`):

  sender       {email, name}
  to           [{email, name}]
  replyTo      {email, name}
  subject      str
  htmlContent  str

A successful send answers 201 with {"messageId": "<...>"}. Error bodies carry
{"code": ..., "message": ...}; the message is surfaced in the raised error.
"""

import logging
from typing import Optional

import httpx

from app.config import Settings
from app.models.submission import NotificationMessage

logger = logging.getLogger(__name__)


class NotificationSendError(Exception):
    """The email provider did not accept the message."""


def build_payload(message: NotificationMessage) -> dict:
    return {
        "sender": message.sender.as_brevo(),
        "to": [recipient.as_brevo() for recipient in message.to],
        "replyTo": message.reply_to.as_brevo(),
        "subject": message.subject,
        "htmlContent": message.html_content,
    }


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text


class BrevoNotifier:
    """
    Email sender bound to one API key.

    One AsyncClient is shared by every send so connections are pooled; it
    is closed by aclose() at app shutdown. Tests pass a client backed by
    httpx.MockTransport.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self._http_client = http_client if http_client is not None else httpx.AsyncClient()

    def _headers(self) -> dict:
        return {
            "api-key": self.api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }

    async def aclose(self) -> None:
        await self._http_client.aclose()

    async def _post(self, payload: dict) -> httpx.Response:
        return await self._http_client.post(self.api_url, json=payload, headers=self._headers())

    async def send(self, message: NotificationMessage) -> str:
        """
        Send one message and return the provider's message id.

        Raises:
            NotificationSendError: transport failure or non-2xx response.
        """
        payload = build_payload(message)

        try:
            response = await self._post(payload)
        except httpx.HTTPError as exc:
            raise NotificationSendError(f"Email provider unreachable: {exc}")

        if not response.is_success:
            raise NotificationSendError(
                f"Email provider returned {response.status_code}: {_error_detail(response)}"
            )

        try:
            message_id = str(response.json().get("messageId", ""))
        except (ValueError, AttributeError):
            message_id = ""

        logger.info(f"Brevo accepted notification {message_id or '(no id)'}")
        return message_id


def build_notifier(settings: Settings) -> Optional[BrevoNotifier]:
    """
    Build the process-wide notifier, or None when it cannot send.

    Missing API key or operator addresses are logged once here; afterwards
    the notification branch fails fast as unavailable.
    """
    if not settings.brevo_api_key:
        logger.warning("BREVO_API_KEY is not configured; notification emails disabled")
        return None
    if not settings.sender_email or not settings.recipient_email:
        logger.warning(
            "NOTIFY_SENDER_EMAIL / NOTIFY_RECIPIENT_EMAIL not configured; "
            "notification emails disabled"
        )
        return None
    return BrevoNotifier(api_key=settings.brevo_api_key, api_url=settings.brevo_api_url)
