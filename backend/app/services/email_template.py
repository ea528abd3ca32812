"""
Operator notification rendering.

Builds the NotificationMessage sent to the site owner for each submission.
Both the HTTP path and the store change webhook render through
render_notification so the two produce identical emails.

User-supplied values are HTML-escaped before they are placed in the body;
the persisted record keeps the raw text.

Public API:
  build_notification(submission, settings) -> NotificationMessage
  build_notification_from_record(record, settings) -> NotificationMessage
"""

import html
import re

from app.config import Settings
from app.models.submission import (
    EmailAddress,
    NotificationMessage,
    SubmissionRecord,
    SubmissionRequest,
)

SUBJECT_TEMPLATE = "New Portfolio Message from {name}"

_BODY_TEMPLATE = """\
<p>You received a new message from your portfolio contact form:</p>
<hr>
<p><strong>Name:</strong> {name}</p>
<p><strong>Email:</strong> {email}</p>
<p><strong>Message:</strong></p>
<p>{message}</p>
"""

_LINE_BREAKS = re.compile(r"[\r\n]+")


def render_subject(name: str) -> str:
    # Header values must stay on one line
    return SUBJECT_TEMPLATE.format(name=_LINE_BREAKS.sub(" ", name).strip())


def render_body(name: str, email: str, message: str) -> str:
    escaped_message = html.escape(message).replace("\r\n", "\n").replace("\n", "<br>\n")
    return _BODY_TEMPLATE.format(
        name=html.escape(name),
        email=html.escape(email),
        message=escaped_message,
    )


def render_notification(
    name: str,
    email: str,
    message: str,
    settings: Settings,
) -> NotificationMessage:
    """
    Render the operator email for one submission.

    Sender and recipient come from configuration; reply_to is the submitter
    so the operator can answer straight from their mail client.
    """
    return NotificationMessage(
        subject=render_subject(name),
        html_content=render_body(name, email, message),
        sender=EmailAddress(email=settings.sender_email or "", name=settings.sender_name),
        to=[EmailAddress(email=settings.recipient_email or "", name=settings.recipient_name)],
        reply_to=EmailAddress(email=email, name=name),
    )


def build_notification(submission: SubmissionRequest, settings: Settings) -> NotificationMessage:
    return render_notification(submission.name, submission.email, submission.message, settings)


def build_notification_from_record(record: SubmissionRecord, settings: Settings) -> NotificationMessage:
    return render_notification(record.name, record.email, record.message, settings)
