"""
Pydantic models for contact-form submissions.

Models:
  SubmissionRequest   — validated name/email/message from the form
  RequestMetadata     — best-effort caller details captured by the router
  SubmissionRecord    — row persisted in the submissions table
  EmailAddress        — address + optional display name
  NotificationMessage — operator email built from a submission
  SubmitResponse      — 200/500 response body for POST /submit
"""

from typing import Optional
from pydantic import BaseModel

UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Inbound submission
# ---------------------------------------------------------------------------

class SubmissionRequest(BaseModel):
    """
    A submission that passed validation.

    Only the validator constructs these, so every field is non-blank and holds
    exactly what was submitted. The email format is not checked server-side; the browser
    form does a regex check before posting.
    """
    model_config = {"frozen": True}

    name: str
    email: str
    message: str


class RequestMetadata(BaseModel):
    """Caller details recorded alongside a submission."""
    client_ip: str = UNKNOWN
    user_agent: str = UNKNOWN
    idempotency_key: Optional[str] = None


# ---------------------------------------------------------------------------
# Persisted record
# ---------------------------------------------------------------------------

class SubmissionRecord(BaseModel):
    """
    One row of the submissions table.

    id is assigned by the database on insert and is None only before the
    write. created_at is always server time, never taken from the client.
    Records are append-only: this service never updates or deletes them.
    """
    model_config = {"extra": "ignore"}

    id: Optional[str] = None
    name: str
    email: str
    message: str
    created_at: str
    client_ip: str = UNKNOWN
    client_user_agent: str = UNKNOWN
    idempotency_key: Optional[str] = None

    def insert_payload(self) -> dict:
        """Row values for the insert call (id is left to the database)."""
        return self.model_dump(exclude={"id"}, exclude_none=True)


# ---------------------------------------------------------------------------
# Notification
# ---------------------------------------------------------------------------

class EmailAddress(BaseModel):
    email: str
    name: Optional[str] = None

    def as_brevo(self) -> dict:
        contact = {"email": self.email}
        if self.name:
            contact["name"] = self.name
        return contact


class NotificationMessage(BaseModel):
    """Operator notification; built, sent once, then discarded."""
    subject: str
    html_content: str
    sender: EmailAddress
    to: list[EmailAddress]
    reply_to: EmailAddress


# ---------------------------------------------------------------------------
# Response bodies
# ---------------------------------------------------------------------------

class SubmitResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
