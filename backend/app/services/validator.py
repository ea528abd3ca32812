"""
Submission validation.

Pure function of the inbound method and parsed body: either returns a
SubmissionRequest or raises a SubmissionRejected subclass. Nothing here
touches the store or the email provider, and no output sanitation happens
here (the email template escapes values when rendering).
"""

from typing import Any, Iterable, Mapping, Optional

from app.models.submission import SubmissionRequest

ALLOWED_METHODS = ("POST", "OPTIONS")
REQUIRED_FIELDS = ("name", "email", "message")


class SubmissionRejected(Exception):
    """Base class for validation rejections; status_code is the HTTP mapping."""
    status_code = 400


class MethodNotAllowed(SubmissionRejected):
    status_code = 405

    def __init__(self, method: str, allowed: Iterable[str] = ALLOWED_METHODS):
        self.method = method
        self.allowed = tuple(allowed)
        super().__init__(f"Method {method} Not Allowed")

    @property
    def allow_header(self) -> str:
        return ", ".join(self.allowed)


class MissingFields(SubmissionRejected):
    status_code = 400

    def __init__(self, fields: Iterable[str]):
        self.fields = list(fields)
        super().__init__("Missing required fields")


def check_method(method: str) -> None:
    """
    Only POST reaches the validator's body checks.

    OPTIONS preflights are answered by the router before validation, so here
    anything other than POST is rejected.
    """
    if method.upper() != "POST":
        raise MethodNotAllowed(method.upper())


def _clean(value: Any) -> Optional[str]:
    """
    Return the field unchanged, or None when it counts as missing.

    Whitespace is only trimmed to decide emptiness; the stored and emailed
    text is exactly what was submitted.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    return value


def validate_submission(method: str, body: Optional[Mapping[str, Any]]) -> SubmissionRequest:
    """
    Validate an inbound contact-form request.

    Args:
        method: HTTP method of the request.
        body:   Parsed JSON body. None or a non-mapping is treated as empty.

    Returns:
        SubmissionRequest with all three fields non-blank, values unchanged.

    Raises:
        MethodNotAllowed: method is not POST.
        MissingFields:    name, email or message is absent or blank.
    """
    check_method(method)

    if not isinstance(body, Mapping):
        body = {}

    cleaned = {field: _clean(body.get(field)) for field in REQUIRED_FIELDS}
    missing = [field for field, value in cleaned.items() if value is None]
    if missing:
        raise MissingFields(missing)

    return SubmissionRequest(**cleaned)
