"""
Contact form endpoint.

Endpoints:
  OPTIONS /submit  - preflight / capability probe, empty 200
  POST    /submit  - validate, then save + notify via the coordinator
  other   /submit  - 405 with an Allow header (method_not_allowed_handler)

Status mapping:
  200  both branches succeeded
  400  missing or blank name / email / message
  405  method other than POST / OPTIONS
  500  one or both branches failed, or an unexpected fault
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.dependencies import get_coordinator
from app.models.submission import UNKNOWN, RequestMetadata, SubmitResponse
from app.services.coordinator import DualWriteCoordinator
from app.services.validator import (
    ALLOWED_METHODS,
    MethodNotAllowed,
    MissingFields,
    SubmissionRejected,
    validate_submission,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SUBMIT_PATH = "/submit"
ALLOW_HEADER = ", ".join(ALLOWED_METHODS)
INTERNAL_ERROR = "Internal server error"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _read_json_body(request: Request) -> Optional[Any]:
    """Parse the JSON body; malformed JSON is treated as no body at all."""
    try:
        return await request.json()
    except ValueError:
        return None


def _request_metadata(request: Request) -> RequestMetadata:
    """
    Collect best-effort caller details.

    client_ip prefers the first X-Forwarded-For hop (the app normally sits
    behind a proxy) and falls back to the socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    client_ip = forwarded.split(",")[0].strip()
    if not client_ip and request.client:
        client_ip = request.client.host

    idempotency_key = request.headers.get("idempotency-key", "").strip() or None

    return RequestMetadata(
        client_ip=client_ip or UNKNOWN,
        user_agent=request.headers.get("user-agent", "").strip() or UNKNOWN,
        idempotency_key=idempotency_key,
    )


def _rejection_response(exc: SubmissionRejected) -> JSONResponse:
    if isinstance(exc, MethodNotAllowed):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc)},
            headers={"Allow": exc.allow_header},
        )
    content: dict = {"error": str(exc)}
    if isinstance(exc, MissingFields):
        content["missing_fields"] = exc.fields
    return JSONResponse(status_code=exc.status_code, content=content)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.options(SUBMIT_PATH)
async def submit_options() -> Response:
    """Acknowledge a preflight without touching the validator."""
    return Response(
        status_code=200,
        headers={
            "Allow": ALLOW_HEADER,
            "Access-Control-Allow-Methods": ALLOW_HEADER,
            "Access-Control-Allow-Headers": "Content-Type",
        },
    )


@router.post(SUBMIT_PATH, response_model=SubmitResponse)
async def submit_contact_form(
    request: Request,
    coordinator: DualWriteCoordinator = Depends(get_coordinator),
):
    """
    Accept a contact-form submission.

    Body: {"name": str, "email": str, "message": str}. The record is saved
    and the operator emailed concurrently; a 500 names the branch that
    failed. Retrying after a 500 may duplicate whichever branch succeeded.
    """
    body = await _read_json_body(request)

    try:
        submission = validate_submission(request.method, body)
    except SubmissionRejected as exc:
        logger.info(f"Rejected submission: {exc}")
        return _rejection_response(exc)

    try:
        result = await coordinator.submit(submission, _request_metadata(request))
    except Exception:
        logger.exception("Unexpected error while processing submission")
        return JSONResponse(
            status_code=500,
            content=SubmitResponse(success=False, error=INTERNAL_ERROR).model_dump(exclude_none=True),
        )

    if result.succeeded:
        response = SubmitResponse(success=True, message=result.success_text)
        return JSONResponse(status_code=200, content=response.model_dump(exclude_none=True))

    response = SubmitResponse(success=False, error=result.error_text)
    return JSONResponse(status_code=500, content=response.model_dump(exclude_none=True))


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """
    Answer every unrouted method on /submit through the validator's 405.

    Starlette raises a 405 HTTPException for any verb no route on the path
    accepts (TRACE and custom verbs included); other HTTP errors keep
    FastAPI's default rendering.
    """
    if exc.status_code == 405 and request.url.path == SUBMIT_PATH:
        return _rejection_response(MethodNotAllowed(request.method))
    return await http_exception_handler(request, exc)

