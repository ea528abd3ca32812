#!/usr/bin/env python3
"""
Dev helper: post a test contact-form submission to the local backend.

Sends the same JSON body the portfolio page sends to POST /submit and
prints the response. Connection failures are retried with the page's fixed
exponential backoff; an HTTP 500 is NOT retried, because one of the two
side effects (saved record, operator email) may already have happened and
a resend would duplicate it.

Usage
-----
# Basic — sample submission to localhost:8000
python scripts/send_test_submission.py

# Custom fields
python scripts/send_test_submission.py --name Ada --email ada@example.com --message "Hello"

# Target a different backend URL
python scripts/send_test_submission.py --url https://contact.example.com

# Attach an idempotency key (stored on the record)
python scripts/send_test_submission.py --idempotency-key test-123
"""

import argparse
import json
import sys
import textwrap
import time
from pathlib import Path

import httpx
from dotenv import load_dotenv

# Browser form controller retry policy: 3 attempts, 1s then 2s between them
MAX_ATTEMPTS = 3
BASE_DELAY_SECONDS = 1.0


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        body = response.json()
        print(json.dumps(body, indent=2))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Sending with backoff
# ---------------------------------------------------------------------------

def post_with_backoff(
    endpoint: str,
    payload: dict,
    headers: dict,
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = BASE_DELAY_SECONDS,
) -> httpx.Response:
    """
    POST payload, retrying only when the server could not be reached.

    Any HTTP response (including 4xx/5xx) is returned as-is.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            return httpx.post(endpoint, json=payload, headers=headers, timeout=30)
        except httpx.TransportError as exc:
            if attempt == max_attempts:
                raise
            delay = base_delay * 2 ** (attempt - 1)
            print(f"Attempt {attempt} failed ({exc}); retrying in {delay:.0f}s...")
            time.sleep(delay)
    raise RuntimeError("unreachable")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    # Locate project root (scripts/ lives one level below the root)
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_submission.py",
        description="Post a test contact-form submission to the contact backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_submission.py
              python scripts/send_test_submission.py --name Ada --message "Hi <there> & all"
              python scripts/send_test_submission.py --url http://localhost:8000
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument("--name", default="Test Sender", help='Sender name (default: "Test Sender")')
    parser.add_argument(
        "--email",
        default="sender@example.com",
        help="Sender email address (default: sender@example.com)",
    )
    parser.add_argument(
        "--message",
        default="Hello from send_test_submission.py",
        help="Message text",
    )
    parser.add_argument(
        "--idempotency-key",
        default=None,
        metavar="KEY",
        help="Value for the Idempotency-Key header (stored on the record).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload JSON without sending it.",
    )

    args = parser.parse_args()

    payload = {"name": args.name, "email": args.email, "message": args.message}
    headers = {}
    if args.idempotency_key:
        headers["Idempotency-Key"] = args.idempotency_key

    endpoint = f"{args.url.rstrip('/')}/submit"

    print(f"Endpoint : {endpoint}")
    print(f"Name     : {args.name}")
    print(f"Email    : {args.email}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(payload, indent=2))
        return 0

    try:
        response = post_with_backoff(endpoint, payload, headers)
    except httpx.TransportError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the backend running? Start it with:\n"
            "  cd backend && uvicorn app.main:app --reload",
            file=sys.stderr,
        )
        return 1

    _print_response(response)
    if response.status_code == 500:
        print(
            "\nThe server reported a failure; part of the submission may already be "
            "saved or emailed. Not retrying automatically.",
            file=sys.stderr,
        )
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
