"""
Runtime configuration for the contact backend.

All secrets and operator identities come from the environment (or a .env
file loaded via python-dotenv). Nothing here raises: malformed values fall
back to defaults with a logged warning so the app always starts, and any
missing dependency surfaces later as an unavailable branch.

Environment variables
---------------------
BREVO_API_KEY                 Brevo transactional-email key.
SENDINBLUE_API_KEY            Legacy alias, checked when BREVO_API_KEY is unset.
BREVO_API_URL                 Override the Brevo send endpoint.
SUPABASE_URL                  Supabase project URL.
SUPABASE_SERVICE_KEY          Service-role key (inserts bypass RLS).
SUPABASE_CREDENTIALS          JSON blob {"url": ..., "service_key": ...};
                              takes precedence over the two variables above.
SUBMISSIONS_TABLE             Table receiving submissions (default: contact_submissions).
NOTIFY_SENDER_EMAIL / NOTIFY_SENDER_NAME
NOTIFY_RECIPIENT_EMAIL / NOTIFY_RECIPIENT_NAME
STORE_TIMEOUT_SECONDS         Per-request bound on the store write (default: 10).
NOTIFICATION_TIMEOUT_SECONDS  Per-request bound on the email send (default: 10).
NOTIFICATION_TRIGGER          "request" (default) or "store".
CHANGE_WEBHOOK_SECRET         Shared secret for the store change webhook.
CORS_ORIGINS                  Comma-separated browser origins.
"""

import json
import logging
import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"
DEFAULT_SUBMISSIONS_TABLE = "contact_submissions"
DEFAULT_TIMEOUT_SECONDS = 10.0

TRIGGER_REQUEST = "request"
TRIGGER_STORE = "store"
_TRIGGERS = (TRIGGER_REQUEST, TRIGGER_STORE)


class Settings(BaseModel):
    """Process-wide settings, resolved once from the environment."""

    brevo_api_key: Optional[str] = None
    brevo_api_url: str = DEFAULT_BREVO_API_URL

    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    submissions_table: str = DEFAULT_SUBMISSIONS_TABLE

    sender_email: Optional[str] = None
    sender_name: Optional[str] = None
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None

    store_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    notification_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    notification_trigger: str = TRIGGER_REQUEST
    change_webhook_secret: Optional[str] = None

    cors_origins: List[str] = []

    @property
    def notify_inline(self) -> bool:
        """True when the HTTP handler, not the store webhook, sends the email."""
        return self.notification_trigger == TRIGGER_REQUEST

    @classmethod
    def from_env(cls) -> "Settings":
        url, service_key = _resolve_supabase_credentials()
        return cls(
            brevo_api_key=_env("BREVO_API_KEY") or _env("SENDINBLUE_API_KEY"),
            brevo_api_url=_env("BREVO_API_URL") or DEFAULT_BREVO_API_URL,
            supabase_url=url,
            supabase_service_key=service_key,
            submissions_table=_env("SUBMISSIONS_TABLE") or DEFAULT_SUBMISSIONS_TABLE,
            sender_email=_env("NOTIFY_SENDER_EMAIL"),
            sender_name=_env("NOTIFY_SENDER_NAME"),
            recipient_email=_env("NOTIFY_RECIPIENT_EMAIL"),
            recipient_name=_env("NOTIFY_RECIPIENT_NAME"),
            store_timeout_seconds=_env_seconds("STORE_TIMEOUT_SECONDS"),
            notification_timeout_seconds=_env_seconds("NOTIFICATION_TIMEOUT_SECONDS"),
            notification_trigger=_env_trigger(),
            change_webhook_secret=_env("CHANGE_WEBHOOK_SECRET"),
            cors_origins=_env_list("CORS_ORIGINS"),
        )


# ---------------------------------------------------------------------------
# Environment helpers
# ---------------------------------------------------------------------------

def _env(name: str) -> Optional[str]:
    """Return the stripped value of an env var, or None when unset/blank."""
    value = os.getenv(name, "").strip()
    return value or None


def _env_seconds(name: str) -> float:
    raw = _env(name)
    if raw is None:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        seconds = float(raw)
    except ValueError:
        logger.warning(f"{name}={raw!r} is not a number; using {DEFAULT_TIMEOUT_SECONDS}s")
        return DEFAULT_TIMEOUT_SECONDS
    if seconds <= 0:
        logger.warning(f"{name} must be positive; using {DEFAULT_TIMEOUT_SECONDS}s")
        return DEFAULT_TIMEOUT_SECONDS
    return seconds


def _env_trigger() -> str:
    raw = (_env("NOTIFICATION_TRIGGER") or TRIGGER_REQUEST).lower()
    if raw not in _TRIGGERS:
        logger.warning(
            f"Unknown NOTIFICATION_TRIGGER {raw!r}; "
            f"supported values: {list(_TRIGGERS)}. Using {TRIGGER_REQUEST!r}"
        )
        return TRIGGER_REQUEST
    return raw


def _env_list(name: str) -> List[str]:
    raw = _env(name)
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _resolve_supabase_credentials() -> tuple[Optional[str], Optional[str]]:
    """
    Return (url, service_key) for the document store.

    SUPABASE_CREDENTIALS (a JSON blob) wins over the individual variables.
    A blob that does not parse, or lacks either key, yields (None, None) so
    the store branch reports itself unavailable instead of crashing startup.
    """
    blob = _env("SUPABASE_CREDENTIALS")
    if blob is None:
        return _env("SUPABASE_URL"), _env("SUPABASE_SERVICE_KEY")

    try:
        parsed = json.loads(blob)
    except json.JSONDecodeError as exc:
        logger.error(f"SUPABASE_CREDENTIALS is not valid JSON: {exc}")
        return None, None

    if not isinstance(parsed, dict):
        logger.error("SUPABASE_CREDENTIALS must be a JSON object")
        return None, None

    url = parsed.get("url")
    service_key = parsed.get("service_key")
    if not url or not service_key:
        logger.error("SUPABASE_CREDENTIALS must contain 'url' and 'service_key'")
        return None, None
    return str(url), str(service_key)


@lru_cache
def get_settings() -> Settings:
    """Load .env once and return the cached settings."""
    load_dotenv()
    return Settings.from_env()
