"""
Database client configuration.
Uses a Supabase table as the append-only store for contact submissions.

The client is built once per process. Construction problems (missing or
malformed credentials) are logged and captured as None rather than raised,
so the app still starts and the store branch reports itself unavailable.
"""

import logging
from typing import Optional

from supabase import Client, create_client

from app.config import Settings

logger = logging.getLogger(__name__)


def create_store_client(settings: Settings) -> Optional[Client]:
    """
    Build the service-level Supabase client, or None if it cannot be built.

    Uses the service-role key so inserts are not subject to RLS policies.
    """
    if not settings.supabase_url or not settings.supabase_service_key:
        logger.warning(
            "Supabase credentials not configured (SUPABASE_URL / SUPABASE_SERVICE_KEY "
            "or SUPABASE_CREDENTIALS) — submissions will not be saved"
        )
        return None

    try:
        return create_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as exc:
        logger.error(f"Failed to initialize Supabase client: {exc}")
        return None
