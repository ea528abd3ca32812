"""
Process-wide dependency objects.

The store client, notifier and coordinator are built once and shared by
every request. Routers receive them through FastAPI dependencies, so tests
swap in substitutes with app.dependency_overrides.
"""

import logging
from functools import lru_cache
from typing import Optional

from app.config import get_settings
from app.db import create_store_client
from app.services.coordinator import DualWriteCoordinator
from app.services.notifier import BrevoNotifier, build_notifier
from app.services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)


@lru_cache
def get_notifier() -> Optional[BrevoNotifier]:
    return build_notifier(get_settings())


@lru_cache
def get_store() -> SubmissionStore:
    settings = get_settings()
    return SubmissionStore(create_store_client(settings), settings.submissions_table)


@lru_cache
def get_coordinator() -> DualWriteCoordinator:
    settings = get_settings()
    coordinator = DualWriteCoordinator(get_store(), get_notifier(), settings)
    logger.info(
        "Coordinator ready: store: %s, notifier: %s, notification trigger: %s",
        "available" if coordinator.store_available else "unavailable",
        "available" if coordinator.notifier_available else "unavailable",
        settings.notification_trigger,
    )
    return coordinator
