"""
Portfolio Contact Backend
FastAPI application that saves contact-form submissions and emails the site owner.
"""

import logging
import os
from typing import List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.dependencies import get_coordinator, get_notifier
from app.routers import contact, webhooks
from app.services.coordinator import DualWriteCoordinator

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Portfolio Contact API",
    description="Contact form submissions: durable record plus operator email",
    version="0.1.0",
)


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Always includes the local static-site dev servers:
    - http://localhost:3000
    - http://localhost:5500  (editor live-preview servers)

    Additional origins are read from the CORS_ORIGINS environment variable
    as a comma-separated list, e.g.:
        CORS_ORIGINS=https://portfolio.example.com,https://www.portfolio.example.com

    Duplicates are removed while preserving order.
    """
    always_included = [
        "http://localhost:3000",
        "http://localhost:5500",
    ]

    # Deduplicate while preserving order
    seen: set = set()
    origins: List[str] = []
    for origin in always_included + get_settings().cors_origins:
        if origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins


# CORS configuration: explicit origins only
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Include routers
app.include_router(contact.router, tags=["contact"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
app.add_exception_handler(StarletteHTTPException, contact.method_not_allowed_handler)


@app.on_event("startup")
async def init_dependencies() -> None:
    """
    Build the shared store client and notifier before the first request.

    Initialization failures are captured inside get_coordinator (logged, then
    reported as unavailable branches); they never stop the app from starting.
    """
    get_coordinator()
    host_port = os.getenv("HOST_PORT", "8000")
    logger.info(f"Contact API running at http://localhost:{host_port}")


@app.on_event("shutdown")
async def close_dependencies() -> None:
    """Release the notifier's pooled HTTP connections."""
    notifier = get_notifier()
    if notifier is not None:
        await notifier.aclose()


@app.get("/")
async def root():
    return {"message": "Portfolio Contact API", "version": "0.1.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/dependencies")
async def health_dependencies(
    coordinator: DualWriteCoordinator = Depends(get_coordinator),
):
    """
    Report whether the store client and email client initialized.

    Does not call either service; returns 503 naming the missing dependency
    so a misconfigured deploy is visible before the first submission.
    """
    status = {
        "store": "available" if coordinator.store_available else "unavailable",
        "notifier": "available" if coordinator.notifier_available else "unavailable",
        "notification_trigger": coordinator.settings.notification_trigger,
    }

    if not coordinator.store_available or not coordinator.notifier_available:
        raise HTTPException(status_code=503, detail=status)

    return {"status": "ok", **status}
