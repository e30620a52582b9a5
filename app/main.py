"""FastAPI application: entry point for the calendar service."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Header, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.domain.errors import CalendarError, UnauthenticatedError
from app.domain.models import CalendarEntry, Event, EventCreate, EventUpdate
from app.logging_config import setup_logging
from app.repos.memory import (
    EventRepository,
    OwnerLocks,
    OwnerRepository,
    seed_repositories,
)
from app.services.events import EventService
from app.services.timeparse import parse_day, parse_instant

logger = logging.getLogger(__name__)

settings = get_settings()
setup_logging(settings.log_level)

app = FastAPI(title="Calendar Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_repo = EventRepository()
owner_repo = OwnerRepository()
owner_locks = OwnerLocks(timeout=settings.store_timeout_seconds)
event_service = EventService(
    repo=event_repo,
    owners=owner_repo,
    locks=owner_locks,
    settings=settings,
)

if settings.seed_data:
    seed_repositories(event_repo, owner_repo)


def get_owner_id(x_owner_id: str | None = Header(default=None)) -> str:
    """Caller identity, supplied by the authenticating proxy in ``X-Owner-Id``."""
    if not x_owner_id or not x_owner_id.strip():
        raise UnauthenticatedError()
    return x_owner_id.strip()


# ── Error handling ────────────────────────────────────────────────────


@app.exception_handler(CalendarError)
async def handle_calendar_error(request: Request, exc: CalendarError) -> JSONResponse:
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"][1:])
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return JSONResponse(
        {"error": f"Validation failed: {', '.join(messages)}"},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        {"error": "Internal server error"},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/events", response_model=list[CalendarEntry])
def list_events(
    start: str | None = None,
    end: str | None = None,
    owner_id: str = Depends(get_owner_id),
) -> list:
    """Return the caller's events, expanding recurrences when a range is given."""
    range_start = parse_instant(start, "start") if start is not None else None
    range_end = parse_instant(end, "end") if end is not None else None
    return event_service.list_events(owner_id, range_start, range_end)


@app.get("/events/date/{date}", response_model=list[Event])
def list_events_on_date(date: str, owner_id: str = Depends(get_owner_id)) -> list[Event]:
    """Return the caller's events starting on the given calendar day."""
    return event_service.list_events_on(owner_id, parse_day(date))


@app.get("/events/{event_id}", response_model=Event)
def get_event(event_id: str, owner_id: str = Depends(get_owner_id)) -> Event:
    return event_service.get_event(event_id, owner_id)


@app.post("/events", response_model=Event, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventCreate, owner_id: str = Depends(get_owner_id)) -> Event:
    """Create an event; an overlap answers 409 with ``{"error", "conflictingEventIds"}``."""
    return event_service.create_event(owner_id, payload)


@app.api_route("/events/{event_id}", methods=["PUT", "PATCH"], response_model=Event)
def update_event(
    event_id: str, payload: EventUpdate, owner_id: str = Depends(get_owner_id)
) -> Event:
    """Apply a partial update; only fields present in the body change."""
    return event_service.update_event(event_id, owner_id, payload)


@app.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(event_id: str, owner_id: str = Depends(get_owner_id)) -> Response:
    event_service.delete_event(event_id, owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
