"""
Volunteer Matching API - JSON endpoints over the matching engines.

Run with `python -m api.main` (or `volunteer-matching`) after pointing
MATCHING_DATA_DIR at a directory of CSV files.
"""
import logging
from typing import Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from api import presenters
from api.schemas import (
    AutoMatchRequest,
    EventPayload,
    MatchRequest,
    MatchStatusUpdate,
    VolunteerPayload,
)
from config import settings
from models.event import Event
from models.volunteer import Volunteer
from services.data_store import DataStore, InvalidTransitionError, NotFoundError

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

router = APIRouter()


def _store(request: Request) -> DataStore:
    return request.app.state.store


@router.get("/health")
async def health_check() -> dict:
    return {"status": "ok"}


# ---- Volunteers ----

@router.get("/volunteers")
def list_volunteers(request: Request) -> dict:
    store = _store(request)
    return {"volunteers": [presenters.volunteer_dict(v) for v in store.volunteers]}


@router.get("/volunteers/{volunteer_id}")
def get_volunteer(volunteer_id: str, request: Request) -> dict:
    return presenters.volunteer_dict(_store(request).get_volunteer(volunteer_id))


@router.put("/volunteers/{volunteer_id}")
def put_volunteer(volunteer_id: str, payload: VolunteerPayload, request: Request) -> dict:
    row = payload.model_dump()
    row["volunteer_id"] = volunteer_id
    volunteer = _store(request).upsert_volunteer(Volunteer.from_dict(row))
    return presenters.volunteer_dict(volunteer)


@router.get("/volunteers/{volunteer_id}/recommended-events")
def recommended_events(volunteer_id: str, request: Request, limit: Optional[int] = None) -> dict:
    volunteer, ranked = _store(request).recommended_events(volunteer_id, top_n=limit)
    return {
        "volunteerId": volunteer.volunteer_id,
        "events": [presenters.ranked_event_dict(e, s) for e, s in ranked],
    }


@router.get("/volunteers/{volunteer_id}/stats")
def volunteer_stats(volunteer_id: str, request: Request) -> dict:
    store = _store(request)
    volunteer = store.get_volunteer(volunteer_id)
    return {
        "volunteerId": volunteer.volunteer_id,
        "stats": presenters.stats_dict(store.volunteer_stats(volunteer.volunteer_id)),
    }


# ---- Events ----

@router.get("/events")
def list_events(request: Request) -> dict:
    return {"events": [presenters.event_dict(e) for e in _store(request).events]}


@router.get("/events/{event_id}")
def get_event(event_id: str, request: Request) -> dict:
    return presenters.event_dict(_store(request).get_event(event_id))


@router.put("/events/{event_id}")
def put_event(event_id: str, payload: EventPayload, request: Request) -> dict:
    row = payload.model_dump()
    row["event_id"] = event_id
    event = _store(request).upsert_event(Event.from_dict(row))
    return presenters.event_dict(event)


@router.get("/events/{event_id}/matches")
def event_matches(
    event_id: str, request: Request, rank: bool = False, limit: Optional[int] = None
) -> dict:
    store = _store(request)
    if not rank:
        event = store.get_event(event_id)
        return {
            "eventId": event.event_id,
            "matches": [presenters.match_dict(m) for m in store.matches_for_event(event.event_id)],
        }
    event, ranked = store.ranked_candidates(event_id, top_n=limit)
    return {
        "eventId": event.event_id,
        "matches": [presenters.ranked_volunteer_dict(v, s) for v, s in ranked],
    }


@router.post("/events/{event_id}/auto-match")
def auto_match(event_id: str, request: Request, body: Optional[AutoMatchRequest] = None) -> dict:
    body = body or AutoMatchRequest()
    result = _store(request).auto_match(event_id, body.min_score, body.max_matches)
    return presenters.auto_assign_dict(result)


# ---- Matches ----

@router.post("/matches", status_code=201)
def create_match(body: MatchRequest, request: Request):
    registration = _store(request).register(body.volunteer_id, body.event_id)
    if not registration.created:
        return JSONResponse(status_code=409, content=presenters.gate_failure_dict(registration.gate))
    return presenters.match_dict(registration.match)


@router.post("/matches/preview")
def preview_match(body: MatchRequest, request: Request) -> dict:
    verdict = _store(request).preview(body.volunteer_id, body.event_id)
    return presenters.gate_preview_dict(verdict)


@router.patch("/matches/{match_id}")
def update_match(match_id: str, body: MatchStatusUpdate, request: Request) -> dict:
    match = _store(request).update_match_status(match_id, body.status)
    return presenters.match_dict(match)


# ---- Audit ----

@router.get("/conflicts")
def conflicts(request: Request) -> dict:
    found = _store(request).audit()
    return {"count": len(found), "conflicts": [presenters.audit_conflict_dict(c) for c in found]}


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _invalid_transition(request: Request, exc: InvalidTransitionError) -> JSONResponse:
    logger.warning(f"Rejected status change: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def create_app(store: Optional[DataStore] = None) -> FastAPI:
    app = FastAPI(title="Volunteer Matching API")
    app.state.store = store if store is not None else DataStore()
    app.include_router(router)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(InvalidTransitionError, _invalid_transition)
    return app


def main() -> None:
    uvicorn.run(create_app(), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
