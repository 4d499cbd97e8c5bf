from datetime import datetime

import pytest

from models.event import Event
from models.match import Match
from models.volunteer import AvailabilitySlot, Volunteer
from services.data_service import save_events, save_matches, save_volunteers
from services.data_store import DataStore
from utils.scoring import DEFAULT_WEIGHTS

# 2026-03-02 is a Monday
MONDAY = "2026-03-02"
NOW = datetime(2026, 2, 20, 12, 0)


def make_volunteer(volunteer_id="V001", **overrides) -> Volunteer:
    fields = dict(
        volunteer_id=volunteer_id,
        name=f"Volunteer {volunteer_id}",
        skills={"Teaching", "Communication"},
        availability=[AvailabilitySlot.parse("Mon 09:00-12:00")],
        city="Springfield",
        state_code="IL",
    )
    fields.update(overrides)
    return Volunteer(**fields)


def make_event(event_id="E001", start="10:00", end="11:00", day=MONDAY, **overrides) -> Event:
    fields = dict(
        event_id=event_id,
        name=f"Event {event_id}",
        required_skills={"Teaching", "Communication", "Technology"},
        urgency="high",
        capacity=None,
        current_registrants=0,
        start_at=datetime.fromisoformat(f"{day}T{start}"),
        end_at=datetime.fromisoformat(f"{day}T{end}"),
        status="published",
        city="Springfield",
    )
    fields.update(overrides)
    return Event(**fields)


def make_match(match_id, volunteer_id, event_id, status="confirmed") -> Match:
    return Match(
        match_id=match_id,
        volunteer_id=volunteer_id,
        event_id=event_id,
        status=status,
        created_at=datetime(2026, 2, 1, 9, 0),
    )


@pytest.fixture
def volunteer():
    return make_volunteer()


@pytest.fixture
def event():
    return make_event()


@pytest.fixture
def seeded_dir(tmp_path):
    """A data directory with a small roster written through the CSV service."""
    volunteers = [
        make_volunteer("V001"),
        make_volunteer(
            "V002",
            skills={"Teaching", "Communication", "Technology"},
            availability=[AvailabilitySlot.parse("Mon 08:00-18:00")],
        ),
        make_volunteer("V003", skills={"Cataloging"}, city="Peoria", availability=[]),
        make_volunteer("V004", skills={"Teaching", "Technology"}, status="Inactive"),
    ]
    events = [
        make_event("E001", capacity=2),
        make_event("E002", start="10:30", end="11:30"),
        make_event("E003", start="13:00", end="14:00", urgency="low"),
        make_event("E004", status="draft"),
    ]
    matches = [make_match("M0001", "V001", "E002", status="confirmed")]
    save_volunteers(volunteers, tmp_path)
    save_events(events, tmp_path)
    save_matches(matches, tmp_path)
    return tmp_path


@pytest.fixture
def store(seeded_dir):
    return DataStore(data_dir=seeded_dir, weights=DEFAULT_WEIGHTS, now_fn=lambda: NOW)
