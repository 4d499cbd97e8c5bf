"""
Conflict Engine - registration gate and roster audit.

Gate checks (first failure wins):
  1. AlreadyRegistered - a non-declined match for the pair exists
  2. EventFull - capacity set and reached
  3. EventNotOpen - event is not published
  4. TimeConflict - overlaps another event the volunteer is committed to

Audit conflict types:
  1. Double Booking - volunteer committed to overlapping events
  2. Over Capacity - more active matches than seats
  3. Inactive Event - open matches on a draft or cancelled event
  4. Skill Gap - confirmed volunteer has none of the required skills
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from models.event import Event
from models.match import Match
from models.volunteer import Volunteer

logger = logging.getLogger(__name__)


class GateError(str, Enum):
    ALREADY_REGISTERED = "AlreadyRegistered"
    EVENT_FULL = "EventFull"
    EVENT_NOT_OPEN = "EventNotOpen"
    TIME_CONFLICT = "TimeConflict"


@dataclass(frozen=True)
class ConflictingEvent:
    event_id: str
    name: str
    start_at: Optional[str]
    end_at: Optional[str]

    @classmethod
    def of(cls, event: Event) -> ConflictingEvent:
        return cls(
            event_id=event.event_id,
            name=event.name,
            start_at=event.start_at.isoformat() if event.start_at else None,
            end_at=event.end_at.isoformat() if event.end_at else None,
        )


@dataclass(frozen=True)
class GateResult:
    allowed: bool
    reason: Optional[GateError] = None
    conflicts: List[ConflictingEvent] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.allowed:
            return "Volunteer can be assigned to this event."
        if self.reason == GateError.ALREADY_REGISTERED:
            return "Volunteer is already registered for this event."
        if self.reason == GateError.EVENT_FULL:
            return "This event has reached maximum capacity."
        if self.reason == GateError.EVENT_NOT_OPEN:
            return "This event is not open for registration."
        names = ", ".join(f'"{c.name or c.event_id}"' for c in self.conflicts)
        return f"Time conflict with events the volunteer is already registered for: {names}"


ALLOW = GateResult(allowed=True)


def _committed_event_ids(volunteer_id: str, matches: List[Match]) -> Set[str]:
    return {m.event_id for m in matches if m.volunteer_id == volunteer_id and m.is_active}


def _released_event_ids(volunteer_id: str, matches: List[Match]) -> Set[str]:
    """Events where the volunteer's only matches are declined."""
    declined = {m.event_id for m in matches if m.volunteer_id == volunteer_id and not m.is_active}
    return declined - _committed_event_ids(volunteer_id, matches)


def find_time_conflicts(
    volunteer: Volunteer,
    event: Event,
    existing_matches: List[Match],
    all_volunteer_events: List[Event],
) -> List[Event]:
    """Events the volunteer is committed to whose window overlaps `event`."""
    released = _released_event_ids(volunteer.volunteer_id, existing_matches)
    return [
        other for other in all_volunteer_events
        if other.event_id != event.event_id
        and other.event_id not in released
        and other.status != "cancelled"
        and event.overlaps_with(other)
    ]


def can_assign(
    volunteer: Volunteer,
    event: Event,
    existing_matches: List[Match],
    all_volunteer_events: List[Event],
) -> GateResult:
    """
    Validate a registration without side effects. Safe to call speculatively;
    the caller persists the match on success.
    """
    already = any(
        m.volunteer_id == volunteer.volunteer_id and m.event_id == event.event_id and m.is_active
        for m in existing_matches
    )
    if already:
        return GateResult(False, GateError.ALREADY_REGISTERED)

    if event.is_full:
        return GateResult(False, GateError.EVENT_FULL)

    if not event.is_published:
        return GateResult(False, GateError.EVENT_NOT_OPEN)

    overlapping = find_time_conflicts(volunteer, event, existing_matches, all_volunteer_events)
    if overlapping:
        return GateResult(
            False,
            GateError.TIME_CONFLICT,
            [ConflictingEvent.of(e) for e in overlapping],
        )
    return ALLOW


# ---------------------------------------------------------------------------
# Roster audit
# ---------------------------------------------------------------------------

@dataclass
class Conflict:
    """Represents a single detected conflict in stored data."""
    conflict_type: str    # "Double Booking" | "Over Capacity" | "Inactive Event" | "Skill Gap"
    severity: str         # "Critical" | "Warning" | "Info"
    entity_id: str        # volunteer_id or event_id
    entity_name: str
    event_id: str
    description: str

    def __str__(self) -> str:
        return f"[{self.severity}] {self.conflict_type}: {self.description}"


def detect_all_conflicts(
    volunteers: List[Volunteer],
    events: List[Event],
    matches: List[Match],
) -> List[Conflict]:
    """Run all audit checks and return a combined list."""
    conflicts: List[Conflict] = []
    conflicts.extend(detect_double_bookings(volunteers, events, matches))
    conflicts.extend(detect_over_capacity(events, matches))
    conflicts.extend(detect_inactive_event_matches(events, matches))
    conflicts.extend(detect_skill_gaps(volunteers, events, matches))
    return conflicts


def detect_double_bookings(
    volunteers: List[Volunteer], events: List[Event], matches: List[Match]
) -> List[Conflict]:
    """Detect volunteers committed to overlapping events."""
    conflicts = []
    volunteer_map = {v.volunteer_id: v for v in volunteers}
    event_map = {e.event_id: e for e in events}

    volunteer_events: Dict[str, List[Event]] = {}
    for m in matches:
        if m.is_active and m.event_id in event_map and m.volunteer_id in volunteer_map:
            e = event_map[m.event_id]
            if e.status != "cancelled":
                volunteer_events.setdefault(m.volunteer_id, []).append(e)

    for vid, e_list in volunteer_events.items():
        e_list.sort(key=lambda e: e.event_id)
        for i in range(len(e_list)):
            for j in range(i + 1, len(e_list)):
                if e_list[i].overlaps_with(e_list[j]):
                    v = volunteer_map[vid]
                    conflicts.append(Conflict(
                        conflict_type="Double Booking",
                        severity="Critical",
                        entity_id=vid,
                        entity_name=v.name,
                        event_id=f"{e_list[i].event_id} & {e_list[j].event_id}",
                        description=(
                            f"Volunteer {v.name or vid} ({vid}) is registered for overlapping events "
                            f"{e_list[i].event_id} ({e_list[i].start_at} to {e_list[i].end_at}) "
                            f"and {e_list[j].event_id} ({e_list[j].start_at} to {e_list[j].end_at})."
                        ),
                    ))
    return conflicts


def detect_over_capacity(events: List[Event], matches: List[Match]) -> List[Conflict]:
    """Detect events holding more pending or confirmed registrations than seats."""
    conflicts = []
    for e in events:
        if e.capacity is None:
            continue
        registered = len({m.volunteer_id for m in matches if m.event_id == e.event_id and m.holds_seat})
        if registered > e.capacity:
            conflicts.append(Conflict(
                conflict_type="Over Capacity",
                severity="Critical",
                entity_id=e.event_id,
                entity_name=e.name,
                event_id=e.event_id,
                description=f"Event {e.name or e.event_id} has {registered} registrations for {e.capacity} seats.",
            ))
    return conflicts


def detect_inactive_event_matches(events: List[Event], matches: List[Match]) -> List[Conflict]:
    """Detect open (pending/confirmed) matches on draft or cancelled events."""
    conflicts = []
    event_map = {e.event_id: e for e in events}
    for m in matches:
        e = event_map.get(m.event_id)
        if e is None or e.is_published or m.status not in ("pending", "confirmed"):
            continue
        conflicts.append(Conflict(
            conflict_type="Inactive Event",
            severity="Warning",
            entity_id=m.volunteer_id,
            entity_name=m.volunteer_id,
            event_id=e.event_id,
            description=f"Match {m.match_id} is {m.status} but event {e.event_id} is {e.status}.",
        ))
    return conflicts


def detect_skill_gaps(
    volunteers: List[Volunteer], events: List[Event], matches: List[Match]
) -> List[Conflict]:
    """Detect confirmed volunteers who cover none of an event's required skills."""
    conflicts = []
    volunteer_map = {v.volunteer_id: v for v in volunteers}
    event_map = {e.event_id: e for e in events}
    for m in matches:
        if m.status != "confirmed":
            continue
        v, e = volunteer_map.get(m.volunteer_id), event_map.get(m.event_id)
        if v is None or e is None or not e.required_skills:
            continue
        if not v.skills & e.required_skills:
            conflicts.append(Conflict(
                conflict_type="Skill Gap",
                severity="Info",
                entity_id=v.volunteer_id,
                entity_name=v.name,
                event_id=e.event_id,
                description=(
                    f"Volunteer {v.name or v.volunteer_id} has none of the skills required by "
                    f"{e.event_id}: {', '.join(sorted(e.required_skills))}."
                ),
            ))
    return conflicts
