"""
Assignment Engine - automatic volunteer assignment for an event.

Logic:
  1. Take candidates ranked by the matching engine.
  2. Drop anyone scoring below the minimum.
  3. Run the registration gate on each, in rank order; skip failures.
  4. Stop after `max_matches` successes or when candidates run out.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Tuple

from engines.conflict_engine import ConflictingEvent, GateError, can_assign
from engines.matching_engine import MatchScore
from models.event import Event
from models.match import Match
from models.volunteer import Volunteer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssignedCandidate:
    volunteer_id: str
    score: int
    tier: str


@dataclass(frozen=True)
class SkippedCandidate:
    volunteer_id: str
    score: int
    reason: GateError
    conflicts: List[ConflictingEvent] = field(default_factory=list)


@dataclass
class AutoAssignResult:
    event_id: str
    assigned: List[AssignedCandidate] = field(default_factory=list)
    skipped: List[SkippedCandidate] = field(default_factory=list)

    @property
    def assigned_ids(self) -> List[str]:
        return [a.volunteer_id for a in self.assigned]

    def summary(self) -> str:
        return (
            f"Auto-match for {self.event_id}: assigned {len(self.assigned)} "
            f"({', '.join(self.assigned_ids) or 'none'}), skipped {len(self.skipped)}"
        )


def _events_for_volunteer(
    volunteer_id: str, matches: List[Match], event_map: Dict[str, Event]
) -> List[Event]:
    ids = {m.event_id for m in matches if m.volunteer_id == volunteer_id}
    return [event_map[i] for i in sorted(ids) if i in event_map]


def auto_assign(
    event: Event,
    ranked: List[Tuple[Volunteer, MatchScore]],
    existing_matches: List[Match],
    events: List[Event],
    max_matches: int = 5,
    min_score: int = 0,
) -> AutoAssignResult:
    """
    Pick up to `max_matches` volunteers from `ranked` who pass the gate.

    Seats taken earlier in the run count against capacity for later
    candidates. Inputs are not modified; persisting the result is the
    caller's job.
    """
    result = AutoAssignResult(event_id=event.event_id)
    if max_matches <= 0:
        return result

    event_map = {e.event_id: e for e in events}
    working = replace(event)

    for volunteer, scored in ranked:
        if len(result.assigned) >= max_matches:
            break
        if scored.score < min_score:
            continue

        volunteer_events = _events_for_volunteer(volunteer.volunteer_id, existing_matches, event_map)
        verdict = can_assign(volunteer, working, existing_matches, volunteer_events)
        if not verdict.allowed:
            logger.info(
                f"Auto-match skipped {volunteer.volunteer_id} for {event.event_id}: {verdict.reason.value}"
            )
            result.skipped.append(SkippedCandidate(
                volunteer_id=volunteer.volunteer_id,
                score=scored.score,
                reason=verdict.reason,
                conflicts=verdict.conflicts,
            ))
            continue

        result.assigned.append(AssignedCandidate(
            volunteer_id=volunteer.volunteer_id, score=scored.score, tier=scored.tier
        ))
        working = replace(working, current_registrants=working.current_registrants + 1)

    return result
