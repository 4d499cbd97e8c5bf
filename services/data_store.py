"""
Data Store - in-memory cache of volunteers, events and matches, plus the
write paths that must stay consistent (registration, status changes,
auto-match).

Writes hold a store-wide lock and re-validate uniqueness and capacity
against the current match table before anything is persisted. A gate
result computed earlier (e.g. by a preview) is never trusted on its own.
"""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from engines.assignment_engine import AutoAssignResult, auto_assign
from engines.conflict_engine import Conflict, GateResult, can_assign, detect_all_conflicts
from engines.matching_engine import (
    MatchScore,
    compute_match_score,
    rank_events_for_volunteer,
    rank_volunteers_for_event,
)
from models.event import Event
from models.match import MATCH_STATUSES, Match
from models.volunteer import Volunteer
from services.data_service import (
    append_decision_log,
    load_events,
    load_matches,
    load_volunteers,
    save_events,
    save_matches,
    save_volunteers,
)
from utils.score_cache import ScoreCache
from utils.scoring import ScoreWeights

logger = logging.getLogger(__name__)


class MatchingError(Exception):
    """Base class for store-level errors."""


class NotFoundError(MatchingError):
    pass


class InvalidTransitionError(MatchingError):
    pass


@dataclass(frozen=True)
class Registration:
    """Outcome of a registration attempt."""
    gate: GateResult
    match: Optional[Match] = None

    @property
    def created(self) -> bool:
        return self.match is not None


class DataStore:
    """In-memory data cache with reload capability."""

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        weights: Optional[ScoreWeights] = None,
        now_fn: Optional[Callable[[], datetime]] = None,
    ):
        self.data_dir = data_dir
        self.weights = weights or ScoreWeights.from_settings()
        self.now_fn = now_fn or datetime.now
        self.cache = ScoreCache()
        self._lock = threading.Lock()
        self.volunteers: List[Volunteer] = []
        self.events: List[Event] = []
        self.matches: List[Match] = []
        self.reload()

    def reload(self):
        with self._lock:
            self.volunteers = load_volunteers(self.data_dir)
            self.events = load_events(self.data_dir)
            self.matches = load_matches(self.data_dir)
            for event in self.events:
                self._recount(event)
            self.cache.clear()
        logger.info(
            f"Data loaded: {len(self.volunteers)} volunteers, "
            f"{len(self.events)} events, {len(self.matches)} matches."
        )

    def save_all(self):
        save_volunteers(self.volunteers, self.data_dir)
        save_events(self.events, self.data_dir)
        save_matches(self.matches, self.data_dir)

    # -- lookups ------------------------------------------------------------

    def find_volunteer(self, volunteer_id: str) -> Optional[Volunteer]:
        key = volunteer_id.strip().lower()
        return next((v for v in self.volunteers if v.volunteer_id.lower() == key), None)

    def find_event(self, event_id: str) -> Optional[Event]:
        key = event_id.strip().lower()
        return next((e for e in self.events if e.event_id.lower() == key), None)

    def find_match(self, match_id: str) -> Optional[Match]:
        key = match_id.strip().lower()
        return next((m for m in self.matches if m.match_id.lower() == key), None)

    def get_volunteer(self, volunteer_id: str) -> Volunteer:
        volunteer = self.find_volunteer(volunteer_id)
        if volunteer is None:
            raise NotFoundError(f"Volunteer {volunteer_id} not found")
        return volunteer

    def get_event(self, event_id: str) -> Event:
        event = self.find_event(event_id)
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")
        return event

    def get_match(self, match_id: str) -> Match:
        match = self.find_match(match_id)
        if match is None:
            raise NotFoundError(f"Match {match_id} not found")
        return match

    def matches_for_event(self, event_id: str) -> List[Match]:
        return [m for m in self.matches if m.event_id == event_id]

    def matches_for_volunteer(self, volunteer_id: str) -> List[Match]:
        return [m for m in self.matches if m.volunteer_id == volunteer_id]

    def events_for_volunteer(self, volunteer_id: str) -> List[Event]:
        """Every event the volunteer has a match record against, declined or not."""
        ids = {m.event_id for m in self.matches_for_volunteer(volunteer_id)}
        return [e for e in self.events if e.event_id in ids]

    # -- upserts ------------------------------------------------------------

    def upsert_volunteer(self, volunteer: Volunteer) -> Volunteer:
        with self._lock:
            existing = self.find_volunteer(volunteer.volunteer_id)
            if existing is not None:
                volunteer.volunteer_id = existing.volunteer_id
                self.volunteers[self.volunteers.index(existing)] = volunteer
            else:
                self.volunteers.append(volunteer)
            self.cache.invalidate_volunteer(volunteer.volunteer_id)
            save_volunteers(self.volunteers, self.data_dir)
        logger.info(f"Volunteer {volunteer.volunteer_id} saved.")
        return volunteer

    def upsert_event(self, event: Event) -> Event:
        with self._lock:
            existing = self.find_event(event.event_id)
            if existing is not None:
                event.event_id = existing.event_id
                self.events[self.events.index(existing)] = event
            else:
                self.events.append(event)
            self._recount(event)
            self.cache.invalidate_event(event.event_id)
            save_events(self.events, self.data_dir)
        logger.info(f"Event {event.event_id} saved.")
        return event

    # -- scoring ------------------------------------------------------------

    def score(self, volunteer: Volunteer, event: Event) -> MatchScore:
        return self.cache.get_or_compute(
            volunteer.volunteer_id,
            event.event_id,
            lambda: compute_match_score(volunteer, event, self.weights),
        )

    def ranked_candidates(
        self, event_id: str, top_n: Optional[int] = None
    ) -> Tuple[Event, List[Tuple[Volunteer, MatchScore]]]:
        event = self.get_event(event_id)
        ranked = rank_volunteers_for_event(
            self.volunteers, event, top_n=top_n, weights=self.weights, scorer=self.score
        )
        return event, ranked

    def recommended_events(
        self, volunteer_id: str, top_n: Optional[int] = None
    ) -> Tuple[Volunteer, List[Tuple[Event, MatchScore]]]:
        volunteer = self.get_volunteer(volunteer_id)
        ranked = rank_events_for_volunteer(
            volunteer, self.events, top_n=top_n, weights=self.weights, scorer=self.score
        )
        return volunteer, ranked

    # -- registration -------------------------------------------------------

    def preview(self, volunteer_id: str, event_id: str) -> GateResult:
        """Run the gate without writing anything."""
        volunteer = self.get_volunteer(volunteer_id)
        event = self.get_event(event_id)
        return can_assign(
            volunteer, event, self.matches, self.events_for_volunteer(volunteer.volunteer_id)
        )

    def register(self, volunteer_id: str, event_id: str) -> Registration:
        """Create a pending match if the gate passes against current data."""
        with self._lock:
            volunteer = self.get_volunteer(volunteer_id)
            event = self.get_event(event_id)
            self._recount(event)
            verdict = can_assign(
                volunteer, event, self.matches, self.events_for_volunteer(volunteer.volunteer_id)
            )
            if not verdict.allowed:
                logger.info(
                    f"Registration refused: {volunteer.volunteer_id} -> {event.event_id} "
                    f"({verdict.reason.value})"
                )
                return Registration(gate=verdict)

            match = self._add_match(volunteer, event)
            save_matches(self.matches, self.data_dir)
            save_events(self.events, self.data_dir)

        append_decision_log(
            f"Registration: volunteer {volunteer.volunteer_id} -> event {event.event_id} "
            f"as {match.match_id} (score {match.score})",
            self.data_dir,
        )
        return Registration(gate=verdict, match=match)

    def update_match_status(self, match_id: str, new_status: str) -> Match:
        new_status = new_status.strip().lower()
        if new_status not in MATCH_STATUSES:
            raise InvalidTransitionError(f"Unknown match status: {new_status}")

        with self._lock:
            match = self.get_match(match_id)
            old_status = match.status
            if old_status == new_status:
                return match
            if not match.can_transition_to(new_status):
                raise InvalidTransitionError(
                    f"Cannot change match {match.match_id} from {old_status} to {new_status}"
                )
            match.status = new_status
            event = self.find_event(match.event_id)
            if event is not None:
                self._recount(event)
                self.cache.invalidate_event(event.event_id)
            save_matches(self.matches, self.data_dir)
            save_events(self.events, self.data_dir)

        append_decision_log(
            f"Match {match.match_id} ({match.volunteer_id} @ {match.event_id}) "
            f"status changed: {old_status} -> {new_status}",
            self.data_dir,
        )
        return match

    def auto_match(self, event_id: str, min_score: int, max_matches: int) -> AutoAssignResult:
        """Rank, gate and persist the best candidates for an event in one locked step."""
        with self._lock:
            event = self.get_event(event_id)
            self._recount(event)
            self.cache.invalidate_event(event.event_id)
            ranked = rank_volunteers_for_event(
                self.volunteers, event, weights=self.weights, scorer=self.score
            )
            result = auto_assign(
                event, ranked, self.matches, self.events,
                max_matches=max_matches, min_score=min_score,
            )
            for assigned in result.assigned:
                self._add_match(self.get_volunteer(assigned.volunteer_id), event)
            if result.assigned:
                save_matches(self.matches, self.data_dir)
                save_events(self.events, self.data_dir)

        append_decision_log(result.summary(), self.data_dir)
        return result

    # -- reporting ----------------------------------------------------------

    def volunteer_stats(self, volunteer_id: str) -> Dict[str, int]:
        volunteer = self.get_volunteer(volunteer_id)
        now = self.now_fn()
        event_map = {e.event_id: e for e in self.events}
        matches = self.matches_for_volunteer(volunteer.volunteer_id)
        upcoming = {
            m.event_id for m in matches
            if m.status in ("pending", "confirmed")
            and m.event_id in event_map
            and event_map[m.event_id].start_at is not None
            and event_map[m.event_id].start_at >= now
        }
        return {
            "upcoming_events": len(upcoming),
            "pending_requests": sum(1 for m in matches if m.status == "pending"),
            "completed_events": len({m.event_id for m in matches if m.status == "completed"}),
            "declined_requests": sum(1 for m in matches if m.status == "declined"),
        }

    def audit(self) -> List[Conflict]:
        return detect_all_conflicts(self.volunteers, self.events, self.matches)

    # -- internals (call with the lock held) --------------------------------

    def _recount(self, event: Event) -> None:
        """Registrants = distinct volunteers holding a pending or confirmed match."""
        count = len({m.volunteer_id for m in self.matches if m.event_id == event.event_id and m.holds_seat})
        if count != event.current_registrants:
            logger.debug(f"Event {event.event_id} registrants {event.current_registrants} -> {count}")
            event.current_registrants = count

    def _next_match_id(self) -> str:
        taken = {m.match_id for m in self.matches}
        n = len(self.matches) + 1
        while f"M{n:04d}" in taken:
            n += 1
        return f"M{n:04d}"

    def _add_match(self, volunteer: Volunteer, event: Event) -> Match:
        scored = self.score(volunteer, event)
        match = Match(
            match_id=self._next_match_id(),
            volunteer_id=volunteer.volunteer_id,
            event_id=event.event_id,
            status="pending",
            score=scored.score,
            created_at=self.now_fn(),
        )
        self.matches.append(match)
        self._recount(event)
        self.cache.invalidate_event(event.event_id)
        logger.info(f"Match {match.match_id} created: {volunteer.volunteer_id} -> {event.event_id}")
        return match
