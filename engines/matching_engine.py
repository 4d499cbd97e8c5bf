"""
Matching Engine - scores and ranks volunteers against events.

Point budget (configurable via ScoreWeights): skill=60, urgency<=20,
availability=10, location=10. Scores are capped at 100 and bucketed into
excellent / good / fair / low tiers.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from models.event import Event
from models.volunteer import Volunteer
from utils.scoring import (
    DEFAULT_WEIGHTS,
    ScoreWeights,
    SkillMatch,
    location_match_score,
    match_skills,
    round_half_up,
)

logger = logging.getLogger(__name__)

# Factor kinds, rendered as markers by the presentation layer.
POSITIVE = "positive"
PARTIAL = "partial"
URGENCY = "urgency"
MISSING = "missing"

NEARLY_FULL_RATIO = 0.8


@dataclass(frozen=True)
class ScoreFactor:
    """One contribution to a match score."""
    factor: str        # "skills" | "urgency" | "availability" | "location" | "capacity"
    kind: str          # positive | partial | urgency | missing
    points: int
    max_points: int
    detail: str

    @property
    def present(self) -> bool:
        return self.points > 0


@dataclass(frozen=True)
class MatchScore:
    volunteer_id: str
    event_id: str
    score: int
    tier: str
    skill_match: SkillMatch
    factors: Tuple[ScoreFactor, ...] = field(default_factory=tuple)

    @property
    def breakdown(self) -> dict:
        return {f.factor: f.points for f in self.factors}


def _skill_factor(skills: SkillMatch, weights: ScoreWeights) -> ScoreFactor:
    points = int(round_half_up(skills.percentage * weights.skill_points / 100))
    ratio = f"{skills.overlap_count}/{skills.required_count}"
    if skills.required_count == 0:
        return ScoreFactor("skills", PARTIAL, 0, weights.skill_points, "No specific skills required")
    if skills.overlap_count == skills.required_count:
        kind, detail = POSITIVE, f"Has all required skills ({ratio})"
    elif skills.percentage >= 75:
        kind, detail = POSITIVE, f"{ratio} required skills matched"
    elif skills.overlap_count > 0:
        kind, detail = PARTIAL, f"{ratio} required skills matched"
    else:
        kind, detail = MISSING, f"No required skills matched (0/{skills.required_count})"
    return ScoreFactor("skills", kind, points, weights.skill_points, detail)


def _urgency_factor(event: Event, weights: ScoreWeights) -> ScoreFactor:
    max_points = max(weights.urgency_points.values())
    points = weights.urgency_points.get(event.urgency, 0)
    label = event.urgency.title()
    if event.urgency in ("critical", "high"):
        return ScoreFactor("urgency", URGENCY, points, max_points, f"{label} urgency event")
    return ScoreFactor("urgency", PARTIAL, points, max_points, f"{label} urgency event")


def _availability_factor(volunteer: Volunteer, event: Event, weights: ScoreWeights) -> ScoreFactor:
    day = event.day_of_week
    if day is None:
        return ScoreFactor(
            "availability", MISSING, 0, weights.availability_points, "Event has no schedule"
        )
    slots = volunteer.available_on(day)
    if not slots:
        return ScoreFactor(
            "availability", MISSING, 0, weights.availability_points, f"Not available on {day}"
        )
    start = event.start_at.time()
    if any(s.covers(start) for s in slots):
        detail = f"Available on {day} at event time"
    else:
        detail = f"Available on {day} (different time)"
    return ScoreFactor("availability", POSITIVE, weights.availability_points,
                       weights.availability_points, detail)


def _location_factor(volunteer: Volunteer, event: Event, weights: ScoreWeights) -> ScoreFactor:
    max_points = max(weights.city_points, weights.state_points)
    match = location_match_score(volunteer.city, volunteer.state_code, event.city, event.state_code)
    if match == "city":
        return ScoreFactor("location", POSITIVE, weights.city_points, max_points,
                           f"Located in same city ({volunteer.city})")
    if match == "state":
        return ScoreFactor("location", PARTIAL, weights.state_points, max_points,
                           f"Located in same state ({volunteer.state_code})")
    where = ", ".join(p for p in (volunteer.city, volunteer.state_code) if p) or "unknown"
    return ScoreFactor("location", MISSING, 0, max_points, f"Location: {where}")


def _capacity_factor(event: Event) -> Optional[ScoreFactor]:
    """Advisory only; never changes the score."""
    if event.capacity is None:
        return None
    if event.is_full:
        return ScoreFactor("capacity", MISSING, 0, 0, "Event at full capacity")
    if event.current_registrants >= event.capacity * NEARLY_FULL_RATIO:
        return ScoreFactor(
            "capacity", PARTIAL, 0, 0,
            f"Event nearly full ({event.current_registrants}/{event.capacity})",
        )
    return None


Scorer = Callable[[Volunteer, Event], MatchScore]


def compute_match_score(
    volunteer: Volunteer, event: Event, weights: ScoreWeights = DEFAULT_WEIGHTS
) -> MatchScore:
    """
    Score a volunteer against an event. Pure: identical inputs always give
    identical output.
    """
    skills = match_skills(volunteer.skills, event.required_skills)
    factors = [
        _skill_factor(skills, weights),
        _urgency_factor(event, weights),
        _availability_factor(volunteer, event, weights),
        _location_factor(volunteer, event, weights),
    ]
    capacity = _capacity_factor(event)
    if capacity is not None:
        factors.append(capacity)

    score = min(100, sum(f.points for f in factors))
    return MatchScore(
        volunteer_id=volunteer.volunteer_id,
        event_id=event.event_id,
        score=score,
        tier=weights.tier_for(score),
        skill_match=skills,
        factors=tuple(factors),
    )


def rank_volunteers_for_event(
    volunteers: List[Volunteer],
    event: Event,
    top_n: Optional[int] = None,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
    scorer: Optional[Scorer] = None,
) -> List[Tuple[Volunteer, MatchScore]]:
    """
    Return active volunteers ranked for an event: score descending, ties broken
    by ascending volunteer_id so repeated calls give the same order.
    """
    scorer = scorer or (lambda v, e: compute_match_score(v, e, weights))
    candidates = [(v, scorer(v, event)) for v in volunteers if v.is_active]
    candidates.sort(key=lambda x: (-x[1].score, x[0].volunteer_id))
    logger.debug(f"Ranked {len(candidates)} volunteers for {event.event_id}")
    return candidates[:top_n] if top_n is not None else candidates


def rank_events_for_volunteer(
    volunteer: Volunteer,
    events: List[Event],
    top_n: Optional[int] = None,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
    scorer: Optional[Scorer] = None,
) -> List[Tuple[Event, MatchScore]]:
    """Published events ranked for a volunteer; ties broken by ascending event_id."""
    scorer = scorer or (lambda v, e: compute_match_score(v, e, weights))
    candidates = [(e, scorer(volunteer, e)) for e in events if e.is_published]
    candidates.sort(key=lambda x: (-x[1].score, x[0].event_id))
    return candidates[:top_n] if top_n is not None else candidates
