"""
Scoring utilities - skill overlap, point weights and tiers shared by the
matching and assignment engines.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, FrozenSet, Set

from config import settings


def round_half_up(value: float, places: int = 0) -> float:
    """Round like a person would (0.5 goes up), not banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class SkillMatch:
    overlap: FrozenSet[str]
    overlap_count: int
    required_count: int
    percentage: float  # 0-100, one decimal


def match_skills(volunteer_skills: Set[str], required_skills: Set[str]) -> SkillMatch:
    """
    Compare a volunteer's skills against an event's required skills.
    Exact, case-sensitive tags. No requirements means 0% (nothing to match).
    """
    overlap = frozenset(set(volunteer_skills) & set(required_skills))
    if not required_skills:
        percentage = 0.0
    elif len(overlap) == len(required_skills):
        percentage = 100.0
    else:
        # never let rounding report a partial match as 100%
        percentage = min(99.9, round_half_up(len(overlap) / len(required_skills) * 100, 1))
    return SkillMatch(
        overlap=overlap,
        overlap_count=len(overlap),
        required_count=len(required_skills),
        percentage=percentage,
    )


def location_match_score(city_a: str, state_a: str, city_b: str, state_b: str) -> str:
    """Returns 'city', 'state' or 'none'. Comparison is trimmed and case-insensitive."""
    def norm(s: str) -> str:
        return (s or "").strip().lower()

    if norm(city_a) and norm(city_a) == norm(city_b):
        return "city"
    if norm(state_a) and norm(state_a) == norm(state_b):
        return "state"
    return "none"


@dataclass(frozen=True)
class ScoreWeights:
    """
    Point budget for the composite score. Defaults: skill=60, urgency up to 20,
    availability=10, location=10 (city) / 5 (state only).
    Mapping fields are excluded from the hash.
    """
    skill_points: int = 60
    urgency_points: Dict[str, int] = field(
        default_factory=lambda: {"low": 5, "medium": 10, "high": 15, "critical": 20},
        hash=False,
    )
    availability_points: int = 10
    city_points: int = 10
    state_points: int = 5
    tier_thresholds: Dict[str, int] = field(
        default_factory=lambda: {"excellent": 75, "good": 50, "fair": 30},
        hash=False,
    )

    @classmethod
    def from_settings(cls) -> ScoreWeights:
        return cls(
            skill_points=settings.SKILL_POINTS,
            urgency_points=dict(settings.URGENCY_POINTS),
            availability_points=settings.AVAILABILITY_POINTS,
            city_points=settings.CITY_POINTS,
            state_points=settings.STATE_POINTS,
            tier_thresholds=dict(settings.TIER_THRESHOLDS),
        )

    def tier_for(self, score: int) -> str:
        if score >= self.tier_thresholds["excellent"]:
            return "excellent"
        if score >= self.tier_thresholds["good"]:
            return "good"
        if score >= self.tier_thresholds["fair"]:
            return "fair"
        return "low"


DEFAULT_WEIGHTS = ScoreWeights()
