"""
Volunteer model - dataclass representing a registered volunteer.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, time
from typing import List, Optional, Set
import logging

logger = logging.getLogger(__name__)

DAYS_OF_WEEK = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_EMPTY = ("", "–", "-", "nan", "None")


def _parse_list(raw: str, sep: str = ",") -> List[str]:
    """Parse a delimited string (or an already-split sequence) into a cleaned list."""
    if isinstance(raw, (list, tuple, set, frozenset)):
        return [str(item).strip() for item in raw if str(item).strip()]
    if raw is None or str(raw).strip() in _EMPTY:
        return []
    return [item.strip() for item in str(raw).split(sep) if item.strip()]


def _parse_time(raw: str) -> Optional[time]:
    try:
        return datetime.strptime(raw.strip(), "%H:%M").time()
    except ValueError:
        return None


@dataclass(frozen=True)
class AvailabilitySlot:
    day_of_week: str  # Mon..Sun
    start_time: time
    end_time: time

    @classmethod
    def parse(cls, raw: str) -> Optional[AvailabilitySlot]:
        """Parse `Mon 09:00-12:00`. Returns None for malformed or inverted slots."""
        day, _, window = raw.strip().partition(" ")
        day = day.strip().title()[:3]
        start_raw, _, end_raw = window.partition("-")
        start, end = _parse_time(start_raw), _parse_time(end_raw)
        if day not in DAYS_OF_WEEK or start is None or end is None:
            logger.warning(f"Invalid availability slot: {raw}")
            return None
        if start >= end:
            logger.warning(f"Availability slot ends before it starts: {raw}")
            return None
        return cls(day_of_week=day, start_time=start, end_time=end)

    def covers(self, moment: time) -> bool:
        return self.start_time <= moment < self.end_time

    def __str__(self) -> str:
        return f"{self.day_of_week} {self.start_time:%H:%M}-{self.end_time:%H:%M}"


@dataclass
class Volunteer:
    volunteer_id: str
    name: str = ""
    email: str = ""
    skills: Set[str] = field(default_factory=set)
    availability: List[AvailabilitySlot] = field(default_factory=list)
    city: str = ""
    state_code: str = ""
    preferences: List[str] = field(default_factory=list)
    status: str = "Active"  # Active | Inactive

    @classmethod
    def from_dict(cls, row: dict) -> Volunteer:
        """Create a Volunteer from a CSV row or request payload."""
        slots = []
        for raw in _parse_list(row.get("availability", ""), sep=";"):
            slot = AvailabilitySlot.parse(raw)
            if slot is not None:
                slots.append(slot)
        return cls(
            volunteer_id=str(row.get("volunteer_id", "")).strip(),
            name=str(row.get("name", "") or "").strip(),
            email=str(row.get("email", "") or "").strip(),
            skills=set(_parse_list(row.get("skills", ""))),
            availability=slots,
            city=str(row.get("city", "") or "").strip(),
            state_code=str(row.get("state_code", "") or "").strip().upper(),
            preferences=_parse_list(row.get("preferences", ""), sep=";"),
            status=str(row.get("status", "Active") or "Active").strip(),
        )

    def to_dict(self) -> dict:
        """Serialize back to a flat dict for CSV writing."""
        return {
            "volunteer_id": self.volunteer_id,
            "name": self.name,
            "email": self.email,
            "skills": ", ".join(sorted(self.skills)),
            "availability": "; ".join(str(s) for s in self.availability),
            "city": self.city,
            "state_code": self.state_code,
            "preferences": "; ".join(self.preferences),
            "status": self.status,
        }

    @property
    def is_active(self) -> bool:
        return self.status == "Active"

    def available_on(self, day_of_week: str) -> List[AvailabilitySlot]:
        return [s for s in self.availability if s.day_of_week == day_of_week]
