"""
Event model - dataclass representing a volunteer event.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Set
import logging

from models.volunteer import DAYS_OF_WEEK

logger = logging.getLogger(__name__)

_EMPTY = ("", "–", "-", "nan", "None")


def _parse_list(raw: str) -> List[str]:
    if isinstance(raw, (list, tuple, set, frozenset)):
        return [str(item).strip() for item in raw if str(item).strip()]
    if raw is None or str(raw).strip() in _EMPTY:
        return []
    return [item.strip() for item in str(raw).split(",") if item.strip()]


def _naive_local(value: datetime) -> datetime:
    """Schedules are compared as naive local time; aware values are converted."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _parse_datetime(raw) -> Optional[datetime]:
    if isinstance(raw, datetime):
        return _naive_local(raw)
    if raw is None or str(raw).strip() in _EMPTY:
        return None
    try:
        return _naive_local(datetime.fromisoformat(str(raw).strip()))
    except ValueError:
        logger.warning(f"Invalid datetime format: {raw}")
        return None


def _parse_int(raw) -> Optional[int]:
    if isinstance(raw, int):
        return raw
    if raw is None or str(raw).strip() in _EMPTY:
        return None
    try:
        return int(float(str(raw).strip()))
    except ValueError:
        logger.warning(f"Invalid integer: {raw}")
        return None


# Severity ordering (higher = more urgent)
URGENCY_RANK = {
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
}

EVENT_STATUSES = ("draft", "published", "cancelled")


@dataclass
class Event:
    event_id: str
    name: str = ""
    required_skills: Set[str] = field(default_factory=set)
    urgency: str = "medium"
    capacity: Optional[int] = None  # None = unlimited
    current_registrants: int = 0
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    status: str = "draft"
    city: str = ""
    state_code: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, row: dict) -> Event:
        """Create an Event from a CSV row or request payload."""
        urgency = str(row.get("urgency", "medium") or "medium").strip().lower()
        if urgency not in URGENCY_RANK:
            logger.warning(f"Unknown urgency {urgency!r}, treating as medium.")
            urgency = "medium"
        status = str(row.get("status", "draft") or "draft").strip().lower()
        if status not in EVENT_STATUSES:
            logger.warning(f"Unknown event status {status!r}, treating as draft.")
            status = "draft"
        capacity = _parse_int(row.get("capacity"))
        if capacity is not None and capacity <= 0:
            logger.warning(f"Non-positive capacity {capacity} for event {row.get('event_id')}, treating as 0.")
            capacity = 0
        return cls(
            event_id=str(row.get("event_id", "")).strip(),
            name=str(row.get("name", "") or "").strip(),
            required_skills=set(_parse_list(row.get("required_skills", ""))),
            urgency=urgency,
            capacity=capacity,
            current_registrants=_parse_int(row.get("current_registrants")) or 0,
            start_at=_parse_datetime(row.get("start_at")),
            end_at=_parse_datetime(row.get("end_at")),
            status=status,
            city=str(row.get("city", "") or "").strip(),
            state_code=str(row.get("state_code", "") or "").strip().upper(),
            description=str(row.get("description", "") or "").strip(),
        )

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "name": self.name,
            "required_skills": ", ".join(sorted(self.required_skills)),
            "urgency": self.urgency,
            "capacity": "" if self.capacity is None else self.capacity,
            "current_registrants": self.current_registrants,
            "start_at": self.start_at.isoformat() if self.start_at else "",
            "end_at": self.end_at.isoformat() if self.end_at else "",
            "status": self.status,
            "city": self.city,
            "state_code": self.state_code,
            "description": self.description,
        }

    @property
    def urgency_rank(self) -> int:
        return URGENCY_RANK.get(self.urgency, 2)

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @property
    def is_full(self) -> bool:
        return self.capacity is not None and self.current_registrants >= self.capacity

    @property
    def remaining_capacity(self) -> Optional[int]:
        if self.capacity is None:
            return None
        return max(0, self.capacity - self.current_registrants)

    @property
    def day_of_week(self) -> Optional[str]:
        if self.start_at is None:
            return None
        return DAYS_OF_WEEK[self.start_at.weekday()]

    def overlaps_with(self, other: Event) -> bool:
        """Half-open overlap: touching windows ([9,10) and [10,11)) do not overlap."""
        if not all([self.start_at, self.end_at, other.start_at, other.end_at]):
            return False
        return self.start_at < other.end_at and self.end_at > other.start_at
