"""
Match model - the relationship record between one volunteer and one event.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

logger = logging.getLogger(__name__)

MATCH_STATUSES = ("pending", "confirmed", "declined", "completed")

# Allowed status changes; declined and completed are final.
STATUS_TRANSITIONS = {
    "pending": ("confirmed", "declined"),
    "confirmed": ("completed", "declined"),
    "declined": (),
    "completed": (),
}


def _parse_datetime(raw) -> Optional[datetime]:
    if isinstance(raw, datetime):
        return raw
    if raw is None or str(raw).strip() in ("", "nan", "None"):
        return None
    try:
        return datetime.fromisoformat(str(raw).strip())
    except ValueError:
        logger.warning(f"Invalid datetime format: {raw}")
        return None


@dataclass
class Match:
    match_id: str
    volunteer_id: str
    event_id: str
    status: str = "pending"
    score: Optional[int] = None  # 0-100 when computed by smart matching
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, row: dict) -> Match:
        raw_score = str(row.get("score", "") or "").strip()
        try:
            score = int(float(raw_score)) if raw_score not in ("", "nan", "None") else None
        except ValueError:
            logger.warning(f"Invalid match score: {raw_score}")
            score = None
        status = str(row.get("status", "pending") or "pending").strip().lower()
        if status not in MATCH_STATUSES:
            logger.warning(f"Unknown match status {status!r}, treating as pending.")
            status = "pending"
        return cls(
            match_id=str(row.get("match_id", "")).strip(),
            volunteer_id=str(row.get("volunteer_id", "")).strip(),
            event_id=str(row.get("event_id", "")).strip(),
            status=status,
            score=score,
            created_at=_parse_datetime(row.get("created_at")),
        )

    def to_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "volunteer_id": self.volunteer_id,
            "event_id": self.event_id,
            "status": self.status,
            "score": "" if self.score is None else self.score,
            "created_at": self.created_at.isoformat() if self.created_at else "",
        }

    @property
    def is_active(self) -> bool:
        """Anything but declined holds the volunteer's seat."""
        return self.status != "declined"

    @property
    def holds_seat(self) -> bool:
        """Only open matches count against capacity; completed ones are history."""
        return self.status in ("pending", "confirmed")

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in STATUS_TRANSITIONS.get(self.status, ())
