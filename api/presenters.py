"""
Presenters - turn engine results into JSON-ready dicts for the API.

Reason strings are built here from structured score factors; the engines
never deal with display markers.
"""
from __future__ import annotations
from typing import Dict, List, Optional

from engines.assignment_engine import AutoAssignResult
from engines.conflict_engine import Conflict, ConflictingEvent, GateResult
from engines.matching_engine import MISSING, PARTIAL, POSITIVE, URGENCY, MatchScore, ScoreFactor
from models.event import Event
from models.match import Match
from models.volunteer import Volunteer

MARKERS = {
    POSITIVE: "✓",
    PARTIAL: "~",
    URGENCY: "!",
    MISSING: "✗",
}


def format_reason(factor: ScoreFactor) -> str:
    return f"{MARKERS.get(factor.kind, '-')} {factor.detail}"


def format_reasons(scored: MatchScore) -> List[str]:
    return [format_reason(f) for f in scored.factors]


def factor_dict(factor: ScoreFactor) -> dict:
    return {
        "factor": factor.factor,
        "present": factor.present,
        "points": factor.points,
        "maxPoints": factor.max_points,
        "detail": factor.detail,
    }


def ranked_volunteer_dict(volunteer: Volunteer, scored: MatchScore) -> dict:
    return {
        "volunteerId": volunteer.volunteer_id,
        "name": volunteer.name,
        "score": scored.score,
        "tier": scored.tier,
        "matchingSkills": sorted(scored.skill_match.overlap),
        "skillPercentage": scored.skill_match.percentage,
        "reasons": format_reasons(scored),
        "factors": [factor_dict(f) for f in scored.factors],
    }


def ranked_event_dict(event: Event, scored: MatchScore) -> dict:
    return {
        "eventId": event.event_id,
        "name": event.name,
        "startAt": event.start_at.isoformat() if event.start_at else None,
        "score": scored.score,
        "tier": scored.tier,
        "reasons": format_reasons(scored),
    }


def volunteer_dict(volunteer: Volunteer) -> dict:
    return {
        "volunteerId": volunteer.volunteer_id,
        "name": volunteer.name,
        "email": volunteer.email,
        "skills": sorted(volunteer.skills),
        "availability": [str(s) for s in volunteer.availability],
        "city": volunteer.city,
        "stateCode": volunteer.state_code,
        "preferences": list(volunteer.preferences),
        "status": volunteer.status,
    }


def event_dict(event: Event) -> dict:
    return {
        "eventId": event.event_id,
        "name": event.name,
        "requiredSkills": sorted(event.required_skills),
        "urgency": event.urgency,
        "capacity": event.capacity,
        "currentRegistrants": event.current_registrants,
        "startAt": event.start_at.isoformat() if event.start_at else None,
        "endAt": event.end_at.isoformat() if event.end_at else None,
        "status": event.status,
        "city": event.city,
        "stateCode": event.state_code,
        "description": event.description,
    }


def match_dict(match: Match) -> dict:
    return {
        "matchId": match.match_id,
        "volunteerId": match.volunteer_id,
        "eventId": match.event_id,
        "status": match.status,
        "score": match.score,
        "createdAt": match.created_at.isoformat() if match.created_at else None,
    }


def conflicting_event_dict(conflict: ConflictingEvent) -> dict:
    return {
        "eventId": conflict.event_id,
        "name": conflict.name,
        "startAt": conflict.start_at,
        "endAt": conflict.end_at,
    }


def gate_failure_dict(verdict: GateResult) -> dict:
    payload = {"error": verdict.reason.value, "message": verdict.message}
    if verdict.conflicts:
        payload["conflicts"] = [conflicting_event_dict(c) for c in verdict.conflicts]
    return payload


def gate_preview_dict(verdict: GateResult) -> dict:
    error: Optional[str] = verdict.reason.value if verdict.reason else None
    return {
        "allowed": verdict.allowed,
        "error": error,
        "message": verdict.message,
        "conflicts": [conflicting_event_dict(c) for c in verdict.conflicts],
    }


def auto_assign_dict(result: AutoAssignResult) -> dict:
    return {
        "eventId": result.event_id,
        "assigned": [
            {"volunteerId": a.volunteer_id, "score": a.score, "tier": a.tier}
            for a in result.assigned
        ],
        "skipped": [
            {
                "volunteerId": s.volunteer_id,
                "score": s.score,
                "reason": s.reason.value,
                "conflicts": [conflicting_event_dict(c) for c in s.conflicts],
            }
            for s in result.skipped
        ],
    }


def audit_conflict_dict(conflict: Conflict) -> dict:
    return {
        "type": conflict.conflict_type,
        "severity": conflict.severity,
        "entityId": conflict.entity_id,
        "entityName": conflict.entity_name,
        "eventId": conflict.event_id,
        "description": conflict.description,
    }


def stats_dict(stats: Dict[str, int]) -> dict:
    return {
        "upcomingEvents": stats["upcoming_events"],
        "pendingRequests": stats["pending_requests"],
        "completedEvents": stats["completed_events"],
        "declinedRequests": stats["declined_requests"],
    }
