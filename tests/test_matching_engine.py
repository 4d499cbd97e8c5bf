from engines.matching_engine import (
    MISSING,
    PARTIAL,
    POSITIVE,
    URGENCY,
    compute_match_score,
    rank_events_for_volunteer,
    rank_volunteers_for_event,
)
from models.volunteer import AvailabilitySlot
from utils.scoring import ScoreWeights

from conftest import make_event, make_volunteer


def _factor(scored, name):
    return next(f for f in scored.factors if f.factor == name)


def test_two_of_three_skills_high_urgency_same_city(volunteer, event):
    scored = compute_match_score(volunteer, event)

    assert scored.skill_match.percentage == 66.7
    assert scored.breakdown == {"skills": 40, "urgency": 15, "availability": 10, "location": 10}
    assert scored.score == 75
    assert scored.tier == "excellent"


def test_factor_kinds_and_details(volunteer, event):
    scored = compute_match_score(volunteer, event)

    skills = _factor(scored, "skills")
    assert skills.kind == PARTIAL
    assert skills.detail == "2/3 required skills matched"
    assert _factor(scored, "urgency").kind == URGENCY
    assert _factor(scored, "urgency").detail == "High urgency event"
    assert _factor(scored, "availability").detail == "Available on Mon at event time"
    assert _factor(scored, "location").kind == POSITIVE


def test_no_overlap_is_missing_factor():
    scored = compute_match_score(make_volunteer(skills={"Cooking"}), make_event())
    skills = _factor(scored, "skills")
    assert skills.kind == MISSING
    assert skills.points == 0
    assert not skills.present


def test_day_match_outside_hours_still_scores_availability():
    volunteer = make_volunteer(availability=[AvailabilitySlot.parse("Mon 14:00-16:00")])
    availability = _factor(compute_match_score(volunteer, make_event()), "availability")
    assert availability.points == 10
    assert availability.detail == "Available on Mon (different time)"


def test_same_state_only_gives_partial_location():
    volunteer = make_volunteer(city="Peoria")
    event = make_event(state_code="IL")
    location = _factor(compute_match_score(volunteer, event), "location")
    assert location.kind == PARTIAL
    assert location.points == 5


def test_score_is_deterministic(volunteer, event):
    assert compute_match_score(volunteer, event) == compute_match_score(volunteer, event)


def test_score_is_monotonic_in_skill_overlap(event):
    fewer = make_volunteer(skills={"Teaching"})
    more = make_volunteer(skills={"Teaching", "Technology"})
    assert compute_match_score(more, event).score >= compute_match_score(fewer, event).score


def test_score_is_capped_at_100():
    weights = ScoreWeights(skill_points=90)
    volunteer = make_volunteer(skills={"Teaching", "Communication", "Technology"})
    scored = compute_match_score(volunteer, make_event(urgency="critical"), weights)
    assert scored.score == 100


def test_capacity_factors_are_advisory():
    volunteer = make_volunteer()
    open_score = compute_match_score(volunteer, make_event(capacity=5, current_registrants=0))
    nearly = compute_match_score(volunteer, make_event(capacity=5, current_registrants=4))
    full = compute_match_score(volunteer, make_event(capacity=5, current_registrants=5))

    assert "capacity" not in open_score.breakdown
    assert _factor(nearly, "capacity").detail == "Event nearly full (4/5)"
    assert _factor(full, "capacity").kind == MISSING
    assert open_score.score == nearly.score == full.score


def test_no_required_skills_factor():
    scored = compute_match_score(make_volunteer(), make_event(required_skills=set()))
    skills = _factor(scored, "skills")
    assert skills.points == 0
    assert skills.detail == "No specific skills required"


def test_rank_volunteers_orders_by_score_then_id():
    event = make_event()
    volunteers = [
        make_volunteer("V010"),
        make_volunteer("V002"),
        make_volunteer("V005", skills={"Teaching", "Communication", "Technology"}),
        make_volunteer("V001", skills=set(), city="Elsewhere"),
    ]
    ranked = rank_volunteers_for_event(volunteers, event)
    ids = [v.volunteer_id for v, _ in ranked]
    scores = [s.score for _, s in ranked]

    assert ids == ["V005", "V002", "V010", "V001"]
    assert scores == sorted(scores, reverse=True)


def test_rank_excludes_inactive_and_truncates():
    event = make_event()
    volunteers = [
        make_volunteer("V001"),
        make_volunteer("V002", status="Inactive"),
        make_volunteer("V003"),
    ]
    ranked = rank_volunteers_for_event(volunteers, event, top_n=1)
    assert [v.volunteer_id for v, _ in ranked] == ["V001"]


def test_rank_is_stable_across_calls():
    event = make_event()
    volunteers = [make_volunteer(f"V{i:03d}") for i in range(5, 0, -1)]
    first = [v.volunteer_id for v, _ in rank_volunteers_for_event(volunteers, event)]
    second = [v.volunteer_id for v, _ in rank_volunteers_for_event(volunteers, event)]
    assert first == second == ["V001", "V002", "V003", "V004", "V005"]


def test_rank_events_only_published(volunteer):
    events = [
        make_event("E002", urgency="low"),
        make_event("E001", urgency="critical"),
        make_event("E003", status="draft", urgency="critical"),
        make_event("E004", status="cancelled"),
    ]
    ranked = rank_events_for_volunteer(volunteer, events)
    assert [e.event_id for e, _ in ranked] == ["E001", "E002"]


def test_custom_scorer_is_used(volunteer, event):
    calls = []

    def scorer(v, e):
        calls.append((v.volunteer_id, e.event_id))
        return compute_match_score(v, e)

    rank_volunteers_for_event([volunteer], event, scorer=scorer)
    assert calls == [("V001", "E001")]
