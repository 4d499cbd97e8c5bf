import pytest
from fastapi.testclient import TestClient

from api.main import create_app


@pytest.fixture
def client(store):
    return TestClient(create_app(store))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_ranked_matches_for_event(client):
    response = client.get("/events/E001/matches", params={"rank": "true"})
    assert response.status_code == 200
    data = response.json()
    assert data["eventId"] == "E001"
    first, second = data["matches"][:2]
    assert first["volunteerId"] == "V002"
    assert second == {
        "volunteerId": "V001",
        "name": "Volunteer V001",
        "score": 75,
        "tier": "excellent",
        "matchingSkills": ["Communication", "Teaching"],
        "skillPercentage": 66.7,
        "reasons": [
            "~ 2/3 required skills matched",
            "! High urgency event",
            "✓ Available on Mon at event time",
            "✓ Located in same city (Springfield)",
        ],
        "factors": second["factors"],
    }
    assert second["factors"][0] == {
        "factor": "skills", "present": True, "points": 40, "maxPoints": 60,
        "detail": "2/3 required skills matched",
    }


def test_ranked_matches_limit(client):
    response = client.get("/events/E001/matches", params={"rank": "true", "limit": 1})
    assert len(response.json()["matches"]) == 1


def test_stored_matches_for_event(client):
    response = client.get("/events/E002/matches")
    assert response.json()["matches"][0]["matchId"] == "M0001"


def test_unknown_event_is_404(client):
    response = client.get("/events/E999/matches", params={"rank": "true"})
    assert response.status_code == 404
    assert response.json() == {"detail": "Event E999 not found"}


def test_create_match(client):
    response = client.post("/matches", json={"volunteerId": "V002", "eventId": "E001"})
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["score"] == 95


def test_create_match_time_conflict_is_409(client):
    response = client.post("/matches", json={"volunteerId": "V001", "eventId": "E001"})
    assert response.status_code == 409
    data = response.json()
    assert data["error"] == "TimeConflict"
    assert data["conflicts"][0]["eventId"] == "E002"
    assert data["conflicts"][0]["startAt"] == "2026-03-02T10:30:00"


def test_create_match_duplicate_is_409(client):
    client.post("/matches", json={"volunteerId": "V002", "eventId": "E001"})
    response = client.post("/matches", json={"volunteerId": "V002", "eventId": "E001"})
    assert response.status_code == 409
    assert response.json() == {
        "error": "AlreadyRegistered",
        "message": "Volunteer is already registered for this event.",
    }


def test_create_match_draft_event_is_409(client):
    response = client.post("/matches", json={"volunteerId": "V002", "eventId": "E004"})
    assert response.json()["error"] == "EventNotOpen"


def test_create_match_unknown_volunteer_is_404(client):
    response = client.post("/matches", json={"volunteerId": "V404", "eventId": "E001"})
    assert response.status_code == 404


def test_create_match_missing_field_is_422(client):
    response = client.post("/matches", json={"volunteerId": "V002"})
    assert response.status_code == 422


def test_preview_does_not_create(client):
    response = client.post("/matches/preview", json={"volunteerId": "V001", "eventId": "E001"})
    assert response.status_code == 200
    data = response.json()
    assert data["allowed"] is False
    assert data["error"] == "TimeConflict"

    stored = client.get("/events/E001/matches").json()["matches"]
    assert stored == []


def test_patch_match_status(client):
    created = client.post("/matches", json={"volunteerId": "V002", "eventId": "E001"}).json()

    response = client.patch(f"/matches/{created['matchId']}", json={"status": "confirmed"})

    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"


def test_patch_illegal_transition_is_400(client):
    response = client.patch("/matches/M0001", json={"status": "pending"})
    assert response.status_code == 400
    assert "confirmed to pending" in response.json()["detail"]


def test_auto_match_defaults(client):
    response = client.post("/events/E001/auto-match")
    assert response.status_code == 200
    data = response.json()
    assert [a["volunteerId"] for a in data["assigned"]] == ["V002"]
    assert data["skipped"][0]["reason"] == "TimeConflict"


def test_auto_match_with_body(client):
    response = client.post("/events/E001/auto-match", json={"minScore": 0, "maxMatches": 1})
    assert len(response.json()["assigned"]) == 1


def test_auto_match_rejects_bad_min_score(client):
    response = client.post("/events/E001/auto-match", json={"minScore": 150})
    assert response.status_code == 422


def test_recommended_events(client):
    response = client.get("/volunteers/V001/recommended-events", params={"limit": 2})
    data = response.json()
    assert data["volunteerId"] == "V001"
    assert len(data["events"]) == 2
    assert all(e["eventId"] != "E004" for e in data["events"])


def test_volunteer_stats(client):
    response = client.get("/volunteers/V001/stats")
    assert response.json() == {
        "volunteerId": "V001",
        "stats": {
            "upcomingEvents": 1,
            "pendingRequests": 0,
            "completedEvents": 0,
            "declinedRequests": 0,
        },
    }


def test_put_event_then_fetch(client):
    payload = {
        "name": "Story Time",
        "requiredSkills": ["Teaching"],
        "urgency": "critical",
        "capacity": 4,
        "startAt": "2026-03-09T10:00:00",
        "endAt": "2026-03-09T11:00:00",
        "status": "published",
        "city": "Springfield",
    }
    response = client.put("/events/E050", json=payload)
    assert response.status_code == 200
    assert response.json()["capacity"] == 4

    fetched = client.get("/events/E050").json()
    assert fetched["urgency"] == "critical"
    assert fetched["currentRegistrants"] == 0


def test_put_event_rejects_inverted_window(client):
    payload = {"name": "Bad", "startAt": "2026-03-09T11:00:00", "endAt": "2026-03-09T10:00:00"}
    assert client.put("/events/E051", json=payload).status_code == 422


def test_put_volunteer(client):
    payload = {
        "name": "Fran",
        "skills": ["Teaching"],
        "availability": ["Mon 09:00-12:00", "Bogus slot"],
        "city": "Springfield",
        "stateCode": "il",
    }
    response = client.put("/volunteers/V020", json=payload)
    data = response.json()
    assert data["availability"] == ["Mon 09:00-12:00"]
    assert data["stateCode"] == "IL"
    assert client.get("/volunteers").json()["volunteers"][-1]["volunteerId"] == "V020"


def test_conflicts_endpoint(client):
    response = client.get("/conflicts")
    assert response.json() == {"count": 0, "conflicts": []}


def test_put_event_with_utc_times_can_be_registered(client):
    payload = {
        "name": "Late Story Time",
        "startAt": "2026-03-16T10:15:00Z",
        "endAt": "2026-03-16T11:15:00Z",
        "status": "published",
    }
    saved = client.put("/events/E077", json=payload).json()
    assert "+" not in saved["startAt"] and not saved["startAt"].endswith("Z")

    response = client.post("/matches", json={"volunteerId": "V001", "eventId": "E077"})
    assert response.status_code == 201
    assert client.get("/volunteers/V001/stats").status_code == 200


def test_put_event_mixed_offsets_inverted_is_422(client):
    payload = {"name": "Bad", "startAt": "2026-03-09T11:00:00Z", "endAt": "2026-03-08T10:00:00"}
    assert client.put("/events/E078", json=payload).status_code == 422


def test_put_event_with_other_casing_keeps_registrations(client):
    client.post("/matches", json={"volunteerId": "V002", "eventId": "E001"})
    client.post("/matches", json={"volunteerId": "V003", "eventId": "E001"})
    payload = {
        "name": "Event E001",
        "requiredSkills": ["Teaching"],
        "capacity": 2,
        "startAt": "2026-03-02T10:00:00",
        "endAt": "2026-03-02T11:00:00",
        "status": "published",
    }

    saved = client.put("/events/e001", json=payload).json()

    assert saved["eventId"] == "E001"
    assert saved["currentRegistrants"] == 2
    response = client.post("/matches", json={"volunteerId": "V003", "eventId": "E001"})
    assert response.status_code == 409
    assert response.json()["error"] == "AlreadyRegistered"


def test_volunteer_stats_uses_stored_id(client):
    response = client.get("/volunteers/v001/stats")
    assert response.json()["volunteerId"] == "V001"
