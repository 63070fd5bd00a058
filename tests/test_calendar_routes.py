"""
tests/test_calendar_routes.py -- /v1/calendar through the gateway.

Covers:
  - create / list / delete for the authenticated user
  - field validation (400 with per-field messages)
  - ownership: another user's events are invisible and undeletable (404)
"""

from __future__ import annotations

import pytest

EVENT = {
    "event": {
        "name": "standup",
        "details": "daily sync",
        "start": "2026-03-01T09:00:00+00:00",
        "end": "2026-03-01T09:15:00+00:00",
        "color": "#1e90ff",
    }
}


@pytest.fixture
def alice(gateway, signup_user) -> dict[str, str]:
    _, plaintext = signup_user("alice@example.com")
    return {"Authorization": f"Bearer {plaintext}"}


@pytest.fixture
def bob(gateway, signup_user) -> dict[str, str]:
    _, plaintext = signup_user("bob@example.com")
    return {"Authorization": f"Bearer {plaintext}"}


class TestCalendarCrud:
    def test_list_is_empty_for_new_user(self, gateway, alice):
        client, _ = gateway
        resp = client.get("/v1/calendar", headers=alice)
        assert resp.status_code == 200
        assert resp.json() == {"events": []}

    def test_create_then_list(self, gateway, alice):
        client, _ = gateway
        resp = client.post("/v1/calendar", json=EVENT, headers=alice)
        assert resp.status_code == 201
        event_id = resp.json()["event_id"]

        events = client.get("/v1/calendar", headers=alice).json()["events"]
        assert len(events) == 1
        assert events[0]["id"] == event_id
        assert events[0]["name"] == "standup"
        assert events[0]["color"] == "#1e90ff"
        assert "user_id" not in events[0]

    def test_delete(self, gateway, alice):
        client, _ = gateway
        event_id = client.post("/v1/calendar", json=EVENT, headers=alice).json()["event_id"]
        resp = client.delete(f"/v1/calendar/{event_id}", headers=alice)
        assert resp.status_code == 204
        assert client.get("/v1/calendar", headers=alice).json() == {"events": []}

    def test_delete_unknown_is_404(self, gateway, alice):
        client, _ = gateway
        resp = client.delete("/v1/calendar/9999", headers=alice)
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_anonymous_create_is_401(self, gateway):
        client, _ = gateway
        resp = client.post("/v1/calendar", json=EVENT)
        assert resp.status_code == 401


class TestCalendarValidation:
    def test_invalid_fields_are_reported_together(self, gateway, alice):
        client, _ = gateway
        body = {
            "event": {
                "name": "",
                "details": "x" * 1101,
                "start": "2026-03-01T10:00:00+00:00",
                "end": "2026-03-01T09:00:00+00:00",
                "color": "blue",
            }
        }
        resp = client.post("/v1/calendar", json=body, headers=alice)
        assert resp.status_code == 400
        assert resp.json()["error"]["fields"] == {
            "name": "must be provided",
            "details": "must not be more than 1100 bytes long",
            "end": "must not be before start",
            "color": "must start with #",
        }

    def test_missing_start_is_400(self, gateway, alice):
        client, _ = gateway
        body = {"event": {"name": "x", "end": "2026-03-01T09:00:00+00:00", "color": "#000000"}}
        resp = client.post("/v1/calendar", json=body, headers=alice)
        assert resp.status_code == 400
        assert "event.start" in resp.json()["error"]["fields"]


class TestOwnership:
    def test_users_only_see_their_own_events(self, gateway, alice, bob):
        client, _ = gateway
        client.post("/v1/calendar", json=EVENT, headers=alice)
        assert client.get("/v1/calendar", headers=bob).json() == {"events": []}

    def test_cannot_delete_someone_elses_event(self, gateway, alice, bob):
        client, _ = gateway
        event_id = client.post("/v1/calendar", json=EVENT, headers=alice).json()["event_id"]
        assert client.delete(f"/v1/calendar/{event_id}", headers=bob).status_code == 404
        assert len(client.get("/v1/calendar", headers=alice).json()["events"]) == 1

    def test_body_user_id_is_ignored(self, gateway, alice, bob):
        client, _ = gateway
        body = {"event": {**EVENT["event"], "user_id": 999}}
        client.post("/v1/calendar", json=body, headers=alice)
        assert len(client.get("/v1/calendar", headers=alice).json()["events"]) == 1
