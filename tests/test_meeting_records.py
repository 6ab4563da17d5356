from collections.abc import Callable
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

Headers = Callable[[str], dict[str, str]]


@pytest.fixture
def team(client: TestClient, auth_headers: Headers) -> None:
    for email, display_name in (("lead@x.com", "Lead"), ("dev@x.com", "Dev"), ("solo@x.com", "Solo")):
        response = client.post("/users", json={"email": email, "displayName": display_name})
        assert response.status_code == 200

    lead_headers = auth_headers("lead@x.com")
    assert client.post("/teams", json={"id": "core", "name": "Core"}, headers=lead_headers).status_code == 200
    assert client.post("/teams/core/members", json={"email": "dev@x.com"}, headers=lead_headers).status_code == 200
    meeting_response = client.post(
        "/teams/core/meetings",
        json={"name": "daily", "weekdayTime": ["MON 09:00"]},
        headers=lead_headers,
    )
    assert meeting_response.status_code == 200

    status_response = client.put(
        "/user-status/dev@x.com",
        json={
            "isBlocked": True,
            "presentation": {"prevWork": "Fixtures", "planToday": "Records", "blockedBy": "CI"},
        },
        headers=auth_headers("dev@x.com"),
    )
    assert status_response.status_code == 200


def test_create_record_snapshots_member_statuses(client: TestClient, auth_headers: Headers, team: None) -> None:
    response = client.post(
        "/meeting-records/core",
        json={"dateTime": "2024-03-04T09:00:00Z", "meetingName": "daily"},
        headers=auth_headers("lead@x.com"),
    )

    assert response.status_code == 200
    record = response.json()
    assert record["teamId"] == "core"
    assert record["dateTime"] == "2024-03-04T09:00:00Z"
    assert record["meetingName"] == "daily"
    assert record["presentations"] == [
        {
            "email": "lead@x.com",
            "displayName": "Lead",
            "isBlocked": False,
            "presentation": {"prevWork": "", "planToday": "", "blockedBy": ""},
        },
        {
            "email": "dev@x.com",
            "displayName": "Dev",
            "isBlocked": True,
            "presentation": {"prevWork": "Fixtures", "planToday": "Records", "blockedBy": "CI"},
        },
    ]

    later_status_response = client.put(
        "/user-status/dev@x.com",
        json={"isBlocked": False, "presentation": {"prevWork": "Records", "planToday": "Docs"}},
        headers=auth_headers("dev@x.com"),
    )
    assert later_status_response.status_code == 200

    list_response = client.get("/meeting-records/core", headers=auth_headers("dev@x.com"))
    assert list_response.json()[0]["presentations"][1]["isBlocked"] is True


def test_create_record_defaults_to_current_time(client: TestClient, auth_headers: Headers, team: None) -> None:
    response = client.post("/meeting-records/core", headers=auth_headers("lead@x.com"))

    assert response.status_code == 200
    record = response.json()
    assert datetime.fromisoformat(record["dateTime"]).tzinfo is not None
    assert record["meetingName"] is None


def test_create_record_rules(client: TestClient, auth_headers: Headers, team: None) -> None:
    payload = {"dateTime": "2024-03-04T09:00:00Z"}

    member_response = client.post("/meeting-records/core", json=payload, headers=auth_headers("dev@x.com"))
    assert member_response.status_code == 401

    missing_team_response = client.post("/meeting-records/ghost", json=payload, headers=auth_headers("lead@x.com"))
    assert missing_team_response.status_code == 404

    unknown_meeting_response = client.post(
        "/meeting-records/core",
        json={**payload, "meetingName": "retro"},
        headers=auth_headers("lead@x.com"),
    )
    assert unknown_meeting_response.status_code == 404
    assert unknown_meeting_response.json()["detail"] == "Meeting doesn't exist."

    first_response = client.post("/meeting-records/core", json=payload, headers=auth_headers("lead@x.com"))
    assert first_response.status_code == 200

    duplicate_response = client.post("/meeting-records/core", json=payload, headers=auth_headers("lead@x.com"))
    assert duplicate_response.status_code == 400
    assert duplicate_response.json()["detail"] == "Meeting record already exists."


def test_list_records_in_date_order(client: TestClient, auth_headers: Headers, team: None) -> None:
    for date_time in ("2024-03-06T09:00:00Z", "2024-03-04T09:00:00Z", "2024-03-05T09:00:00Z"):
        response = client.post(
            "/meeting-records/core",
            json={"dateTime": date_time},
            headers=auth_headers("lead@x.com"),
        )
        assert response.status_code == 200

    list_response = client.get("/meeting-records/core", headers=auth_headers("dev@x.com"))

    assert list_response.status_code == 200
    assert [record["dateTime"] for record in list_response.json()] == [
        "2024-03-04T09:00:00Z",
        "2024-03-05T09:00:00Z",
        "2024-03-06T09:00:00Z",
    ]

    outsider_response = client.get("/meeting-records/core", headers=auth_headers("solo@x.com"))
    assert outsider_response.status_code == 401
