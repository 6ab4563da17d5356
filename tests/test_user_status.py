from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

Headers = Callable[[str], dict[str, str]]

BLOCKED_STATUS = {
    "isBlocked": True,
    "presentation": {
        "prevWork": "Wrote the parser",
        "planToday": "Wire the parser into the CLI",
        "blockedBy": "Waiting on review",
    },
}


@pytest.fixture
def team(client: TestClient, auth_headers: Headers) -> None:
    for email in ("lead@x.com", "dev@x.com", "solo@x.com"):
        response = client.post("/users", json={"email": email, "displayName": email.split("@")[0]})
        assert response.status_code == 200
    assert client.post("/teams", json={"id": "core", "name": "Core"}, headers=auth_headers("lead@x.com")).status_code == 200
    add_response = client.post(
        "/teams/core/members",
        json={"email": "dev@x.com"},
        headers=auth_headers("lead@x.com"),
    )
    assert add_response.status_code == 200


def test_update_and_read_status(client: TestClient, auth_headers: Headers, team: None) -> None:
    update_response = client.put("/user-status/dev@x.com", json=BLOCKED_STATUS, headers=auth_headers("dev@x.com"))

    assert update_response.status_code == 200
    assert update_response.json() == {"email": "dev@x.com", **BLOCKED_STATUS}

    teammate_response = client.get("/user-status/dev@x.com", headers=auth_headers("lead@x.com"))
    assert teammate_response.status_code == 200
    assert teammate_response.json()["isBlocked"] is True

    outsider_response = client.get("/user-status/dev@x.com", headers=auth_headers("solo@x.com"))
    assert outsider_response.status_code == 401


def test_blocked_by_defaults_to_empty(client: TestClient, auth_headers: Headers, team: None) -> None:
    response = client.put(
        "/user-status/dev@x.com",
        json={"isBlocked": False, "presentation": {"prevWork": "Docs", "planToday": "Tests"}},
        headers=auth_headers("dev@x.com"),
    )

    assert response.status_code == 200
    assert response.json()["presentation"]["blockedBy"] == ""


def test_update_status_validation(client: TestClient, auth_headers: Headers, team: None) -> None:
    extra_field_response = client.put(
        "/user-status/dev@x.com",
        json={
            "isBlocked": False,
            "presentation": {"prevWork": "", "planToday": "", "mood": "great"},
        },
        headers=auth_headers("dev@x.com"),
    )
    assert extra_field_response.status_code == 400

    missing_field_response = client.put(
        "/user-status/dev@x.com",
        json={"isBlocked": False, "presentation": {"prevWork": ""}},
        headers=auth_headers("dev@x.com"),
    )
    assert missing_field_response.status_code == 400

    missing_flag_response = client.put(
        "/user-status/dev@x.com",
        json={"presentation": {"prevWork": "", "planToday": ""}},
        headers=auth_headers("dev@x.com"),
    )
    assert missing_flag_response.status_code == 400


def test_update_status_authorization(client: TestClient, auth_headers: Headers, team: None) -> None:
    owner_response = client.put("/user-status/dev@x.com", json=BLOCKED_STATUS, headers=auth_headers("lead@x.com"))
    assert owner_response.status_code == 401

    anonymous_response = client.put("/user-status/dev@x.com", json=BLOCKED_STATUS)
    assert anonymous_response.status_code == 401

    unknown_response = client.put(
        "/user-status/ghost@x.com",
        json=BLOCKED_STATUS,
        headers=auth_headers("ghost@x.com"),
    )
    assert unknown_response.status_code == 404


def test_missing_status_is_recreated_on_update(client: TestClient, auth_headers: Headers) -> None:
    client.app.state.stores.users.create_user(email="late@x.com", display_name="Late")

    missing_response = client.get("/user-status/late@x.com", headers=auth_headers("late@x.com"))
    assert missing_response.status_code == 404

    update_response = client.put("/user-status/late@x.com", json=BLOCKED_STATUS, headers=auth_headers("late@x.com"))
    assert update_response.status_code == 200

    read_response = client.get("/user-status/late@x.com", headers=auth_headers("late@x.com"))
    assert read_response.status_code == 200
    assert read_response.json()["presentation"] == BLOCKED_STATUS["presentation"]
