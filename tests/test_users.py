from collections.abc import Callable

from fastapi.testclient import TestClient

Headers = Callable[[str], dict[str, str]]


def _register_user(client: TestClient, email: str, display_name: str) -> dict[str, str]:
    response = client.post(
        "/users",
        json={"email": email, "displayName": display_name, "firstName": display_name},
    )
    assert response.status_code == 200
    return response.json()


def _build_team(client: TestClient, auth_headers: Headers) -> None:
    create_response = client.post(
        "/teams",
        json={"id": "research", "name": "Research"},
        headers=auth_headers("ada@yale.edu"),
    )
    assert create_response.status_code == 200
    add_response = client.post(
        "/teams/research/members",
        json={"email": "grace@yale.edu"},
        headers=auth_headers("ada@yale.edu"),
    )
    assert add_response.status_code == 200


def test_register_creates_profile_and_default_status(client: TestClient, auth_headers: Headers) -> None:
    user = _register_user(client, "ada@yale.edu", "Ada")

    assert user == {
        "email": "ada@yale.edu",
        "displayName": "Ada",
        "firstName": "Ada",
        "lastName": "",
        "profilePicture": "",
    }

    status_response = client.get("/user-status/ada@yale.edu", headers=auth_headers("ada@yale.edu"))
    assert status_response.status_code == 200
    assert status_response.json() == {
        "email": "ada@yale.edu",
        "isBlocked": False,
        "presentation": {"prevWork": "", "planToday": "", "blockedBy": ""},
    }


def test_register_rules(client: TestClient, auth_headers: Headers) -> None:
    _register_user(client, "ada@yale.edu", "Ada")

    duplicate_response = client.post("/users", json={"email": "ada@yale.edu", "displayName": "Ada"})
    assert duplicate_response.status_code == 400
    assert duplicate_response.json()["detail"] == "User already exists."

    invalid_email_response = client.post("/users", json={"email": "ada", "displayName": "Ada"})
    assert invalid_email_response.status_code == 400

    missing_name_response = client.post("/users", json={"email": "grace@yale.edu"})
    assert missing_name_response.status_code == 400

    on_behalf_response = client.post(
        "/users",
        json={"email": "grace@yale.edu", "displayName": "Grace"},
        headers=auth_headers("ada@yale.edu"),
    )
    assert on_behalf_response.status_code == 401

    self_response = client.post(
        "/users",
        json={"email": "grace@yale.edu", "displayName": "Grace"},
        headers=auth_headers("grace@yale.edu"),
    )
    assert self_response.status_code == 200


def test_get_user_visibility(client: TestClient, auth_headers: Headers) -> None:
    _register_user(client, "ada@yale.edu", "Ada")
    _register_user(client, "grace@yale.edu", "Grace")
    _register_user(client, "alan@yale.edu", "Alan")

    missing_response = client.get("/users/ghost@yale.edu", headers=auth_headers("ada@yale.edu"))
    assert missing_response.status_code == 404

    self_response = client.get("/users/alan@yale.edu", headers=auth_headers("alan@yale.edu"))
    assert self_response.status_code == 200

    stranger_response = client.get("/users/grace@yale.edu", headers=auth_headers("ada@yale.edu"))
    assert stranger_response.status_code == 401

    anonymous_response = client.get("/users/grace@yale.edu")
    assert anonymous_response.status_code == 401

    _build_team(client, auth_headers)

    teammate_response = client.get("/users/grace@yale.edu", headers=auth_headers("ada@yale.edu"))
    assert teammate_response.status_code == 200
    assert teammate_response.json()["displayName"] == "Grace"

    outsider_response = client.get("/users/grace@yale.edu", headers=auth_headers("alan@yale.edu"))
    assert outsider_response.status_code == 401


def test_pending_member_cannot_view_team_profiles(client: TestClient, auth_headers: Headers) -> None:
    _register_user(client, "ada@yale.edu", "Ada")
    _register_user(client, "grace@yale.edu", "Grace")
    _register_user(client, "alan@yale.edu", "Alan")
    _build_team(client, auth_headers)

    apply_response = client.post(
        "/teams/research/pending_members",
        json={"email": "alan@yale.edu"},
        headers=auth_headers("alan@yale.edu"),
    )
    assert apply_response.status_code == 200

    pending_response = client.get("/users/ada@yale.edu", headers=auth_headers("alan@yale.edu"))
    assert pending_response.status_code == 401

    owner_response = client.get("/users/alan@yale.edu", headers=auth_headers("ada@yale.edu"))
    assert owner_response.status_code == 401


def test_list_visible_users(client: TestClient, auth_headers: Headers) -> None:
    _register_user(client, "ada@yale.edu", "Ada")
    _register_user(client, "grace@yale.edu", "Grace")
    _register_user(client, "alan@yale.edu", "Alan")

    anonymous_response = client.get("/users")
    assert anonymous_response.status_code == 401

    lonely_response = client.get("/users", headers=auth_headers("alan@yale.edu"))
    assert [user["email"] for user in lonely_response.json()] == ["alan@yale.edu"]

    _build_team(client, auth_headers)

    team_response = client.get("/users", headers=auth_headers("grace@yale.edu"))
    assert team_response.status_code == 200
    assert [user["email"] for user in team_response.json()] == ["grace@yale.edu", "ada@yale.edu"]


def test_update_user(client: TestClient, auth_headers: Headers) -> None:
    _register_user(client, "ada@yale.edu", "Ada")

    update_response = client.put(
        "/users/ada@yale.edu",
        json={"displayName": "Countess", "lastName": "Lovelace", "profilePicture": "https://img/ada.png"},
        headers=auth_headers("ada@yale.edu"),
    )
    assert update_response.status_code == 200
    assert update_response.json() == {
        "email": "ada@yale.edu",
        "displayName": "Countess",
        "firstName": "Ada",
        "lastName": "Lovelace",
        "profilePicture": "https://img/ada.png",
    }

    missing_name_response = client.put(
        "/users/ada@yale.edu",
        json={"lastName": "Byron"},
        headers=auth_headers("ada@yale.edu"),
    )
    assert missing_name_response.status_code == 400

    other_response = client.put(
        "/users/ada@yale.edu",
        json={"displayName": "Impostor"},
        headers=auth_headers("grace@yale.edu"),
    )
    assert other_response.status_code == 401

    unknown_response = client.put(
        "/users/grace@yale.edu",
        json={"displayName": "Grace"},
        headers=auth_headers("grace@yale.edu"),
    )
    assert unknown_response.status_code == 404


def test_blank_display_name_is_rejected(client: TestClient, auth_headers: Headers) -> None:
    register_response = client.post("/users", json={"email": "ada@yale.edu", "displayName": "   "})
    assert register_response.status_code == 400
    assert register_response.json()["errors"]

    _register_user(client, "ada@yale.edu", "Ada")
    update_response = client.put(
        "/users/ada@yale.edu",
        json={"displayName": " "},
        headers=auth_headers("ada@yale.edu"),
    )
    assert update_response.status_code == 400

    read_response = client.get("/users/ada@yale.edu", headers=auth_headers("ada@yale.edu"))
    assert read_response.json()["displayName"] == "Ada"
