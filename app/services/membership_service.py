from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from app.core.exceptions import AuthorizationError
from app.services.team_store import TeamStore


class MembershipService:
    """Read and write permission rules shared by every team-scoped resource.

    Read access between two users goes through the membership index: a
    pending application does not count as being in the team, so only two
    confirmed members of the same team may see each other's profile and
    status. Everybody may always see their own records.
    """

    def __init__(self, team_store: TeamStore) -> None:
        self.team_store = team_store

    def check_two_users_in_same_team(self, email_a: str | None, email_b: str | None) -> bool:
        normalized_a = _normalize_email(email_a)
        normalized_b = _normalize_email(email_b)
        if not normalized_a or not normalized_b:
            return False
        if normalized_a == normalized_b:
            return True

        user_in_team_a = self.team_store.get_user_in_team(normalized_a)
        user_in_team_b = self.team_store.get_user_in_team(normalized_b)
        if not user_in_team_a or not user_in_team_b:
            return False
        if user_in_team_a.get("pending") or user_in_team_b.get("pending"):
            return False
        return str(user_in_team_a.get("team_id", "")) == str(user_in_team_b.get("team_id", ""))

    def assert_can_view_user(self, requester_email: str | None, target_email: str) -> None:
        if not self.check_two_users_in_same_team(requester_email, target_email):
            raise AuthorizationError("Requester can't view this user.")

    @staticmethod
    def is_team_owner(requester_email: str | None, team: Mapping[str, Any]) -> bool:
        normalized_requester = _normalize_email(requester_email)
        return bool(normalized_requester) and normalized_requester == team.get("owner_email")

    @staticmethod
    def is_team_member(requester_email: str | None, team: Mapping[str, Any]) -> bool:
        normalized_requester = _normalize_email(requester_email)
        return bool(normalized_requester) and normalized_requester in team.get("member_emails", [])

    @staticmethod
    def is_self(requester_email: str | None, target_email: str) -> bool:
        normalized_requester = _normalize_email(requester_email)
        return bool(normalized_requester) and normalized_requester == _normalize_email(target_email)

    def assert_team_owner(self, requester_email: str | None, team: Mapping[str, Any]) -> None:
        if not self.is_team_owner(requester_email, team):
            raise AuthorizationError("Requester is not the team's owner.")

    def assert_team_member(self, requester_email: str | None, team: Mapping[str, Any]) -> None:
        if not self.is_team_member(requester_email, team):
            raise AuthorizationError("Requester is not a member of the team.")

    def assert_self(self, requester_email: str | None, target_email: str) -> None:
        if not self.is_self(requester_email, target_email):
            raise AuthorizationError("Requester can only act on their own behalf.")

    def assert_owner_or_self(
        self,
        requester_email: str | None,
        team: Mapping[str, Any],
        target_email: str,
    ) -> None:
        if self.is_team_owner(requester_email, team) or self.is_self(requester_email, target_email):
            return
        raise AuthorizationError("Requester is neither the team's owner nor the target user.")


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()
