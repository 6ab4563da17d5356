from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from app.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from app.schemas.team import (
    AnnouncementResponse,
    Meeting,
    MeetingUpdateRequest,
    MembershipIndexReconcileResponse,
    TeamCreateRequest,
    TeamDetailResponse,
    TeamResponse,
    TeamUpdateRequest,
)
from app.schemas.user import UserProfile
from app.services.membership_service import MembershipService
from app.services.stores import StandupStores
from app.services.user_service import to_user_profile

logger = logging.getLogger(__name__)


class TeamService:
    """Team lifecycle and the membership state machine.

    The team aggregate is the source of truth for membership; the
    ``UserInTeam`` index is a secondary record keyed by user email. Joining an
    existing team claims the index entry before the team is written, so the
    index enforces the one-team-per-user rule, and the claim is undone if the
    team write fails. A new team is written before its owner's claim and is
    dropped again if the claim fails. A user losing an affiliation is dropped
    from the team first and from the index second. An index entry whose team
    no longer exists is released the next time its user tries to join a team.
    Other divergence left by a crash between two writes is fixed by
    ``reconcile_membership_index``.
    """

    def __init__(self, stores: StandupStores) -> None:
        self.team_store = stores.teams
        self.user_store = stores.users
        self.membership = MembershipService(stores.teams)

    def list_teams(self, *, requester_email: str | None) -> list[TeamResponse]:
        if not requester_email:
            return []
        user_in_team = self.team_store.get_user_in_team(requester_email)
        if not user_in_team or user_in_team.get("pending"):
            return []
        team = self.team_store.get_team(str(user_in_team.get("team_id", "")))
        if not team or not self.membership.is_team_member(requester_email, team):
            return []
        return [self._to_team_response(team)]

    def get_team(self, *, requester_email: str | None, team_id: str) -> TeamDetailResponse:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_member(requester_email, team)
        return TeamDetailResponse(
            **self._to_team_response(team).model_dump(),
            members=self._load_profiles(team.get("member_emails", [])),
        )

    def create_team(self, *, requester_email: str | None, payload: TeamCreateRequest) -> TeamResponse:
        if not requester_email:
            raise AuthorizationError("Authentication required.")
        if payload.owner_email is not None and _normalize_email(payload.owner_email) != requester_email:
            raise AuthorizationError("Team owner must be the requester.")
        if self._get_affiliation(requester_email):
            raise ConflictError("Requester already belongs to a team.")

        team_id = (payload.team_id or "").strip() or uuid4().hex
        if self.team_store.get_team(team_id):
            raise ConflictError("Team already exists.")

        try:
            team = self.team_store.create_team(
                team_id=team_id,
                name=payload.name,
                owner_email=requester_email,
                announcement=payload.announcement,
            )
        except ValueError as exc:
            raise ConflictError("Team already exists.") from exc

        try:
            self._claim_membership(requester_email, team_id, pending=False, previous=None)
        except Exception:
            logger.warning("Dropping team whose owner claim failed team_id=%s", team_id)
            self.team_store.delete_team(team_id, expected_version=int(team.get("version", 0)))
            raise

        logger.info("Team created team_id=%s owner=%s", team_id, requester_email)
        return self._to_team_response(team)

    def update_team(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        payload: TeamUpdateRequest,
    ) -> TeamResponse:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_owner(requester_email, team)
        if payload.owner_email is not None and _normalize_email(payload.owner_email) != team.get("owner_email"):
            raise AuthorizationError("Team owner can't be changed.")

        updates: dict[str, Any] = {}
        if payload.name is not None:
            updates["name"] = payload.name.strip()
        if payload.announcement is not None:
            updates["announcement"] = payload.announcement.strip()
        if not updates:
            return self._to_team_response(team)
        return self._to_team_response(self._save_team(team, updates))

    def delete_team(self, *, requester_email: str | None, team_id: str) -> TeamResponse:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_owner(requester_email, team)

        if not self.team_store.delete_team(team["_id"], expected_version=int(team.get("version", 0))):
            raise ConflictError("Team was modified by another request.")

        affiliated_emails = [
            *team.get("member_emails", []),
            *team.get("pending_member_emails", []),
            *(
                str(user_in_team.get("user_email", ""))
                for user_in_team in self.team_store.list_user_in_team_for_team(team["_id"])
            ),
        ]
        deleted_count = self.team_store.batch_delete_user_in_team(affiliated_emails, team_id=team["_id"])
        logger.info(
            "Team deleted team_id=%s removed_index_entries=%s",
            team["_id"],
            deleted_count,
        )
        return self._to_team_response(team)

    def get_announcement(self, *, requester_email: str | None, team_id: str) -> AnnouncementResponse:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_member(requester_email, team)
        return AnnouncementResponse(announcement=str(team.get("announcement", "")))

    def update_announcement(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        announcement: str,
    ) -> TeamResponse:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_owner(requester_email, team)
        updated_team = self._save_team(team, {"announcement": announcement.strip()})
        return self._to_team_response(updated_team)

    def list_members(self, *, requester_email: str | None, team_id: str) -> list[UserProfile]:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_member(requester_email, team)
        return self._load_profiles(team.get("member_emails", []))

    def list_pending_members(self, *, requester_email: str | None, team_id: str) -> list[str]:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_member(requester_email, team)
        return list(team.get("pending_member_emails", []))

    def apply_to_team(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        email: str,
    ) -> TeamResponse:
        team = self._get_team_or_404(team_id)
        normalized_email = _normalize_email(email)
        self.membership.assert_self(requester_email, normalized_email)
        self._assert_user_exists(normalized_email)

        if normalized_email in team.get("member_emails", []):
            raise ConflictError("User is already a member of this team.")
        if normalized_email in team.get("pending_member_emails", []):
            raise ConflictError("User is already pending in this team.")
        if self._get_affiliation(normalized_email):
            raise ConflictError("User already belongs to a team.")

        self._claim_membership(normalized_email, team["_id"], pending=True, previous=None)
        try:
            updated_team = self._save_team(
                team,
                {
                    "pending_member_emails": [
                        *team.get("pending_member_emails", []),
                        normalized_email,
                    ],
                },
            )
        except Exception:
            self._undo_claim(normalized_email, team["_id"], previous=None)
            raise

        logger.info("Membership requested team_id=%s email=%s", team["_id"], normalized_email)
        return self._to_team_response(updated_team)

    def add_member(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        email: str,
    ) -> TeamResponse:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_owner(requester_email, team)
        normalized_email = _normalize_email(email)
        self._assert_user_exists(normalized_email)

        if normalized_email in team.get("member_emails", []):
            raise ConflictError("User is already a member of this team.")
        previous = self._get_affiliation(normalized_email)
        if previous and previous.get("team_id") != team["_id"]:
            raise ConflictError("User already belongs to another team.")

        self._claim_membership(normalized_email, team["_id"], pending=False, previous=previous)
        try:
            updated_team = self._save_team(
                team,
                {
                    "member_emails": [*team.get("member_emails", []), normalized_email],
                    "pending_member_emails": [
                        pending_email
                        for pending_email in team.get("pending_member_emails", [])
                        if pending_email != normalized_email
                    ],
                },
            )
        except Exception:
            self._undo_claim(normalized_email, team["_id"], previous=previous)
            raise

        logger.info("Member confirmed team_id=%s email=%s", team["_id"], normalized_email)
        return self._to_team_response(updated_team)

    def remove_member(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        email: str,
    ) -> TeamResponse:
        team = self._get_team_or_404(team_id)
        normalized_email = _normalize_email(email)
        self.membership.assert_owner_or_self(requester_email, team, normalized_email)
        if normalized_email == team.get("owner_email"):
            raise ConflictError("Team owner can't be removed.")
        if normalized_email not in team.get("member_emails", []):
            raise ConflictError("User is not a member of this team.")

        updated_team = self._save_team(
            team,
            {
                "member_emails": [
                    member_email
                    for member_email in team.get("member_emails", [])
                    if member_email != normalized_email
                ],
            },
        )
        self._release_membership(normalized_email, team["_id"])
        logger.info("Member removed team_id=%s email=%s", team["_id"], normalized_email)
        return self._to_team_response(updated_team)

    def remove_pending_member(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        email: str,
    ) -> TeamResponse:
        team = self._get_team_or_404(team_id)
        normalized_email = _normalize_email(email)
        self.membership.assert_owner_or_self(requester_email, team, normalized_email)
        if normalized_email not in team.get("pending_member_emails", []):
            raise ConflictError("User is not a pending member of this team.")

        updated_team = self._save_team(
            team,
            {
                "pending_member_emails": [
                    pending_email
                    for pending_email in team.get("pending_member_emails", [])
                    if pending_email != normalized_email
                ],
            },
        )
        self._release_membership(normalized_email, team["_id"])
        logger.info("Pending member removed team_id=%s email=%s", team["_id"], normalized_email)
        return self._to_team_response(updated_team)

    def list_meetings(self, *, requester_email: str | None, team_id: str) -> list[Meeting]:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_member(requester_email, team)
        return [Meeting(**meeting) for meeting in team.get("meetings", [])]

    def get_meeting(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        meeting_name: str,
    ) -> Meeting:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_member(requester_email, team)
        return Meeting(**self._get_meeting_or_404(team, meeting_name))

    def add_meeting(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        meeting: Meeting,
    ) -> TeamResponse:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_owner(requester_email, team)
        meeting_name = meeting.name.strip()
        if not meeting_name:
            raise ValidationError("Meeting name can't be blank.")
        if _find_meeting(team, meeting_name) is not None:
            raise ConflictError("Meeting already exists.")

        new_meeting = {
            "name": meeting_name,
            "weekday_time": list(meeting.weekday_time),
            "description": meeting.description.strip(),
        }
        updated_team = self._save_team(
            team,
            {"meetings": [*team.get("meetings", []), new_meeting]},
        )
        return self._to_team_response(updated_team)

    def update_meeting(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        meeting_name: str,
        payload: MeetingUpdateRequest,
    ) -> TeamResponse:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_owner(requester_email, team)
        current = self._get_meeting_or_404(team, meeting_name)

        updated_meeting = dict(current)
        if payload.weekday_time is not None:
            updated_meeting["weekday_time"] = list(payload.weekday_time)
        if payload.description is not None:
            updated_meeting["description"] = payload.description.strip()
        updated_team = self._save_team(
            team,
            {
                "meetings": [
                    updated_meeting if meeting.get("name") == current.get("name") else meeting
                    for meeting in team.get("meetings", [])
                ],
            },
        )
        return self._to_team_response(updated_team)

    def remove_meeting(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        meeting_name: str,
    ) -> TeamResponse:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_owner(requester_email, team)
        current = self._get_meeting_or_404(team, meeting_name)

        updated_team = self._save_team(
            team,
            {
                "meetings": [
                    meeting
                    for meeting in team.get("meetings", [])
                    if meeting.get("name") != current.get("name")
                ],
            },
        )
        return self._to_team_response(updated_team)

    def reconcile_membership_index(
        self,
        *,
        requester_email: str | None,
        team_id: str,
    ) -> MembershipIndexReconcileResponse:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_owner(requester_email, team)
        return self.repair_membership_index(team)

    def repair_membership_index(self, team: Mapping[str, Any]) -> MembershipIndexReconcileResponse:
        """Bring the index entries of ``team`` in line with the team aggregate.

        Entries of users claimed by a different team are left alone and
        logged, since the aggregate of that other team decides for them.
        """
        team_id = str(team.get("_id", ""))
        expected_pending_by_email: dict[str, bool] = {
            member_email: False for member_email in team.get("member_emails", [])
        }
        for pending_email in team.get("pending_member_emails", []):
            expected_pending_by_email.setdefault(pending_email, True)

        created = updated = deleted = 0
        for email, pending in expected_pending_by_email.items():
            user_in_team = self.team_store.get_user_in_team(email)
            if not user_in_team:
                try:
                    self.team_store.create_user_in_team(email=email, team_id=team_id, pending=pending)
                except ValueError:
                    logger.warning("Index entry claimed concurrently team_id=%s email=%s", team_id, email)
                    continue
                created += 1
            elif user_in_team.get("team_id") != team_id:
                logger.warning(
                    "Index entry points at another team team_id=%s email=%s other_team_id=%s",
                    team_id,
                    email,
                    user_in_team.get("team_id"),
                )
            elif bool(user_in_team.get("pending")) != pending:
                self.team_store.update_user_in_team(email, team_id=team_id, pending=pending)
                updated += 1

        for user_in_team in self.team_store.list_user_in_team_for_team(team_id):
            email = str(user_in_team.get("user_email", ""))
            if email in expected_pending_by_email:
                continue
            if self.team_store.batch_delete_user_in_team([email], team_id=team_id):
                deleted += 1

        if created or updated or deleted:
            logger.warning(
                "Membership index repaired team_id=%s created=%s updated=%s deleted=%s",
                team_id,
                created,
                updated,
                deleted,
            )
        return MembershipIndexReconcileResponse(
            team_id=team_id,
            created=created,
            updated=updated,
            deleted=deleted,
        )

    def _get_team_or_404(self, team_id: str) -> dict[str, Any]:
        team = self.team_store.get_team(team_id)
        if not team:
            raise NotFoundError("Team doesn't exist.")
        return team

    def _get_meeting_or_404(self, team: Mapping[str, Any], meeting_name: str) -> dict[str, Any]:
        meeting = _find_meeting(team, meeting_name)
        if meeting is None:
            raise NotFoundError("Meeting doesn't exist.")
        return meeting

    def _assert_user_exists(self, email: str) -> None:
        if not self.user_store.get_user(email):
            raise ValidationError("User doesn't exist.")

    def _save_team(self, team: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
        updated_team = self.team_store.update_team(
            str(team["_id"]),
            updates,
            expected_version=int(team.get("version", 0)),
        )
        if not updated_team:
            raise ConflictError("Team was modified by another request.")
        return updated_team

    def _claim_membership(
        self,
        email: str,
        team_id: str,
        *,
        pending: bool,
        previous: Mapping[str, Any] | None,
    ) -> None:
        if previous:
            claimed = self.team_store.update_user_in_team(email, team_id=team_id, pending=pending)
            if claimed:
                return
        try:
            self.team_store.create_user_in_team(email=email, team_id=team_id, pending=pending)
        except ValueError as exc:
            raise ConflictError("User already belongs to a team.") from exc

    def _undo_claim(self, email: str, team_id: str, *, previous: Mapping[str, Any] | None) -> None:
        logger.warning("Undoing membership index claim email=%s", email)
        if previous:
            self.team_store.update_user_in_team(
                email,
                team_id=str(previous.get("team_id", "")),
                pending=bool(previous.get("pending")),
            )
            return
        self.team_store.batch_delete_user_in_team([email], team_id=team_id)

    def _release_membership(self, email: str, team_id: str) -> None:
        self.team_store.batch_delete_user_in_team([email], team_id=team_id)

    def _get_affiliation(self, email: str) -> dict[str, Any] | None:
        """Return the index entry of ``email``, releasing it when its team is gone."""
        user_in_team = self.team_store.get_user_in_team(email)
        if not user_in_team:
            return None
        team_id = str(user_in_team.get("team_id", ""))
        if self.team_store.get_team(team_id):
            return user_in_team
        logger.warning("Releasing index entry of a deleted team team_id=%s email=%s", team_id, email)
        self.team_store.batch_delete_user_in_team([email], team_id=team_id)
        return None

    def _load_profiles(self, emails: list[str]) -> list[UserProfile]:
        return [to_user_profile(user) for user in self.user_store.batch_get_users(list(emails))]

    def _to_team_response(self, team: Mapping[str, Any]) -> TeamResponse:
        return TeamResponse(
            id=str(team.get("_id", "")),
            name=str(team.get("name", "")),
            owner_email=str(team.get("owner_email", "")),
            announcement=str(team.get("announcement", "") or ""),
            member_emails=list(team.get("member_emails", [])),
            pending_member_emails=list(team.get("pending_member_emails", [])),
            meetings=[Meeting(**meeting) for meeting in team.get("meetings", [])],
        )


def _find_meeting(team: Mapping[str, Any], meeting_name: str) -> dict[str, Any] | None:
    normalized_name = meeting_name.strip()
    for meeting in team.get("meetings", []):
        if meeting.get("name") == normalized_name:
            return dict(meeting)
    return None


def _normalize_email(email: str) -> str:
    return email.strip().lower()
