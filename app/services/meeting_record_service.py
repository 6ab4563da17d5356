from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from app.core.exceptions import ConflictError, NotFoundError
from app.schemas.meeting_record import (
    MeetingRecordCreateRequest,
    MeetingRecordResponse,
    PresentationSnapshot,
)
from app.services.membership_service import MembershipService
from app.services.stores import StandupStores
from app.services.user_service import to_presentation

logger = logging.getLogger(__name__)


class MeetingRecordService:
    def __init__(self, stores: StandupStores) -> None:
        self.record_store = stores.meeting_records
        self.team_store = stores.teams
        self.user_store = stores.users
        self.membership = MembershipService(stores.teams)

    def list_records(self, *, requester_email: str | None, team_id: str) -> list[MeetingRecordResponse]:
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_member(requester_email, team)
        return [
            _to_record_response(record)
            for record in self.record_store.list_meeting_records_for_team(team["_id"])
        ]

    def create_record(
        self,
        *,
        requester_email: str | None,
        team_id: str,
        payload: MeetingRecordCreateRequest,
    ) -> MeetingRecordResponse:
        """Snapshot the current status of every team member under (team, date time)."""
        team = self._get_team_or_404(team_id)
        self.membership.assert_team_owner(requester_email, team)

        meeting_name = (payload.meeting_name or "").strip() or None
        if meeting_name and not any(
            meeting.get("name") == meeting_name for meeting in team.get("meetings", [])
        ):
            raise NotFoundError("Meeting doesn't exist.")

        date_time = (payload.date_time or "").strip() or datetime.now(UTC).isoformat()
        if self.record_store.get_meeting_record(team["_id"], date_time):
            raise ConflictError("Meeting record already exists.")

        member_emails = list(team.get("member_emails", []))
        statuses_by_email = {
            user_status["email"]: user_status
            for user_status in self.user_store.batch_get_user_statuses(member_emails)
        }
        users_by_email = {
            user["email"]: user
            for user in self.user_store.batch_get_users(member_emails)
        }
        presentations = [
            _snapshot_member(
                email,
                user=users_by_email.get(email),
                user_status=statuses_by_email.get(email),
            )
            for email in member_emails
        ]

        try:
            record = self.record_store.create_meeting_record(
                team_id=team["_id"],
                date_time=date_time,
                meeting_name=meeting_name,
                presentations=presentations,
            )
        except ValueError as exc:
            raise ConflictError("Meeting record already exists.") from exc

        logger.info(
            "Meeting record created team_id=%s date_time=%s members=%s",
            team["_id"],
            date_time,
            len(presentations),
        )
        return _to_record_response(record)

    def _get_team_or_404(self, team_id: str) -> dict[str, Any]:
        team = self.team_store.get_team(team_id)
        if not team:
            raise NotFoundError("Team doesn't exist.")
        return team


def _snapshot_member(
    email: str,
    *,
    user: Mapping[str, Any] | None,
    user_status: Mapping[str, Any] | None,
) -> dict[str, Any]:
    return {
        "email": email,
        "display_name": str((user or {}).get("display_name", "") or ""),
        "is_blocked": bool((user_status or {}).get("is_blocked", False)),
        "presentation": to_presentation((user_status or {}).get("presentation")).model_dump(),
    }


def _to_record_response(record: Mapping[str, Any]) -> MeetingRecordResponse:
    return MeetingRecordResponse(
        team_id=str(record.get("team_id", "")),
        date_time=str(record.get("date_time", "")),
        meeting_name=record.get("meeting_name"),
        presentations=[
            PresentationSnapshot(
                email=str(snapshot.get("email", "")),
                display_name=str(snapshot.get("display_name", "")),
                is_blocked=bool(snapshot.get("is_blocked", False)),
                presentation=to_presentation(snapshot.get("presentation")),
            )
            for snapshot in record.get("presentations", [])
        ],
    )
