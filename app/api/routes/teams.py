from fastapi import APIRouter, Depends

from app.schemas.team import (
    AnnouncementResponse,
    AnnouncementUpdateRequest,
    Meeting,
    MeetingUpdateRequest,
    MembershipIndexReconcileResponse,
    TeamCreateRequest,
    TeamDetailResponse,
    TeamMemberRequest,
    TeamResponse,
    TeamUpdateRequest,
)
from app.schemas.user import UserProfile
from app.services.auth_service import get_requester_email
from app.services.stores import StandupStores, get_stores
from app.services.team_service import TeamService

router = APIRouter(prefix="/teams", tags=["teams"])


@router.get("", response_model=list[TeamResponse])
def list_teams(
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> list[TeamResponse]:
    service = TeamService(stores)
    return service.list_teams(requester_email=requester_email)


@router.post("", response_model=TeamResponse)
def create_team(
    payload: TeamCreateRequest,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.create_team(requester_email=requester_email, payload=payload)


@router.get("/{team_id}", response_model=TeamDetailResponse)
def get_team(
    team_id: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamDetailResponse:
    service = TeamService(stores)
    return service.get_team(requester_email=requester_email, team_id=team_id)


@router.put("/{team_id}", response_model=TeamResponse)
def update_team(
    team_id: str,
    payload: TeamUpdateRequest,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.update_team(
        requester_email=requester_email,
        team_id=team_id,
        payload=payload,
    )


@router.delete("/{team_id}", response_model=TeamResponse)
def delete_team(
    team_id: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.delete_team(requester_email=requester_email, team_id=team_id)


@router.get("/{team_id}/members", response_model=list[UserProfile])
def list_team_members(
    team_id: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> list[UserProfile]:
    service = TeamService(stores)
    return service.list_members(requester_email=requester_email, team_id=team_id)


@router.post("/{team_id}/members", response_model=TeamResponse)
def add_team_member(
    team_id: str,
    payload: TeamMemberRequest,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.add_member(
        requester_email=requester_email,
        team_id=team_id,
        email=str(payload.email),
    )


@router.delete("/{team_id}/members/{email}", response_model=TeamResponse)
def remove_team_member(
    team_id: str,
    email: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.remove_member(
        requester_email=requester_email,
        team_id=team_id,
        email=email,
    )


@router.get("/{team_id}/pending_members", response_model=list[str])
def list_pending_team_members(
    team_id: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> list[str]:
    service = TeamService(stores)
    return service.list_pending_members(requester_email=requester_email, team_id=team_id)


@router.post("/{team_id}/pending_members", response_model=TeamResponse)
def apply_to_team(
    team_id: str,
    payload: TeamMemberRequest,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.apply_to_team(
        requester_email=requester_email,
        team_id=team_id,
        email=str(payload.email),
    )


@router.delete("/{team_id}/pending_members/{email}", response_model=TeamResponse)
def remove_pending_team_member(
    team_id: str,
    email: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.remove_pending_member(
        requester_email=requester_email,
        team_id=team_id,
        email=email,
    )


@router.get("/{team_id}/announcement", response_model=AnnouncementResponse)
def get_team_announcement(
    team_id: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> AnnouncementResponse:
    service = TeamService(stores)
    return service.get_announcement(requester_email=requester_email, team_id=team_id)


@router.put("/{team_id}/announcement", response_model=TeamResponse)
def update_team_announcement(
    team_id: str,
    payload: AnnouncementUpdateRequest,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.update_announcement(
        requester_email=requester_email,
        team_id=team_id,
        announcement=payload.announcement,
    )


@router.get("/{team_id}/meetings", response_model=list[Meeting])
def list_team_meetings(
    team_id: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> list[Meeting]:
    service = TeamService(stores)
    return service.list_meetings(requester_email=requester_email, team_id=team_id)


@router.post("/{team_id}/meetings", response_model=TeamResponse)
def add_team_meeting(
    team_id: str,
    payload: Meeting,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.add_meeting(
        requester_email=requester_email,
        team_id=team_id,
        meeting=payload,
    )


@router.get("/{team_id}/meetings/{meeting_name}", response_model=Meeting)
def get_team_meeting(
    team_id: str,
    meeting_name: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> Meeting:
    service = TeamService(stores)
    return service.get_meeting(
        requester_email=requester_email,
        team_id=team_id,
        meeting_name=meeting_name,
    )


@router.put("/{team_id}/meetings/{meeting_name}", response_model=TeamResponse)
def update_team_meeting(
    team_id: str,
    meeting_name: str,
    payload: MeetingUpdateRequest,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.update_meeting(
        requester_email=requester_email,
        team_id=team_id,
        meeting_name=meeting_name,
        payload=payload,
    )


@router.delete("/{team_id}/meetings/{meeting_name}", response_model=TeamResponse)
def remove_team_meeting(
    team_id: str,
    meeting_name: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> TeamResponse:
    service = TeamService(stores)
    return service.remove_meeting(
        requester_email=requester_email,
        team_id=team_id,
        meeting_name=meeting_name,
    )


@router.post(
    "/{team_id}/membership-index/reconcile",
    response_model=MembershipIndexReconcileResponse,
)
def reconcile_team_membership_index(
    team_id: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> MembershipIndexReconcileResponse:
    service = TeamService(stores)
    return service.reconcile_membership_index(
        requester_email=requester_email,
        team_id=team_id,
    )
