from fastapi import APIRouter, Body, Depends

from app.schemas.meeting_record import MeetingRecordCreateRequest, MeetingRecordResponse
from app.services.auth_service import get_requester_email
from app.services.meeting_record_service import MeetingRecordService
from app.services.stores import StandupStores, get_stores

router = APIRouter(prefix="/meeting-records", tags=["meeting-records"])


@router.get("/{team_id}", response_model=list[MeetingRecordResponse])
def list_meeting_records(
    team_id: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> list[MeetingRecordResponse]:
    service = MeetingRecordService(stores)
    return service.list_records(requester_email=requester_email, team_id=team_id)


@router.post("/{team_id}", response_model=MeetingRecordResponse)
def create_meeting_record(
    team_id: str,
    payload: MeetingRecordCreateRequest | None = Body(default=None),
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> MeetingRecordResponse:
    service = MeetingRecordService(stores)
    return service.create_record(
        requester_email=requester_email,
        team_id=team_id,
        payload=payload or MeetingRecordCreateRequest(),
    )
