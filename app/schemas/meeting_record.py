from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.user import Presentation


class MeetingRecordCreateRequest(CamelModel):
    date_time: str | None = Field(default=None, min_length=1)
    meeting_name: str | None = None


class PresentationSnapshot(CamelModel):
    email: str
    display_name: str = ""
    is_blocked: bool = False
    presentation: Presentation


class MeetingRecordResponse(CamelModel):
    team_id: str
    date_time: str
    meeting_name: str | None = None
    presentations: list[PresentationSnapshot] = Field(default_factory=list)
