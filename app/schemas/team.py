from pydantic import EmailStr, Field

from app.schemas.common import CamelModel
from app.schemas.user import UserProfile


class Meeting(CamelModel):
    name: str = Field(min_length=1)
    weekday_time: list[str]
    description: str = ""


class MeetingUpdateRequest(CamelModel):
    weekday_time: list[str] | None = None
    description: str | None = None


class TeamCreateRequest(CamelModel):
    name: str = Field(min_length=1)
    team_id: str | None = Field(default=None, alias="id", min_length=1)
    owner_email: str | None = None
    announcement: str = ""


class TeamUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    owner_email: str | None = None
    announcement: str | None = None


class TeamMemberRequest(CamelModel):
    email: EmailStr


class AnnouncementUpdateRequest(CamelModel):
    announcement: str


class AnnouncementResponse(CamelModel):
    announcement: str


class TeamResponse(CamelModel):
    id: str
    name: str
    owner_email: str
    announcement: str = ""
    member_emails: list[str] = Field(default_factory=list)
    pending_member_emails: list[str] = Field(default_factory=list)
    meetings: list[Meeting] = Field(default_factory=list)


class TeamDetailResponse(TeamResponse):
    members: list[UserProfile] = Field(default_factory=list)


class MembershipIndexReconcileResponse(CamelModel):
    team_id: str
    created: int = 0
    updated: int = 0
    deleted: int = 0
