from pydantic import ConfigDict, EmailStr, Field

from app.schemas.common import CamelModel


class UserProfile(CamelModel):
    email: str
    display_name: str
    first_name: str = ""
    last_name: str = ""
    profile_picture: str = ""


class UserCreateRequest(CamelModel):
    email: EmailStr
    display_name: str = Field(min_length=1)
    first_name: str = ""
    last_name: str = ""


class UserUpdateRequest(CamelModel):
    display_name: str = Field(min_length=1)
    first_name: str | None = None
    last_name: str | None = None
    profile_picture: str | None = None


class Presentation(CamelModel):
    model_config = ConfigDict(extra="forbid")

    prev_work: str
    plan_today: str
    blocked_by: str = ""


class UserStatusResponse(CamelModel):
    email: str
    is_blocked: bool = False
    presentation: Presentation


class UserStatusUpdateRequest(CamelModel):
    is_blocked: bool
    presentation: Presentation
