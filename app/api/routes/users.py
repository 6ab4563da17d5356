from fastapi import APIRouter, Depends

from app.schemas.user import UserCreateRequest, UserProfile, UserUpdateRequest
from app.services.auth_service import get_requester_email
from app.services.stores import StandupStores, get_stores
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserProfile])
def list_visible_users(
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> list[UserProfile]:
    service = UserService(stores)
    return service.list_visible_users(requester_email=requester_email)


@router.post("", response_model=UserProfile)
def register_user(
    payload: UserCreateRequest,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> UserProfile:
    service = UserService(stores)
    return service.register(requester_email=requester_email, payload=payload)


@router.get("/{email}", response_model=UserProfile)
def get_user(
    email: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> UserProfile:
    service = UserService(stores)
    return service.get_user(requester_email=requester_email, email=email)


@router.put("/{email}", response_model=UserProfile)
def update_user(
    email: str,
    payload: UserUpdateRequest,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> UserProfile:
    service = UserService(stores)
    return service.update_user(
        requester_email=requester_email,
        email=email,
        payload=payload,
    )
