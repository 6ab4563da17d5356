from fastapi import APIRouter, Depends

from app.schemas.user import UserStatusResponse, UserStatusUpdateRequest
from app.services.auth_service import get_requester_email
from app.services.stores import StandupStores, get_stores
from app.services.user_service import UserService

router = APIRouter(prefix="/user-status", tags=["user-status"])


@router.get("/{email}", response_model=UserStatusResponse)
def get_user_status(
    email: str,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> UserStatusResponse:
    service = UserService(stores)
    return service.get_status(requester_email=requester_email, email=email)


@router.put("/{email}", response_model=UserStatusResponse)
def update_user_status(
    email: str,
    payload: UserStatusUpdateRequest,
    requester_email: str | None = Depends(get_requester_email),
    stores: StandupStores = Depends(get_stores),
) -> UserStatusResponse:
    service = UserService(stores)
    return service.update_status(
        requester_email=requester_email,
        email=email,
        payload=payload,
    )
