from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from app.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from app.schemas.user import (
    Presentation,
    UserCreateRequest,
    UserProfile,
    UserStatusResponse,
    UserStatusUpdateRequest,
    UserUpdateRequest,
)
from app.services.membership_service import MembershipService
from app.services.stores import StandupStores

logger = logging.getLogger(__name__)

DEFAULT_PRESENTATION = {"prev_work": "", "plan_today": "", "blocked_by": ""}


class UserService:
    def __init__(self, stores: StandupStores) -> None:
        self.user_store = stores.users
        self.team_store = stores.teams
        self.membership = MembershipService(stores.teams)

    def register(self, *, requester_email: str | None, payload: UserCreateRequest) -> UserProfile:
        """Create the user profile and its default status.

        The two records are written separately. If the status write fails the
        profile stays in place and the error propagates; the owner's first
        status update recreates the missing status.
        """
        email = _normalize_email(str(payload.email))
        if requester_email and requester_email != email:
            raise AuthorizationError("Requester can only register their own email.")

        try:
            user = self.user_store.create_user(
                email=email,
                display_name=payload.display_name,
                first_name=payload.first_name,
                last_name=payload.last_name,
            )
        except ValueError as exc:
            raise ConflictError("User already exists.") from exc

        try:
            self.user_store.create_user_status(
                email=email,
                is_blocked=False,
                presentation=DEFAULT_PRESENTATION,
            )
        except ValueError:
            logger.warning("Default status already present email=%s", email)
        logger.info("User registered email=%s", email)
        return to_user_profile(user)

    def list_visible_users(self, *, requester_email: str | None) -> list[UserProfile]:
        if not requester_email:
            raise AuthorizationError("Authentication required.")

        visible_emails = [requester_email]
        user_in_team = self.team_store.get_user_in_team(requester_email)
        if user_in_team and not user_in_team.get("pending"):
            team = self.team_store.get_team(str(user_in_team.get("team_id", "")))
            if team and self.membership.is_team_member(requester_email, team):
                visible_emails.extend(team.get("member_emails", []))
        return [to_user_profile(user) for user in self.user_store.batch_get_users(visible_emails)]

    def get_user(self, *, requester_email: str | None, email: str) -> UserProfile:
        normalized_email = _normalize_email(email)
        user = self.user_store.get_user(normalized_email)
        if not user:
            raise NotFoundError("User doesn't exist.")
        self.membership.assert_can_view_user(requester_email, normalized_email)
        return to_user_profile(user)

    def update_user(
        self,
        *,
        requester_email: str | None,
        email: str,
        payload: UserUpdateRequest,
    ) -> UserProfile:
        normalized_email = _normalize_email(email)
        self.membership.assert_self(requester_email, normalized_email)
        if not self.user_store.get_user(normalized_email):
            raise NotFoundError("User doesn't exist.")

        updated_user = self.user_store.update_user(
            normalized_email,
            payload.model_dump(exclude_none=True),
        )
        if not updated_user:
            raise NotFoundError("User doesn't exist.")
        return to_user_profile(updated_user)

    def get_status(self, *, requester_email: str | None, email: str) -> UserStatusResponse:
        normalized_email = _normalize_email(email)
        user_status = self.user_store.get_user_status(normalized_email)
        if not user_status:
            raise NotFoundError("User status doesn't exist.")
        self.membership.assert_can_view_user(requester_email, normalized_email)
        return to_user_status_response(user_status)

    def update_status(
        self,
        *,
        requester_email: str | None,
        email: str,
        payload: UserStatusUpdateRequest,
    ) -> UserStatusResponse:
        normalized_email = _normalize_email(email)
        self.membership.assert_self(requester_email, normalized_email)
        if not self.user_store.get_user_status(normalized_email):
            if not self.user_store.get_user(normalized_email):
                raise NotFoundError("User doesn't exist.")
            logger.warning("Recreating missing status email=%s", normalized_email)

        user_status = self.user_store.replace_user_status(
            email=normalized_email,
            is_blocked=payload.is_blocked,
            presentation=payload.presentation.model_dump(),
        )
        return to_user_status_response(user_status)


def to_user_profile(user: Mapping[str, Any]) -> UserProfile:
    return UserProfile(
        email=str(user.get("email", "")),
        display_name=str(user.get("display_name", "")),
        first_name=str(user.get("first_name", "") or ""),
        last_name=str(user.get("last_name", "") or ""),
        profile_picture=str(user.get("profile_picture", "") or ""),
    )


def to_presentation(raw_presentation: Mapping[str, Any] | None) -> Presentation:
    values = {**DEFAULT_PRESENTATION, **(raw_presentation or {})}
    return Presentation(
        prev_work=str(values.get("prev_work") or ""),
        plan_today=str(values.get("plan_today") or ""),
        blocked_by=str(values.get("blocked_by") or ""),
    )


def to_user_status_response(user_status: Mapping[str, Any]) -> UserStatusResponse:
    return UserStatusResponse(
        email=str(user_status.get("email", "")),
        is_blocked=bool(user_status.get("is_blocked", False)),
        presentation=to_presentation(user_status.get("presentation")),
    )


def _normalize_email(email: str) -> str:
    return email.strip().lower()
