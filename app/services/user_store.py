from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

USER_PROFILE_FIELDS = ("display_name", "first_name", "last_name", "profile_picture")


class UserStore(ABC):
    def close(self) -> None:
        return None

    @abstractmethod
    def get_user(self, email: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def batch_get_users(self, emails: list[str]) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def create_user(
        self,
        *,
        email: str,
        display_name: str,
        first_name: str = "",
        last_name: str = "",
        profile_picture: str = "",
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def update_user(self, email: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def get_user_status(self, email: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def batch_get_user_statuses(self, emails: list[str]) -> list[dict[str, Any]]:
        raise NotImplementedError

    @abstractmethod
    def create_user_status(
        self,
        *,
        email: str,
        is_blocked: bool,
        presentation: Mapping[str, str],
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def replace_user_status(
        self,
        *,
        email: str,
        is_blocked: bool,
        presentation: Mapping[str, str],
    ) -> dict[str, Any]:
        raise NotImplementedError


class InMemoryUserStore(UserStore):
    def __init__(self) -> None:
        self._users_by_email: dict[str, dict[str, Any]] = {}
        self._statuses_by_email: dict[str, dict[str, Any]] = {}

    def get_user(self, email: str) -> dict[str, Any] | None:
        user = self._users_by_email.get(_normalize_email(email))
        if not user:
            return None
        return dict(user)

    def batch_get_users(self, emails: list[str]) -> list[dict[str, Any]]:
        users: list[dict[str, Any]] = []
        for email in _unique_emails(emails):
            user = self.get_user(email)
            if user:
                users.append(user)
        return users

    def create_user(
        self,
        *,
        email: str,
        display_name: str,
        first_name: str = "",
        last_name: str = "",
        profile_picture: str = "",
    ) -> dict[str, Any]:
        normalized_email = _normalize_email(email)
        if normalized_email in self._users_by_email:
            raise ValueError("email_already_exists")

        now = datetime.now(UTC)
        user = {
            "_id": normalized_email,
            "email": normalized_email,
            "display_name": display_name.strip(),
            "first_name": first_name.strip(),
            "last_name": last_name.strip(),
            "profile_picture": profile_picture.strip(),
            "created_at": now,
            "updated_at": now,
        }
        self._users_by_email[normalized_email] = user
        return dict(user)

    def update_user(self, email: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        user = self._users_by_email.get(_normalize_email(email))
        if not user:
            return None
        user.update(_profile_updates(updates))
        user["updated_at"] = datetime.now(UTC)
        return dict(user)

    def get_user_status(self, email: str) -> dict[str, Any] | None:
        user_status = self._statuses_by_email.get(_normalize_email(email))
        if not user_status:
            return None
        return _copy_status(user_status)

    def batch_get_user_statuses(self, emails: list[str]) -> list[dict[str, Any]]:
        statuses: list[dict[str, Any]] = []
        for email in _unique_emails(emails):
            user_status = self.get_user_status(email)
            if user_status:
                statuses.append(user_status)
        return statuses

    def create_user_status(
        self,
        *,
        email: str,
        is_blocked: bool,
        presentation: Mapping[str, str],
    ) -> dict[str, Any]:
        normalized_email = _normalize_email(email)
        if normalized_email in self._statuses_by_email:
            raise ValueError("user_status_already_exists")
        return self.replace_user_status(
            email=normalized_email,
            is_blocked=is_blocked,
            presentation=presentation,
        )

    def replace_user_status(
        self,
        *,
        email: str,
        is_blocked: bool,
        presentation: Mapping[str, str],
    ) -> dict[str, Any]:
        normalized_email = _normalize_email(email)
        user_status = {
            "_id": normalized_email,
            "email": normalized_email,
            "is_blocked": bool(is_blocked),
            "presentation": dict(presentation),
            "updated_at": datetime.now(UTC),
        }
        self._statuses_by_email[normalized_email] = user_status
        return _copy_status(user_status)


class MongoUserStore(UserStore):
    def __init__(
        self,
        *,
        uri: str,
        db_name: str,
        users_collection_name: str,
        user_statuses_collection_name: str,
        connect_timeout_ms: int = 2000,
    ) -> None:
        from pymongo import MongoClient

        self._client = MongoClient(
            uri,
            serverSelectionTimeoutMS=connect_timeout_ms,
            connectTimeoutMS=connect_timeout_ms,
        )
        database = self._client[db_name]
        self._users = database[users_collection_name]
        self._statuses = database[user_statuses_collection_name]

    def close(self) -> None:
        self._client.close()

    def get_user(self, email: str) -> dict[str, Any] | None:
        record = self._users.find_one({"_id": _normalize_email(email)})
        return _serialize_record(record)

    def batch_get_users(self, emails: list[str]) -> list[dict[str, Any]]:
        normalized_emails = _unique_emails(emails)
        if not normalized_emails:
            return []
        records = self._users.find({"_id": {"$in": normalized_emails}})
        return _order_by_emails(records, normalized_emails)

    def create_user(
        self,
        *,
        email: str,
        display_name: str,
        first_name: str = "",
        last_name: str = "",
        profile_picture: str = "",
    ) -> dict[str, Any]:
        from pymongo.errors import DuplicateKeyError

        normalized_email = _normalize_email(email)
        now = datetime.now(UTC)
        payload = {
            "_id": normalized_email,
            "email": normalized_email,
            "display_name": display_name.strip(),
            "first_name": first_name.strip(),
            "last_name": last_name.strip(),
            "profile_picture": profile_picture.strip(),
            "created_at": now,
            "updated_at": now,
        }
        try:
            self._users.insert_one(payload)
        except DuplicateKeyError as exc:
            raise ValueError("email_already_exists") from exc
        created = self.get_user(normalized_email)
        if not created:
            raise RuntimeError("Unable to read created user.")
        return created

    def update_user(self, email: str, updates: Mapping[str, Any]) -> dict[str, Any] | None:
        normalized_email = _normalize_email(email)
        self._users.update_one(
            {"_id": normalized_email},
            {
                "$set": {
                    **_profile_updates(updates),
                    "updated_at": datetime.now(UTC),
                },
            },
        )
        return self.get_user(normalized_email)

    def get_user_status(self, email: str) -> dict[str, Any] | None:
        record = self._statuses.find_one({"_id": _normalize_email(email)})
        return _serialize_record(record)

    def batch_get_user_statuses(self, emails: list[str]) -> list[dict[str, Any]]:
        normalized_emails = _unique_emails(emails)
        if not normalized_emails:
            return []
        records = self._statuses.find({"_id": {"$in": normalized_emails}})
        return _order_by_emails(records, normalized_emails)

    def create_user_status(
        self,
        *,
        email: str,
        is_blocked: bool,
        presentation: Mapping[str, str],
    ) -> dict[str, Any]:
        from pymongo.errors import DuplicateKeyError

        normalized_email = _normalize_email(email)
        payload = {
            "_id": normalized_email,
            "email": normalized_email,
            "is_blocked": bool(is_blocked),
            "presentation": dict(presentation),
            "updated_at": datetime.now(UTC),
        }
        try:
            self._statuses.insert_one(payload)
        except DuplicateKeyError as exc:
            raise ValueError("user_status_already_exists") from exc
        return _serialize_record(payload) or {}

    def replace_user_status(
        self,
        *,
        email: str,
        is_blocked: bool,
        presentation: Mapping[str, str],
    ) -> dict[str, Any]:
        normalized_email = _normalize_email(email)
        self._statuses.update_one(
            {"_id": normalized_email},
            {
                "$set": {
                    "email": normalized_email,
                    "is_blocked": bool(is_blocked),
                    "presentation": dict(presentation),
                    "updated_at": datetime.now(UTC),
                },
            },
            upsert=True,
        )
        return self.get_user_status(normalized_email) or {}


def _profile_updates(updates: Mapping[str, Any]) -> dict[str, str]:
    return {
        field_name: str(value).strip()
        for field_name, value in updates.items()
        if field_name in USER_PROFILE_FIELDS and value is not None
    }


def _copy_status(user_status: Mapping[str, Any]) -> dict[str, Any]:
    payload = dict(user_status)
    payload["presentation"] = dict(user_status.get("presentation") or {})
    return payload


def _order_by_emails(records: Any, emails: list[str]) -> list[dict[str, Any]]:
    by_email = {
        str(record.get("_id", "")): _serialize_record(record)
        for record in records
    }
    return [by_email[email] for email in emails if by_email.get(email)]


def _serialize_record(record: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not record:
        return None
    serialized = dict(record)
    serialized["_id"] = str(record.get("_id", ""))
    return serialized


def _unique_emails(emails: list[str]) -> list[str]:
    return list(
        dict.fromkeys(
            _normalize_email(email)
            for email in emails
            if email and email.strip()
        ),
    )


def _normalize_email(email: str) -> str:
    return email.strip().lower()
