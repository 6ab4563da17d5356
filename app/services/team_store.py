from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

TEAM_MUTABLE_FIELDS = frozenset(
    {
        "name",
        "announcement",
        "member_emails",
        "pending_member_emails",
        "meetings",
    },
)


class TeamStore(ABC):
    def close(self) -> None:
        return None

    @abstractmethod
    def get_team(self, team_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def create_team(
        self,
        *,
        team_id: str,
        name: str,
        owner_email: str,
        announcement: str = "",
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def update_team(
        self,
        team_id: str,
        updates: Mapping[str, Any],
        *,
        expected_version: int,
    ) -> dict[str, Any] | None:
        """Apply ``updates`` only if the stored version still equals ``expected_version``.

        Returns the updated team, or ``None`` when the team is gone or was
        written by someone else in the meantime.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_team(self, team_id: str, *, expected_version: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_user_in_team(self, email: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def create_user_in_team(self, *, email: str, team_id: str, pending: bool) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def update_user_in_team(self, email: str, *, team_id: str, pending: bool) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def delete_user_in_team(self, email: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def batch_delete_user_in_team(self, emails: list[str], *, team_id: str) -> int:
        """Delete the entries of ``emails`` that still point at ``team_id``."""
        raise NotImplementedError

    @abstractmethod
    def list_user_in_team_for_team(self, team_id: str) -> list[dict[str, Any]]:
        raise NotImplementedError


class InMemoryTeamStore(TeamStore):
    def __init__(self) -> None:
        self._teams_by_id: dict[str, dict[str, Any]] = {}
        self._user_in_team_by_email: dict[str, dict[str, Any]] = {}

    def get_team(self, team_id: str) -> dict[str, Any] | None:
        team = self._teams_by_id.get(team_id.strip())
        if not team:
            return None
        return copy.deepcopy(team)

    def create_team(
        self,
        *,
        team_id: str,
        name: str,
        owner_email: str,
        announcement: str = "",
    ) -> dict[str, Any]:
        normalized_team_id = team_id.strip()
        if normalized_team_id in self._teams_by_id:
            raise ValueError("team_already_exists")
        team = _new_team_payload(
            team_id=normalized_team_id,
            name=name,
            owner_email=owner_email,
            announcement=announcement,
        )
        self._teams_by_id[normalized_team_id] = team
        return copy.deepcopy(team)

    def update_team(
        self,
        team_id: str,
        updates: Mapping[str, Any],
        *,
        expected_version: int,
    ) -> dict[str, Any] | None:
        team = self._teams_by_id.get(team_id.strip())
        if not team:
            return None
        if int(team.get("version", 0)) != expected_version:
            return None
        team.update(copy.deepcopy(_team_updates(updates)))
        team["version"] = expected_version + 1
        team["updated_at"] = datetime.now(UTC)
        return copy.deepcopy(team)

    def delete_team(self, team_id: str, *, expected_version: int) -> bool:
        normalized_team_id = team_id.strip()
        team = self._teams_by_id.get(normalized_team_id)
        if not team or int(team.get("version", 0)) != expected_version:
            return False
        del self._teams_by_id[normalized_team_id]
        return True

    def get_user_in_team(self, email: str) -> dict[str, Any] | None:
        user_in_team = self._user_in_team_by_email.get(_normalize_email(email))
        if not user_in_team:
            return None
        return dict(user_in_team)

    def create_user_in_team(self, *, email: str, team_id: str, pending: bool) -> dict[str, Any]:
        normalized_email = _normalize_email(email)
        if normalized_email in self._user_in_team_by_email:
            raise ValueError("user_already_in_team")
        return self._put_user_in_team(normalized_email, team_id=team_id, pending=pending)

    def update_user_in_team(self, email: str, *, team_id: str, pending: bool) -> dict[str, Any] | None:
        normalized_email = _normalize_email(email)
        if normalized_email not in self._user_in_team_by_email:
            return None
        return self._put_user_in_team(normalized_email, team_id=team_id, pending=pending)

    def delete_user_in_team(self, email: str) -> bool:
        return self._user_in_team_by_email.pop(_normalize_email(email), None) is not None

    def batch_delete_user_in_team(self, emails: list[str], *, team_id: str) -> int:
        normalized_team_id = team_id.strip()
        deleted_count = 0
        normalized_emails = dict.fromkeys(
            _normalize_email(email) for email in emails if email and email.strip()
        )
        for email in normalized_emails:
            user_in_team = self._user_in_team_by_email.get(email)
            if user_in_team and user_in_team.get("team_id") == normalized_team_id:
                del self._user_in_team_by_email[email]
                deleted_count += 1
        return deleted_count

    def list_user_in_team_for_team(self, team_id: str) -> list[dict[str, Any]]:
        normalized_team_id = team_id.strip()
        return [
            dict(user_in_team)
            for user_in_team in self._user_in_team_by_email.values()
            if user_in_team.get("team_id") == normalized_team_id
        ]

    def _put_user_in_team(self, email: str, *, team_id: str, pending: bool) -> dict[str, Any]:
        user_in_team = {
            "_id": email,
            "user_email": email,
            "team_id": team_id.strip(),
            "pending": bool(pending),
            "updated_at": datetime.now(UTC),
        }
        self._user_in_team_by_email[email] = user_in_team
        return dict(user_in_team)


class MongoTeamStore(TeamStore):
    def __init__(
        self,
        *,
        uri: str,
        db_name: str,
        teams_collection_name: str,
        user_in_team_collection_name: str,
        connect_timeout_ms: int = 2000,
    ) -> None:
        from pymongo import MongoClient

        self._client = MongoClient(
            uri,
            serverSelectionTimeoutMS=connect_timeout_ms,
            connectTimeoutMS=connect_timeout_ms,
        )
        database = self._client[db_name]
        self._teams = database[teams_collection_name]
        self._user_in_team = database[user_in_team_collection_name]

        self._teams.create_index("owner_email")
        self._user_in_team.create_index("team_id")

    def close(self) -> None:
        self._client.close()

    def get_team(self, team_id: str) -> dict[str, Any] | None:
        record = self._teams.find_one({"_id": team_id.strip()})
        return _serialize_record(record)

    def create_team(
        self,
        *,
        team_id: str,
        name: str,
        owner_email: str,
        announcement: str = "",
    ) -> dict[str, Any]:
        from pymongo.errors import DuplicateKeyError

        payload = _new_team_payload(
            team_id=team_id.strip(),
            name=name,
            owner_email=owner_email,
            announcement=announcement,
        )
        try:
            self._teams.insert_one(payload)
        except DuplicateKeyError as exc:
            raise ValueError("team_already_exists") from exc
        return self.get_team(team_id) or {}

    def update_team(
        self,
        team_id: str,
        updates: Mapping[str, Any],
        *,
        expected_version: int,
    ) -> dict[str, Any] | None:
        from pymongo import ReturnDocument

        record = self._teams.find_one_and_update(
            {"_id": team_id.strip(), "version": expected_version},
            {
                "$set": {
                    **_team_updates(updates),
                    "updated_at": datetime.now(UTC),
                },
                "$inc": {"version": 1},
            },
            return_document=ReturnDocument.AFTER,
        )
        return _serialize_record(record)

    def delete_team(self, team_id: str, *, expected_version: int) -> bool:
        result = self._teams.delete_one({"_id": team_id.strip(), "version": expected_version})
        return result.deleted_count > 0

    def get_user_in_team(self, email: str) -> dict[str, Any] | None:
        record = self._user_in_team.find_one({"_id": _normalize_email(email)})
        return _serialize_record(record)

    def create_user_in_team(self, *, email: str, team_id: str, pending: bool) -> dict[str, Any]:
        from pymongo.errors import DuplicateKeyError

        normalized_email = _normalize_email(email)
        payload = {
            "_id": normalized_email,
            "user_email": normalized_email,
            "team_id": team_id.strip(),
            "pending": bool(pending),
            "updated_at": datetime.now(UTC),
        }
        try:
            self._user_in_team.insert_one(payload)
        except DuplicateKeyError as exc:
            raise ValueError("user_already_in_team") from exc
        return _serialize_record(payload) or {}

    def update_user_in_team(self, email: str, *, team_id: str, pending: bool) -> dict[str, Any] | None:
        from pymongo import ReturnDocument

        record = self._user_in_team.find_one_and_update(
            {"_id": _normalize_email(email)},
            {
                "$set": {
                    "team_id": team_id.strip(),
                    "pending": bool(pending),
                    "updated_at": datetime.now(UTC),
                },
            },
            return_document=ReturnDocument.AFTER,
        )
        return _serialize_record(record)

    def delete_user_in_team(self, email: str) -> bool:
        result = self._user_in_team.delete_one({"_id": _normalize_email(email)})
        return result.deleted_count > 0

    def batch_delete_user_in_team(self, emails: list[str], *, team_id: str) -> int:
        normalized_emails = [_normalize_email(email) for email in emails if email and email.strip()]
        if not normalized_emails:
            return 0
        result = self._user_in_team.delete_many(
            {"_id": {"$in": normalized_emails}, "team_id": team_id.strip()},
        )
        return result.deleted_count

    def list_user_in_team_for_team(self, team_id: str) -> list[dict[str, Any]]:
        records = self._user_in_team.find({"team_id": team_id.strip()})
        return [_serialize_record(record) for record in records]


def _new_team_payload(
    *,
    team_id: str,
    name: str,
    owner_email: str,
    announcement: str,
) -> dict[str, Any]:
    now = datetime.now(UTC)
    normalized_owner_email = _normalize_email(owner_email)
    return {
        "_id": team_id,
        "name": name.strip(),
        "owner_email": normalized_owner_email,
        "announcement": announcement.strip(),
        "member_emails": [normalized_owner_email],
        "pending_member_emails": [],
        "meetings": [],
        "version": 1,
        "created_at": now,
        "updated_at": now,
    }


def _team_updates(updates: Mapping[str, Any]) -> dict[str, Any]:
    return {
        field_name: value
        for field_name, value in updates.items()
        if field_name in TEAM_MUTABLE_FIELDS
    }


def _serialize_record(record: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if not record:
        return None
    payload = dict(record)
    payload["_id"] = str(record.get("_id", ""))
    return payload


def _normalize_email(email: str) -> str:
    return email.strip().lower()
