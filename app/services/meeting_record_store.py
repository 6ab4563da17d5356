from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any


class MeetingRecordStore(ABC):
    def close(self) -> None:
        return None

    @abstractmethod
    def get_meeting_record(self, team_id: str, date_time: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def create_meeting_record(
        self,
        *,
        team_id: str,
        date_time: str,
        meeting_name: str | None,
        presentations: list[dict[str, Any]],
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def list_meeting_records_for_team(self, team_id: str) -> list[dict[str, Any]]:
        raise NotImplementedError


class InMemoryMeetingRecordStore(MeetingRecordStore):
    def __init__(self) -> None:
        self._records_by_key: dict[tuple[str, str], dict[str, Any]] = {}

    def get_meeting_record(self, team_id: str, date_time: str) -> dict[str, Any] | None:
        record = self._records_by_key.get((team_id.strip(), date_time.strip()))
        if not record:
            return None
        return copy.deepcopy(record)

    def create_meeting_record(
        self,
        *,
        team_id: str,
        date_time: str,
        meeting_name: str | None,
        presentations: list[dict[str, Any]],
    ) -> dict[str, Any]:
        key = (team_id.strip(), date_time.strip())
        if key in self._records_by_key:
            raise ValueError("meeting_record_already_exists")
        record = _new_record_payload(
            team_id=key[0],
            date_time=key[1],
            meeting_name=meeting_name,
            presentations=presentations,
        )
        self._records_by_key[key] = record
        return copy.deepcopy(record)

    def list_meeting_records_for_team(self, team_id: str) -> list[dict[str, Any]]:
        normalized_team_id = team_id.strip()
        records = [
            copy.deepcopy(record)
            for (record_team_id, _), record in self._records_by_key.items()
            if record_team_id == normalized_team_id
        ]
        records.sort(key=lambda record: str(record.get("date_time", "")))
        return records


class MongoMeetingRecordStore(MeetingRecordStore):
    def __init__(
        self,
        *,
        uri: str,
        db_name: str,
        meeting_records_collection_name: str,
        connect_timeout_ms: int = 2000,
    ) -> None:
        from pymongo import MongoClient

        self._client = MongoClient(
            uri,
            serverSelectionTimeoutMS=connect_timeout_ms,
            connectTimeoutMS=connect_timeout_ms,
        )
        database = self._client[db_name]
        self._records = database[meeting_records_collection_name]

        self._records.create_index([("team_id", 1), ("date_time", 1)], unique=True)

    def close(self) -> None:
        self._client.close()

    def get_meeting_record(self, team_id: str, date_time: str) -> dict[str, Any] | None:
        record = self._records.find_one(
            {
                "team_id": team_id.strip(),
                "date_time": date_time.strip(),
            },
        )
        return _serialize_record(record)

    def create_meeting_record(
        self,
        *,
        team_id: str,
        date_time: str,
        meeting_name: str | None,
        presentations: list[dict[str, Any]],
    ) -> dict[str, Any]:
        from pymongo.errors import DuplicateKeyError

        payload = _new_record_payload(
            team_id=team_id.strip(),
            date_time=date_time.strip(),
            meeting_name=meeting_name,
            presentations=presentations,
        )
        try:
            self._records.insert_one(payload)
        except DuplicateKeyError as exc:
            raise ValueError("meeting_record_already_exists") from exc
        return self.get_meeting_record(team_id, date_time) or {}

    def list_meeting_records_for_team(self, team_id: str) -> list[dict[str, Any]]:
        records = self._records.find({"team_id": team_id.strip()}).sort("date_time", 1)
        return [_serialize_record(record) for record in records]


def _new_record_payload(
    *,
    team_id: str,
    date_time: str,
    meeting_name: str | None,
    presentations: list[dict[str, Any]],
) -> dict[str, Any]:
    return {
        "_id": f"{team_id}#{date_time}",
        "team_id": team_id,
        "date_time": date_time,
        "meeting_name": (meeting_name or "").strip() or None,
        "presentations": copy.deepcopy(presentations),
        "created_at": datetime.now(UTC),
    }


def _serialize_record(record: dict[str, Any] | None) -> dict[str, Any] | None:
    if not record:
        return None
    payload = dict(record)
    payload["_id"] = str(record.get("_id", ""))
    return payload
