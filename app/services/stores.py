from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from app.core.config import Settings
from app.services.meeting_record_store import (
    InMemoryMeetingRecordStore,
    MeetingRecordStore,
    MongoMeetingRecordStore,
)
from app.services.team_store import InMemoryTeamStore, MongoTeamStore, TeamStore
from app.services.user_store import InMemoryUserStore, MongoUserStore, UserStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StandupStores:
    backend: str
    users: UserStore
    teams: TeamStore
    meeting_records: MeetingRecordStore

    def close(self) -> None:
        self.users.close()
        self.teams.close()
        self.meeting_records.close()


def create_standup_stores(settings: Settings) -> StandupStores:
    if settings.standup_data_store == "mongodb":
        logger.info(
            "Using mongodb stores db=%s",
            settings.mongodb_db_name,
        )
        return StandupStores(
            backend="mongodb",
            users=MongoUserStore(
                uri=settings.mongodb_uri,
                db_name=settings.mongodb_db_name,
                users_collection_name=settings.mongodb_users_collection,
                user_statuses_collection_name=settings.mongodb_user_statuses_collection,
                connect_timeout_ms=settings.mongodb_connect_timeout_ms,
            ),
            teams=MongoTeamStore(
                uri=settings.mongodb_uri,
                db_name=settings.mongodb_db_name,
                teams_collection_name=settings.mongodb_teams_collection,
                user_in_team_collection_name=settings.mongodb_user_in_team_collection,
                connect_timeout_ms=settings.mongodb_connect_timeout_ms,
            ),
            meeting_records=MongoMeetingRecordStore(
                uri=settings.mongodb_uri,
                db_name=settings.mongodb_db_name,
                meeting_records_collection_name=settings.mongodb_meeting_records_collection,
                connect_timeout_ms=settings.mongodb_connect_timeout_ms,
            ),
        )

    if settings.standup_data_store != "memory":
        logger.warning(
            "Unknown standup_data_store=%s, falling back to memory",
            settings.standup_data_store,
        )
    return StandupStores(
        backend="memory",
        users=InMemoryUserStore(),
        teams=InMemoryTeamStore(),
        meeting_records=InMemoryMeetingRecordStore(),
    )


def get_stores(request: Request) -> StandupStores:
    return request.app.state.stores
