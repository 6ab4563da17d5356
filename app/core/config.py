from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Standup Coordination API"
    app_env: str = "development"
    app_version: str = "0.1.0"
    api_prefix: str = ""
    log_level: str = "INFO"
    allowed_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    standup_data_store: str = "mongodb"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "standup"
    mongodb_users_collection: str = "users"
    mongodb_user_statuses_collection: str = "user_statuses"
    mongodb_teams_collection: str = "teams"
    mongodb_user_in_team_collection: str = "user_in_team"
    mongodb_meeting_records_collection: str = "meeting_records"
    mongodb_connect_timeout_ms: int = 2000
    auth_secret_key: str = "change-me-in-production"
    auth_token_ttl_minutes: int = 60 * 12

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("standup_data_store", mode="before")
    @classmethod
    def normalize_standup_data_store(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @field_validator("api_prefix", mode="before")
    @classmethod
    def normalize_api_prefix(cls, value: str) -> str:
        normalized_value = value.strip().rstrip("/")
        if normalized_value and not normalized_value.startswith("/"):
            return f"/{normalized_value}"
        return normalized_value

    @field_validator("mongodb_connect_timeout_ms", mode="before")
    @classmethod
    def normalize_mongodb_timeout(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 2000
        return parsed_value

    @field_validator("auth_token_ttl_minutes", mode="before")
    @classmethod
    def normalize_auth_token_ttl(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 60 * 12
        return parsed_value


@lru_cache
def get_settings() -> Settings:
    return Settings()
