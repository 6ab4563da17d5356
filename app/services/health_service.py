from datetime import UTC, datetime

from app.core.config import Settings
from app.schemas.health import HealthResponse
from app.services.stores import StandupStores


class HealthService:
    def __init__(self, settings: Settings, stores: StandupStores) -> None:
        self.settings = settings
        self.stores = stores

    def get_status(self) -> HealthResponse:
        return HealthResponse(
            status="ok",
            service=self.settings.app_name,
            store=self.stores.backend,
            timestamp=datetime.now(UTC),
        )
