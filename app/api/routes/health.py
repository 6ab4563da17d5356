from fastapi import APIRouter, Depends, Request

from app.schemas.health import HealthResponse
from app.services.health_service import HealthService
from app.services.stores import StandupStores, get_stores

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def healthcheck(
    request: Request,
    stores: StandupStores = Depends(get_stores),
) -> HealthResponse:
    service = HealthService(request.app.state.settings, stores)
    return service.get_status()
