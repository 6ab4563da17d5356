from fastapi import APIRouter

from app.api.routes.health import router as health_router
from app.api.routes.meeting_records import router as meeting_records_router
from app.api.routes.teams import router as teams_router
from app.api.routes.user_status import router as user_status_router
from app.api.routes.users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(teams_router)
api_router.include_router(users_router)
api_router.include_router(user_status_router)
api_router.include_router(meeting_records_router)
