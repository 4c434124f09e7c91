"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.events import router as events_router
from api.v1.routes.tags import router as tags_router
from api.v1.routes.time_log_entries import router as time_log_entries_router

router = APIRouter()
# Registered before the entry routes so "/events" is not read as an entry id.
router.include_router(events_router)
router.include_router(time_log_entries_router)
router.include_router(tags_router)
