from fastapi import APIRouter

from app.api.health import router as health_router
from app.api.telemetry import router as telemetry_router
from app.api.view import router as view_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(view_router, prefix="/v1", tags=["view"])
router.include_router(telemetry_router, prefix="/v1", tags=["telemetry"])
