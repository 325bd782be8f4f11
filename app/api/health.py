from fastapi import APIRouter

from app.core.config import get_settings

router = APIRouter()


@router.get("/health")
def health_check() -> dict:
    """서비스 헬스 상태와 버전을 반환"""
    settings = get_settings()
    return {"status": "정상", "version": settings.version, "environment": settings.environment}
