from fastapi import FastAPI

from app.api.routes import router as api_router
from app.clients.document_store import save_patient
from app.core.config import get_settings
from app.core.editing import VitalEditor
from app.core.logging import configure_logging


def create_app() -> FastAPI:
    """애플리케이션을 생성하고 FastAPI를 설정"""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Vitals Chart", version=settings.version)
    app.include_router(api_router)
    app.state.editor = VitalEditor(save=save_patient)

    return app


app = create_app()
