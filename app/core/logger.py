from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.core.telemetry import TelemetryStore


def utc_now_iso() -> str:
    """현재 UTC 시각을 ISO8601(Z) 문자열로 반환"""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def log_event(
    event: str,
    level: int,
    patient_id: str | None,
    stage: str,
    message: str,
    error_code: str | None = None,
    duration_ms: int | None = None,
) -> None:
    """이벤트를 표준 로깅과 DuckDB에 기록

    Args:
        event: 이벤트 이름
        level: 로깅 레벨(logging.INFO 등)
        patient_id: 환자 식별자(선택 전이면 None)
        stage: 편집 단계
        message: 로그 메시지
        error_code: 에러 코드(선택)
        duration_ms: 처리 시간(밀리초, 선택)
    """
    logger = logging.getLogger("vitals-chart")
    extra = {
        "event": event,
        "patient_id": patient_id or "-",
        "stage": stage,
    }
    logger.log(level, message, extra=extra)

    TelemetryStore().insert_log(
        {
            "timestamp": utc_now_iso(),
            "level": logging.getLevelName(level),
            "event": event,
            "patient_id": patient_id,
            "stage": stage,
            "error_code": error_code,
            "message": message,
            "duration_ms": duration_ms,
        }
    )
