from __future__ import annotations

from fastapi import APIRouter

from app.core.telemetry import TelemetryStore

router = APIRouter()


@router.get("/telemetry/{patient_id}")
def patient_telemetry(patient_id: str, event: str | None = None, limit: int = 50) -> dict:
    """환자의 최근 편집 로그와 커밋 상태를 반환

    Args:
        patient_id: 환자 식별자
        event: 이벤트 이름 필터(선택)
        limit: 최대 로그 수

    Returns:
        로그 목록과 커밋 상태
    """
    store = TelemetryStore()
    logs = [
        {
            "timestamp": row[0],
            "level": row[1],
            "event": row[2],
            "patient_id": row[3],
            "stage": row[4],
            "error_code": row[5],
            "message": row[6],
            "duration_ms": row[7],
        }
        for row in store.query_logs(patient_id=patient_id, event=event, limit=limit)
    ]
    status = None
    rows = store.query_status(patient_id)
    if rows:
        row = rows[0]
        status = {
            "patient_id": row[0],
            "last_commit_at": row[1],
            "last_success_at": row[2],
            "last_status": row[3],
            "last_error_code": row[4],
            "fail_count": row[5],
        }
    return {"patient_id": patient_id, "logs": logs, "status": status}
