from __future__ import annotations

import httpx

from app.core.config import get_settings
from app.core.errors import PersistenceError
from app.models.patient import Patient
from app.transforms.document import to_document, to_patient


def _headers() -> dict:
    settings = get_settings()
    headers = {}
    if settings.document_store_api_key:
        headers["Authorization"] = f"Bearer {settings.document_store_api_key}"
    return headers


def _patient_url(patient_id: str) -> str:
    base_url = get_settings().document_store_url.rstrip("/")
    return f"{base_url}/patients/{patient_id}"


async def fetch_patient(patient_id: str) -> Patient:
    """문서 저장소에서 환자 문서를 조회

    Args:
        patient_id: 환자 식별자

    Returns:
        환자 모델

    Raises:
        PersistenceError: 조회 실패 시
    """
    settings = get_settings()
    try:
        async with httpx.AsyncClient(timeout=settings.document_store_timeout) as client:
            response = await client.get(_patient_url(patient_id), headers=_headers())
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
        raise PersistenceError(f"환자 조회 실패: {patient_id}: {exc}") from exc
    if not isinstance(data, dict):
        raise PersistenceError(f"환자 문서 형식 오류: {patient_id}")
    return to_patient(data)


async def save_patient(patient: Patient) -> None:
    """환자 문서 전체를 문서 저장소에 저장(PUT, 멱등)

    Args:
        patient: 저장할 환자 모델

    Raises:
        PersistenceError: 저장 실패 시
    """
    settings = get_settings()
    try:
        async with httpx.AsyncClient(timeout=settings.document_store_timeout) as client:
            response = await client.put(
                _patient_url(patient.id), json=to_document(patient), headers=_headers()
            )
            response.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise PersistenceError(f"환자 저장 실패: {patient.id}: {exc}") from exc
