from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from app.clients.document_store import fetch_patient
from app.core.editing import VitalEditor
from app.core.errors import VitalsError
from app.core.logger import log_event
from app.core.view import build_view

router = APIRouter()


class EditingRequest(BaseModel):
    editing: bool


class DateRequest(BaseModel):
    date: str


class ValueRequest(BaseModel):
    value: str


def get_editor(request: Request) -> VitalEditor:
    """애플리케이션에 바인딩된 편집 상태 관리자를 반환"""
    return request.app.state.editor


def _result(editor: VitalEditor, ok: bool, error_code: str | None = None) -> dict:
    """처리 결과와 갱신된 화면 데이터를 묶어 반환"""
    return {"ok": ok, "error_code": error_code, "view": build_view(editor)}


@router.get("/view")
def get_view(editor: VitalEditor = Depends(get_editor)) -> dict:
    """현재 환자 화면 데이터를 반환"""
    return build_view(editor)


@router.post("/view/patient/{patient_id}")
async def select_patient(
    patient_id: str, editor: VitalEditor = Depends(get_editor)
) -> dict:
    """문서 저장소에서 환자를 불러와 선택

    Args:
        patient_id: 환자 식별자
        editor: 편집 상태 관리자

    Returns:
        처리 결과

    Raises:
        HTTPException: 환자 조회 실패 시
    """
    try:
        patient = await fetch_patient(patient_id)
    except VitalsError as exc:
        log_event(
            "patient_load_failed",
            logging.ERROR,
            patient_id,
            "select",
            exc.message,
            error_code=exc.code,
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error_code": exc.code, "message": exc.message},
        ) from exc
    editor.select_patient(patient)
    return _result(editor, True)


@router.delete("/view/patient")
def clear_patient(editor: VitalEditor = Depends(get_editor)) -> dict:
    """환자 선택 해제"""
    editor.select_patient(None)
    return _result(editor, True)


@router.post("/view/editing")
def set_editing(
    payload: EditingRequest, editor: VitalEditor = Depends(get_editor)
) -> dict:
    """편집 모드 전환"""
    ok = editor.set_editing(payload.editing) == payload.editing
    return _result(editor, ok, None if ok else "EDIT_NOT_READY")


@router.patch("/view/fields")
def edit_fields(
    payload: dict[str, str | int | float | None], editor: VitalEditor = Depends(get_editor)
) -> dict:
    """인구학 필드 수정(편집 모드에서만)

    Args:
        payload: 필드 이름 -> 새 값
        editor: 편집 상태 관리자

    Returns:
        처리 결과
    """
    rejected = [field for field, value in payload.items() if not editor.edit_field(field, value)]
    if rejected:
        return {**_result(editor, False, "EDIT_FIELD_REJECTED"), "rejected": rejected}
    return _result(editor, True)


@router.post("/view/save")
async def save_patient(editor: VitalEditor = Depends(get_editor)) -> dict:
    """환자 정보를 저장하고 편집 모드 종료"""
    ok, code = await editor.save()
    return _result(editor, ok, code)


@router.post("/view/vitals/{index}")
def select_vital(index: int, editor: VitalEditor = Depends(get_editor)) -> dict:
    """편집할 바이탈 선택"""
    ok = editor.select_vital(index)
    return _result(editor, ok, None if ok else "EDIT_NOT_READY")


@router.post("/view/date")
def select_date(payload: DateRequest, editor: VitalEditor = Depends(get_editor)) -> dict:
    """입력 날짜 선택"""
    ok = editor.select_date(payload.date)
    return _result(editor, ok, None if ok else "EDIT_DATE_INVALID")


@router.post("/view/value")
def set_value(payload: ValueRequest, editor: VitalEditor = Depends(get_editor)) -> dict:
    """입력값 설정"""
    ok = editor.set_value(payload.value)
    return _result(editor, ok, None if ok else "EDIT_NOT_READY")


@router.post("/view/commit")
async def commit(editor: VitalEditor = Depends(get_editor)) -> dict:
    """선택한 바이탈/날짜에 입력값 저장"""
    ok, code = await editor.commit()
    return _result(editor, ok, code)
