from __future__ import annotations

import logging

from app.core.errors import ParseError
from app.core.metrics import format_bmi
from app.models.patient import VITAL_KINDS, Patient, Reading, VitalKind, VitalSeries
from app.transforms.mapping import KIND_TITLES, TITLE_MAPPING
from app.utils.parsing import parse_float

logger = logging.getLogger("vitals-chart")

DOCUMENT_FIELDS = {
    "id",
    "name",
    "gender",
    "age",
    "height",
    "weight",
    "bloodType",
    "bmi",
    "vitals",
}


def _text(value: object) -> str | None:
    """문자열 정리(빈 값은 None)

    Args:
        value: 원본 값

    Returns:
        정리된 문자열 또는 None
    """
    if value is None:
        return None
    text = str(value).strip()
    if text == "":
        return None
    return text


def _to_reading(kind: VitalKind, value: object) -> Reading:
    """저장된 값을 종류에 맞는 측정값으로 변환

    Args:
        kind: 바이탈 종류
        value: 저장된 값

    Returns:
        측정값

    Raises:
        ParseError: 형식이 맞지 않을 때
    """
    if kind == "bloodPressure":
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise ParseError(kind, f"수축기/이완기 쌍이 아님: {value!r}")
        return parse_float(value[0], "systolic"), parse_float(value[1], "diastolic")
    if isinstance(value, (list, tuple, dict)):
        raise ParseError(kind, f"단일 값이 아님: {value!r}")
    return parse_float(value, kind)


def _to_series(kind: VitalKind, entry: dict, patient_id: str) -> VitalSeries:
    """저장된 vitals 항목을 시리즈로 변환

    측정값 형식이 아닌 항목(과거 "0"/"1" 키 등)과 title/data 외 필드는
    버리지 않고 보존해 저장 시 그대로 다시 쓴다.
    """
    data: dict[str, Reading] = {}
    retained: dict[str, object] = {}
    raw_data = entry.get("data")
    if isinstance(raw_data, list):
        raw_data = {str(index): value for index, value in enumerate(raw_data)}
    if isinstance(raw_data, dict):
        for key, value in raw_data.items():
            try:
                data[str(key)] = _to_reading(kind, value)
            except ParseError as exc:
                retained[str(key)] = value
                logger.warning(
                    "측정값 형식 아님, 원본 보존: %s",
                    exc.message,
                    extra={"event": "reading_retained", "patient_id": patient_id, "stage": "load"},
                )
    entry_extra = {key: value for key, value in entry.items() if key != "data"}
    return VitalSeries(kind=kind, data=data, retained=retained, entry_extra=entry_extra)


def _resolve_kind(entry: dict, index: int) -> VitalKind | None:
    """title로 바이탈 종류를 찾고, 없으면 위치로 결정"""
    title = _text(entry.get("title"))
    if title is not None and title in TITLE_MAPPING:
        return TITLE_MAPPING[title]
    if index < len(VITAL_KINDS):
        return VITAL_KINDS[index]
    return None


def to_patient(raw: dict) -> Patient:
    """문서 저장소의 환자 문서를 환자 모델로 변환

    저장된 bmi 값은 무시하고 키/체중에서 다시 계산한다.
    모델에 없는 필드와 종류를 알 수 없는 vitals 항목은 그대로 보존한다.

    Args:
        raw: 환자 문서

    Returns:
        환자 모델

    Raises:
        ParseError: 환자 식별자가 없을 때
    """
    patient_id = _text(raw.get("id"))
    if patient_id is None:
        raise ParseError("id", "값이 필요함")

    entries = raw.get("vitals") or []
    series_by_kind: dict[VitalKind, VitalSeries] = {}
    extra_vitals: list[object] = []
    for index, entry in enumerate(entries):
        kind = _resolve_kind(entry, index) if isinstance(entry, dict) else None
        if kind is None or kind in series_by_kind:
            extra_vitals.append(entry)
            continue
        series_by_kind[kind] = _to_series(kind, entry, patient_id)

    return Patient(
        id=patient_id,
        name=_text(raw.get("name")),
        gender=_text(raw.get("gender")),
        age=_text(raw.get("age")),
        height=_text(raw.get("height")),
        weight=_text(raw.get("weight")),
        blood_type=_text(raw.get("bloodType")),
        vitals=tuple(
            series_by_kind.get(kind) or VitalSeries(kind=kind) for kind in VITAL_KINDS
        ),
        extra={key: value for key, value in raw.items() if key not in DOCUMENT_FIELDS},
        extra_vitals=extra_vitals,
    )


def _series_document(series: VitalSeries) -> dict:
    data = dict(series.retained)
    for key, reading in series.data.items():
        data[key] = list(reading) if isinstance(reading, tuple) else reading
    return {"title": KIND_TITLES[series.kind], **series.entry_extra, "data": data}


def to_document(patient: Patient) -> dict:
    """환자 모델을 문서 저장소 형식으로 변환

    불러올 때 보존한 필드와 항목을 그대로 포함한다.

    Args:
        patient: 환자 모델

    Returns:
        환자 문서 딕셔너리
    """
    return {
        **patient.extra,
        "id": patient.id,
        "name": patient.name,
        "gender": patient.gender,
        "age": patient.age,
        "height": patient.height,
        "weight": patient.weight,
        "bloodType": patient.blood_type,
        "bmi": format_bmi(patient.bmi),
        "vitals": [_series_document(series) for series in patient.vitals]
        + list(patient.extra_vitals),
    }
