from __future__ import annotations

from app.core.chart import project
from app.core.config import ChartConfig, load_chart_config
from app.core.editing import VitalEditor
from app.core.metrics import format_bmi
from app.core.series import get_window

NO_PATIENT_MESSAGE = "환자를 선택해주세요."
EMPTY_VALUE = "정보 없음"
NEW_PATIENT_NAME = "새 환자"

INFO_FIELDS = [
    ("gender", "성별"),
    ("age", "나이"),
    ("height", "키"),
    ("weight", "체중"),
    ("bmi", "BMI"),
    ("blood_type", "혈액형"),
]


def build_view(editor: VitalEditor, config: ChartConfig | None = None) -> dict:
    """환자 화면 데이터를 구성

    환자가 없으면 중립 상태만 돌려주고 편집 기능은 모두 숨긴다.
    BMI는 호출할 때마다 키/체중에서 다시 계산된다.

    Args:
        editor: 편집 상태 관리자
        config: 차트 설정(없으면 설정 파일에서 로드)

    Returns:
        화면 데이터 딕셔너리
    """
    patient = editor.patient
    if patient is None:
        return {"status": "no_patient", "message": NO_PATIENT_MESSAGE}

    config = config or load_chart_config()
    session = editor.session
    values = patient.model_dump()
    values["bmi"] = format_bmi(patient.bmi)

    info = [
        {
            "field": field,
            "label": label,
            "value": values.get(field) or ("" if editor.editing else EMPTY_VALUE),
            "editable": editor.editing and field != "bmi",
        }
        for field, label in INFO_FIELDS
    ]

    charts = []
    for index, series in enumerate(patient.vitals):
        chart = project(series.kind, get_window(series, config.window_size), config)
        charts.append(
            {
                "index": index,
                "selectable": editor.editing and not editor.in_flight,
                "selected": session is not None and session.vital_index == index,
                **chart.model_dump(),
            }
        )

    view = {
        "status": "ok",
        "patient_id": patient.id,
        "name": patient.name or ("" if editor.editing else NEW_PATIENT_NAME),
        "editing": editor.editing,
        "info": info,
        "charts": charts,
        "edit_session": None,
    }
    if editor.editing and session is not None:
        view["edit_session"] = {
            "state": editor.state,
            "vital_index": session.vital_index,
            "date": session.selected_date.isoformat() if session.selected_date else None,
            "value": session.value,
        }
    return view
