import asyncio
from datetime import date

import pytest

from app.core.editing import VitalEditor
from app.core.errors import ParseError
from app.core.series import get_window
from app.transforms.document import to_document, to_patient


def _raw_patient() -> dict:
    return {
        "id": "p1",
        "name": "홍길동",
        "gender": "남",
        "age": 72,
        "height": 170,
        "weight": "70",
        "bloodType": "A+",
        "bmi": "99.99",
        "vitals": [
            {"title": "산소포화도", "data": {"2024-01-01": 97, "2024-01-02": "96.5"}},
            {"title": "혈당", "data": {}},
            {
                "title": "혈압",
                "data": {"0": 120, "1": 80, "2024-01-01": [120, 80], "2024-01-02": [130]},
            },
        ],
    }


def test_to_patient_maps_fields_and_ignores_stored_bmi():
    patient = to_patient(_raw_patient())
    assert patient.id == "p1"
    assert patient.age == "72"
    assert patient.height == "170"
    assert patient.blood_type == "A+"
    assert patient.bmi == 24.22


def test_to_patient_maps_vitals_by_title():
    patient = to_patient(_raw_patient())
    oxygen, glucose, pressure = patient.vitals
    assert oxygen.data == {"2024-01-01": 97.0, "2024-01-02": 96.5}
    assert glucose.data == {}
    assert pressure.data == {"2024-01-01": (120.0, 80.0)}


def test_to_patient_falls_back_to_position_and_fills_missing():
    raw = {"id": "p2", "vitals": [{"title": "?", "data": {"2024-01-01": 95}}]}
    patient = to_patient(raw)
    assert [series.kind for series in patient.vitals] == ["oxygen", "glucose", "bloodPressure"]
    assert patient.vitals[0].data == {"2024-01-01": 95.0}
    assert patient.vitals[2].data == {}


def test_to_patient_requires_id():
    with pytest.raises(ParseError):
        to_patient({"name": "무명"})


def test_to_document_uses_stored_shape():
    document = to_document(to_patient(_raw_patient()))
    assert document["bloodType"] == "A+"
    assert document["bmi"] == "24.22"
    assert [entry["title"] for entry in document["vitals"]] == ["산소포화도", "혈당", "혈압"]
    assert document["vitals"][2]["data"] == {
        "0": 120,
        "1": 80,
        "2024-01-01": [120.0, 80.0],
        "2024-01-02": [130],
    }


def test_stored_document_survives_load_commit_save():
    raw = _raw_patient()
    raw["medications"] = [{"name": "metformin", "dose": "500mg"}]
    raw["vitals"][2]["unit"] = "mmHg"
    raw["vitals"].append({"title": "체온", "data": {"2024-01-01": 36.5}})
    saved = []

    async def save(patient):
        saved.append(to_document(patient))

    editor = VitalEditor(save=save, patient=to_patient(raw), today=lambda: date(2024, 3, 1))
    editor.set_editing(True)
    editor.select_vital(0)
    editor.select_date("2024-02-10")
    editor.set_value("95")
    assert asyncio.run(editor.commit()) == (True, None)

    document = saved[0]
    assert document["medications"] == [{"name": "metformin", "dose": "500mg"}]
    oxygen, _, pressure, temperature = document["vitals"]
    assert oxygen["data"]["2024-02-10"] == 95.0
    assert pressure["unit"] == "mmHg"
    assert pressure["data"]["0"] == 120
    assert pressure["data"]["1"] == 80
    assert pressure["data"]["2024-01-01"] == [120.0, 80.0]
    assert temperature == {"title": "체온", "data": {"2024-01-01": 36.5}}

    reloaded = to_patient(document)
    assert list(get_window(reloaded.vitals[2])) == [("2024-01-01", (120.0, 80.0))]
    assert reloaded.extra["medications"] == raw["medications"]


def test_commit_replaces_retained_entry_on_same_date():
    patient = to_patient(_raw_patient())
    saved = []

    async def save(updated):
        saved.append(to_document(updated))

    editor = VitalEditor(save=save, patient=patient, today=lambda: date(2024, 3, 1))
    editor.set_editing(True)
    editor.select_vital(2)
    editor.select_date("2024-01-02")
    editor.set_value("130/85")
    assert asyncio.run(editor.commit()) == (True, None)

    assert saved[0]["vitals"][2]["data"]["2024-01-02"] == [130.0, 85.0]
    assert "2024-01-02" not in editor.patient.vitals[2].retained
