import pytest
from fastapi.testclient import TestClient

from app.core.errors import PersistenceError
from app.main import create_app
from app.models.patient import Patient, VitalSeries


def _patient() -> Patient:
    return Patient(
        id="p1",
        name="홍길동",
        height="170",
        weight="70",
        vitals=(
            VitalSeries(
                kind="oxygen",
                data={f"2024-01-0{day}": 90.0 + day for day in range(1, 8)},
            ),
            VitalSeries(kind="glucose"),
            VitalSeries(kind="bloodPressure", data={"0": (1.0, 2.0)}),
        ),
    )


def _make_client(monkeypatch: pytest.MonkeyPatch, saved: list, fail_save: bool = False) -> TestClient:
    async def fake_fetch(patient_id: str) -> Patient:
        if patient_id != "p1":
            raise PersistenceError(f"환자 조회 실패: {patient_id}")
        return _patient()

    async def fake_save(patient: Patient) -> None:
        if fail_save:
            raise PersistenceError("저장소 연결 실패")
        saved.append(patient)

    monkeypatch.setattr("app.api.view.fetch_patient", fake_fetch)
    monkeypatch.setattr("app.main.save_patient", fake_save)
    return TestClient(create_app())


def test_health(monkeypatch):
    client = _make_client(monkeypatch, [])
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "정상"


def test_view_without_patient_is_neutral(monkeypatch):
    client = _make_client(monkeypatch, [])
    body = client.get("/v1/view").json()
    assert body == {"status": "no_patient", "message": "환자를 선택해주세요."}

    response = client.post("/v1/view/editing", json={"editing": True})
    assert response.json()["ok"] is False


def test_select_patient_renders_window_and_bmi(monkeypatch):
    client = _make_client(monkeypatch, [])
    response = client.post("/v1/view/patient/p1")
    assert response.status_code == 200
    view = response.json()["view"]

    info = {item["field"]: item["value"] for item in view["info"]}
    assert info["bmi"] == "24.22"
    assert info["gender"] == "정보 없음"

    oxygen = view["charts"][0]
    assert oxygen["labels"] == [
        "2024-01-03",
        "2024-01-04",
        "2024-01-05",
        "2024-01-06",
        "2024-01-07",
    ]
    assert oxygen["tick_step"] == 20
    assert view["charts"][2]["labels"] == []
    assert len(view["charts"][2]["tracks"]) == 2


def test_select_unknown_patient_returns_502(monkeypatch):
    client = _make_client(monkeypatch, [])
    response = client.post("/v1/view/patient/unknown")
    assert response.status_code == 502
    assert client.get("/v1/view").json()["status"] == "no_patient"


def test_commit_flow(monkeypatch):
    saved = []
    client = _make_client(monkeypatch, saved)
    client.post("/v1/view/patient/p1")

    assert client.post("/v1/view/vitals/2").json()["ok"] is False
    assert client.post("/v1/view/editing", json={"editing": True}).json()["ok"]
    assert client.post("/v1/view/vitals/2").json()["ok"]
    assert client.post("/v1/view/date", json={"date": "2024-02-10"}).json()["ok"]
    assert client.post("/v1/view/value", json={"value": "120"}).json()["ok"]

    refused = client.post("/v1/view/commit").json()
    assert refused["ok"] is False
    assert refused["error_code"] == "EDIT_VALUE_INVALID"
    assert refused["view"]["edit_session"]["state"] == "date_selected"
    assert saved == []

    client.post("/v1/view/value", json={"value": "120/80"})
    body = client.post("/v1/view/commit").json()
    assert body["ok"] is True
    assert body["view"]["editing"] is True
    assert body["view"]["edit_session"] is None
    pressure = body["view"]["charts"][2]
    assert pressure["labels"] == ["2024-02-10"]
    assert pressure["tracks"][0]["values"] == [120.0]
    assert pressure["tracks"][1]["values"] == [80.0]
    assert len(saved) == 1


def test_commit_persistence_failure(monkeypatch):
    client = _make_client(monkeypatch, [], fail_save=True)
    client.post("/v1/view/patient/p1")
    client.post("/v1/view/editing", json={"editing": True})
    client.post("/v1/view/vitals/1")
    client.post("/v1/view/date", json={"date": "2024-02-10"})
    client.post("/v1/view/value", json={"value": "110"})

    body = client.post("/v1/view/commit").json()

    assert body["ok"] is False
    assert body["error_code"] == "STORE_SAVE_FAILED"
    assert body["view"]["charts"][1]["labels"] == []
    assert body["view"]["edit_session"]["value"] == "110"


def test_edit_fields_recomputes_bmi_and_save(monkeypatch):
    saved = []
    client = _make_client(monkeypatch, saved)
    client.post("/v1/view/patient/p1")
    client.post("/v1/view/editing", json={"editing": True})

    body = client.patch("/v1/view/fields", json={"weight": 80}).json()
    info = {item["field"]: item["value"] for item in body["view"]["info"]}
    assert info["bmi"] == "27.68"

    rejected = client.patch("/v1/view/fields", json={"bmi": "10"}).json()
    assert rejected["ok"] is False
    assert rejected["rejected"] == ["bmi"]

    body = client.post("/v1/view/save").json()
    assert body["ok"] is True
    assert body["view"]["editing"] is False
    assert saved[0].weight == "80"


def test_patient_telemetry_reports_commit_outcomes(monkeypatch):
    client = _make_client(monkeypatch, [], fail_save=True)
    client.post("/v1/view/patient/p1")
    client.post("/v1/view/editing", json={"editing": True})
    client.post("/v1/view/vitals/0")
    client.post("/v1/view/date", json={"date": "2024-02-10"})
    client.post("/v1/view/value", json={"value": "95"})
    client.post("/v1/view/commit")

    body = client.get("/v1/telemetry/p1", params={"event": "persist_failed"}).json()

    assert body["logs"]
    assert body["logs"][0]["error_code"] == "STORE_SAVE_FAILED"
    assert body["logs"][0]["level"] == "ERROR"
    assert body["status"]["last_error_code"] == "STORE_SAVE_FAILED"
    assert body["status"]["fail_count"] >= 1


def test_unexpected_store_error_does_not_crash_commit(monkeypatch):
    async def broken_save(patient):
        raise RuntimeError("store misconfigured")

    monkeypatch.setattr("app.api.view.fetch_patient", _fetch_p1)
    monkeypatch.setattr("app.main.save_patient", broken_save)
    client = TestClient(create_app())
    client.post("/v1/view/patient/p1")
    client.post("/v1/view/editing", json={"editing": True})
    client.post("/v1/view/vitals/1")
    client.post("/v1/view/date", json={"date": "2024-02-10"})
    client.post("/v1/view/value", json={"value": "110"})

    response = client.post("/v1/view/commit")

    assert response.status_code == 200
    assert response.json()["error_code"] == "STORE_SAVE_FAILED"


async def _fetch_p1(patient_id: str) -> Patient:
    return _patient()
