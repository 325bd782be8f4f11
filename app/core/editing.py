from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Awaitable, Callable, Literal

from app.core.errors import ParseError, PersistenceError
from app.core.logger import log_event, utc_now_iso
from app.core.series import upsert
from app.core.telemetry import TelemetryStore
from app.models.patient import Patient, Reading, VitalKind
from app.utils.parsing import parse_blood_pressure, parse_float, to_date_key, to_local_date

SaveFn = Callable[[Patient], Awaitable[None]]

EditState = Literal["viewing", "vital_selected", "date_selected", "committing"]

EDITABLE_FIELDS = ("name", "gender", "age", "height", "weight", "blood_type")


@dataclass
class EditSession:
    """편집 중인 바이탈 선택 상태(저장되지 않음)"""

    vital_index: int
    selected_date: date | None = None
    value: str = ""


def parse_reading(kind: VitalKind, raw: str) -> Reading:
    """입력 문자열을 바이탈 종류에 맞는 측정값으로 파싱

    Args:
        kind: 바이탈 종류
        raw: 입력 문자열(혈압은 "수축기/이완기")

    Returns:
        측정값

    Raises:
        ParseError: 파싱 실패 시
    """
    if kind == "bloodPressure":
        return parse_blood_pressure(raw)
    return parse_float(raw, kind)


class VitalEditor:
    """환자 화면의 편집 모드와 바이탈 입력 세션을 관리

    현재 환자는 항상 새 값으로 교체되며, 저장소 저장이 끝난 뒤에만 반영된다.
    저장 대기 중에는 다른 편집과 두 번째 커밋을 받지 않는다.
    """

    def __init__(
        self,
        save: SaveFn,
        patient: Patient | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._save = save
        self._today = today
        self._patient = patient
        self._editing = False
        self._session: EditSession | None = None
        self._in_flight = False
        self._generation = 0

    @property
    def patient(self) -> Patient | None:
        return self._patient

    @property
    def editing(self) -> bool:
        return self._editing

    @property
    def session(self) -> EditSession | None:
        return self._session

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def state(self) -> EditState:
        if self._in_flight:
            return "committing"
        if self._session is None:
            return "viewing"
        if self._session.selected_date is None:
            return "vital_selected"
        return "date_selected"

    def select_patient(self, patient: Patient | None) -> None:
        """선택된 환자를 통째로 교체하고 입력 세션을 초기화

        Args:
            patient: 새 환자(선택 해제 시 None)
        """
        self._generation += 1
        self._patient = patient
        self._session = None
        if patient is None:
            self._editing = False
        log_event(
            "patient_selected",
            logging.INFO,
            patient.id if patient else None,
            "select",
            "환자 선택" if patient else "환자 선택 해제",
        )

    def set_editing(self, editing: bool) -> bool:
        """편집 모드 전환. 끌 때는 입력 세션을 즉시 버린다.

        Args:
            editing: 편집 모드 여부

        Returns:
            전환 후 편집 모드 여부
        """
        if editing and self._patient is None:
            return False
        self._editing = editing
        if not editing:
            self._session = None
        return self._editing

    def edit_field(self, field: str, value: object) -> bool:
        """인구학 필드를 수정한 새 환자 값으로 교체

        BMI는 키/체중에서 계산되므로 직접 수정할 수 없다.

        Args:
            field: 필드 이름
            value: 새 값

        Returns:
            반영 여부
        """
        if not self._editing or self._patient is None or self._in_flight:
            return False
        if field not in EDITABLE_FIELDS:
            return False
        text = None if value is None else str(value)
        self._patient = self._patient.model_copy(update={field: text})
        return True

    def select_vital(self, index: int) -> bool:
        if not self._editing or self._patient is None or self._in_flight:
            return False
        if not 0 <= index < len(self._patient.vitals):
            return False
        if self._session is None:
            self._session = EditSession(vital_index=index)
        else:
            self._session.vital_index = index
        return True

    def select_date(self, value: date | datetime | str) -> bool:
        """입력 날짜 선택. 미래 날짜나 해석할 수 없는 값은 거부한다."""
        if self._session is None or self._in_flight:
            return False
        try:
            selected = to_local_date(value)
        except ParseError:
            return False
        if selected > self._today():
            return False
        self._session.selected_date = selected
        return True

    def set_value(self, raw: str) -> bool:
        if self._in_flight:
            return False
        if self._session is None or self._session.selected_date is None:
            return False
        self._session.value = "" if raw is None else str(raw)
        return True

    async def commit(self) -> tuple[bool, str | None]:
        """선택한 바이탈/날짜에 입력값을 저장

        저장소 저장이 성공한 뒤에만 현재 환자를 교체하고 입력 세션을 비운다.
        저장 실패 시 환자와 세션은 그대로 남아 재시도할 수 있다.

        Returns:
            성공 여부, 에러 코드
        """
        if self._in_flight:
            return False, "EDIT_IN_FLIGHT"
        patient = self._patient
        session = self._session
        if (
            not self._editing
            or patient is None
            or session is None
            or session.selected_date is None
            or not session.value.strip()
        ):
            return False, "EDIT_NOT_READY"

        series = patient.vitals[session.vital_index]
        try:
            reading = parse_reading(series.kind, session.value)
            date_key = to_date_key(session.selected_date)
            updated = patient.with_series(
                session.vital_index, upsert(series, date_key, reading)
            )
        except ParseError as exc:
            log_event(
                "commit_refused",
                logging.WARNING,
                patient.id,
                "validate",
                exc.message,
                error_code="EDIT_VALUE_INVALID",
            )
            return False, "EDIT_VALUE_INVALID"

        ok, code = await self._persist(updated, "commit")
        if not ok:
            return False, code
        log_event(
            "reading_committed",
            logging.INFO,
            patient.id,
            "commit",
            f"{series.kind} {date_key} 저장",
        )
        return True, None

    async def save(self) -> tuple[bool, str | None]:
        """현재 환자(인구학 정보 포함)를 저장하고 편집 모드를 끈다

        Returns:
            성공 여부, 에러 코드
        """
        if self._in_flight:
            return False, "EDIT_IN_FLIGHT"
        patient = self._patient
        if not self._editing or patient is None:
            return False, "EDIT_NOT_READY"
        ok, code = await self._persist(patient, "save")
        if ok and self._patient is patient:
            self._editing = False
        return ok, code

    async def _persist(self, updated: Patient, stage: str) -> tuple[bool, str | None]:
        """저장소 저장 임계 구역

        저장 함수가 던지는 예외는 모두 실패로 기록하고 호출자에게는
        에러 코드만 돌려준다.

        Args:
            updated: 저장할 새 환자 값
            stage: 로그 단계 이름

        Returns:
            성공 여부, 에러 코드
        """
        generation = self._generation
        start = datetime.now(timezone.utc)
        self._in_flight = True
        try:
            await self._save(updated)
        except PersistenceError as exc:
            return self._record_failure(updated, stage, exc.message)
        except Exception as exc:
            return self._record_failure(updated, stage, f"{type(exc).__name__}: {exc}")
        finally:
            self._in_flight = False

        if generation == self._generation:
            self._patient = updated
            self._session = None
        log_event(
            "persist_complete",
            logging.INFO,
            updated.id,
            stage,
            "저장 완료",
            duration_ms=int((datetime.now(timezone.utc) - start).total_seconds() * 1000),
        )
        TelemetryStore().update_status(
            {
                "patient_id": updated.id,
                "last_commit_at": utc_now_iso(),
                "last_success_at": utc_now_iso(),
                "last_status": "성공",
                "last_error_code": None,
            }
        )
        return True, None

    def _record_failure(
        self, updated: Patient, stage: str, message: str
    ) -> tuple[bool, str | None]:
        log_event(
            "persist_failed",
            logging.ERROR,
            updated.id,
            stage,
            message,
            error_code="STORE_SAVE_FAILED",
        )
        TelemetryStore().update_status(
            {
                "patient_id": updated.id,
                "last_commit_at": utc_now_iso(),
                "last_success_at": None,
                "last_status": "실패",
                "last_error_code": "STORE_SAVE_FAILED",
            }
        )
        return False, "STORE_SAVE_FAILED"
