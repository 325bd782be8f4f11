from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from app.core.metrics import compute_bmi

VitalKind = Literal["oxygen", "glucose", "bloodPressure"]

VITAL_KINDS: tuple[VitalKind, ...] = ("oxygen", "glucose", "bloodPressure")

Reading = Union[float, tuple[float, float]]


class VitalSeries(BaseModel):
    """날짜별 생체신호 측정값 시리즈"""

    model_config = ConfigDict(frozen=True)

    kind: VitalKind = Field(..., description="바이탈 종류")
    data: dict[str, Reading] = Field(
        default_factory=dict, description="날짜 키(YYYY-MM-DD) -> 측정값"
    )
    retained: dict[str, Any] = Field(
        default_factory=dict,
        exclude=True,
        description="측정값 형식이 아닌 저장 항목(원본 그대로 보존)",
    )
    entry_extra: dict[str, Any] = Field(
        default_factory=dict,
        exclude=True,
        description="title/data 외의 저장 필드",
    )

    @model_validator(mode="after")
    def _check_reading_shape(self) -> "VitalSeries":
        paired = self.kind == "bloodPressure"
        for key, reading in self.data.items():
            if paired != isinstance(reading, tuple):
                raise ValueError(f"{self.kind} 측정값 형식 오류: {key}={reading!r}")
        return self


class Patient(BaseModel):
    """환자 기록(인구학 정보 + 바이탈 시리즈)"""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, coerce_numbers_to_str=True
    )

    id: str = Field(..., description="환자 식별자")
    name: str | None = Field(default=None, description="환자 이름")
    gender: str | None = Field(default=None, description="성별")
    age: str | None = Field(default=None, description="나이")
    height: str | None = Field(default=None, description="키(cm)")
    weight: str | None = Field(default=None, description="체중(kg)")
    blood_type: str | None = Field(
        default=None, alias="bloodType", description="혈액형"
    )
    vitals: tuple[VitalSeries, VitalSeries, VitalSeries] = Field(
        default_factory=lambda: tuple(VitalSeries(kind=kind) for kind in VITAL_KINDS),
        description="산소포화도, 혈당, 혈압 순서의 시리즈",
    )
    extra: dict[str, Any] = Field(
        default_factory=dict,
        exclude=True,
        description="모델에 없는 문서 필드(원본 그대로 보존)",
    )
    extra_vitals: list[Any] = Field(
        default_factory=list,
        exclude=True,
        description="종류를 알 수 없는 vitals 항목",
    )

    @model_validator(mode="after")
    def _check_vital_order(self) -> "Patient":
        kinds = tuple(series.kind for series in self.vitals)
        if kinds != VITAL_KINDS:
            raise ValueError(f"바이탈 순서 오류: {kinds}")
        return self

    @computed_field
    @property
    def bmi(self) -> float | None:
        """키와 체중에서 매번 다시 계산되는 BMI"""
        return compute_bmi(self.height, self.weight)

    def with_series(self, index: int, series: VitalSeries) -> "Patient":
        """지정 위치의 시리즈를 교체한 새 환자 값을 반환

        Args:
            index: 바이탈 인덱스
            series: 새 시리즈

        Returns:
            새 환자 인스턴스
        """
        vitals = list(self.vitals)
        vitals[index] = series
        return self.model_copy(update={"vitals": tuple(vitals)})
