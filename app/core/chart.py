from __future__ import annotations

from typing import Iterable

from pydantic import BaseModel, Field

from app.core.config import ChartConfig, load_chart_config
from app.models.patient import Reading, VitalKind
from app.utils.parsing import is_date_key


class ChartTrack(BaseModel):
    """차트 한 줄(데이터셋)"""

    label: str
    color: str
    values: list[float | None] = Field(
        default_factory=list, description="날짜 라벨 순서의 값(None은 공백)"
    )


class ChartSeries(BaseModel):
    """렌더링 가능한 차트 데이터"""

    kind: VitalKind
    title: str
    labels: list[str] = Field(default_factory=list)
    tracks: list[ChartTrack] = Field(default_factory=list)
    tick_step: int


def project(
    kind: VitalKind,
    window: Iterable[tuple[str, Reading | None]],
    config: ChartConfig | None = None,
) -> ChartSeries:
    """구간 데이터를 차트 데이터로 변환

    Args:
        kind: 바이탈 종류
        window: (날짜 키, 측정값) 쌍의 구간
        config: 차트 설정(없으면 설정 파일에서 로드)

    Returns:
        차트 데이터
    """
    config = config or load_chart_config()
    vital_config = config.vitals[kind]
    points = [(key, reading) for key, reading in window if is_date_key(key)]
    labels = [key for key, _ in points]

    if kind == "bloodPressure":
        systolic_track, diastolic_track = vital_config.tracks[:2]
        systolic = [reading[0] if reading is not None else None for _, reading in points]
        diastolic = [reading[1] if reading is not None else None for _, reading in points]
        tracks = [
            ChartTrack(
                label=systolic_track.label,
                color=systolic_track.color,
                values=systolic,
            ),
            ChartTrack(
                label=diastolic_track.label,
                color=diastolic_track.color,
                values=diastolic,
            ),
        ]
    else:
        track = vital_config.tracks[0]
        tracks = [
            ChartTrack(
                label=vital_config.title,
                color=track.color,
                values=[reading for _, reading in points],
            )
        ]

    return ChartSeries(
        kind=kind,
        title=vital_config.title,
        labels=labels,
        tracks=tracks,
        tick_step=vital_config.tick_step,
    )
