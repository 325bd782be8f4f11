from __future__ import annotations

from typing import Iterator

from app.core.errors import ParseError
from app.models.patient import Reading, VitalSeries
from app.utils.parsing import is_date_key

WINDOW_SIZE = 5


class SeriesWindow:
    """시리즈의 최근 n개 날짜 구간

    순회할 때마다 날짜 키를 다시 정렬해 (날짜 키, 측정값) 쌍을
    오래된 순서로 돌려준다. 몇 번이든 다시 순회할 수 있다.
    """

    def __init__(self, series: VitalSeries, size: int) -> None:
        self.series = series
        self.size = size

    def keys(self) -> list[str]:
        dated = sorted(key for key in self.series.data if is_date_key(key))
        if self.size <= 0:
            return []
        return dated[-self.size :]

    def __iter__(self) -> Iterator[tuple[str, Reading]]:
        for key in self.keys():
            yield key, self.series.data[key]

    def __len__(self) -> int:
        return len(self.keys())


def get_window(series: VitalSeries, n: int = WINDOW_SIZE) -> SeriesWindow:
    """최근 n개 날짜의 측정값 구간을 반환

    날짜 형식이 아닌 과거 키("0", "1" 등)는 구간에서 제외한다.

    Args:
        series: 바이탈 시리즈
        n: 구간 크기

    Returns:
        재순회 가능한 구간 객체
    """
    return SeriesWindow(series, n)


def get_reading(series: VitalSeries, date_key: str) -> Reading | None:
    """날짜 키의 측정값을 조회"""
    return series.data.get(date_key)


def upsert(series: VitalSeries, date_key: str, reading: Reading) -> VitalSeries:
    """날짜 키에 측정값을 추가하거나 덮어쓴 새 시리즈를 반환

    측정값 형식이 아닌 보존 항목은 그대로 두되, 같은 날짜 키는 새 값으로 대체한다.

    Args:
        series: 원본 시리즈
        date_key: YYYY-MM-DD 날짜 키
        reading: 혈압은 (수축기, 이완기), 그 외는 단일 값

    Returns:
        새 시리즈 인스턴스

    Raises:
        ParseError: 날짜 키나 측정값 형식이 맞지 않을 때
    """
    if not is_date_key(date_key):
        raise ParseError("date", f"날짜 키 형식이 아님: {date_key}")
    if series.kind == "bloodPressure":
        if not isinstance(reading, tuple) or len(reading) != 2:
            raise ParseError(series.kind, f"수축기/이완기 쌍이 필요함: {reading!r}")
        reading = (float(reading[0]), float(reading[1]))
    else:
        if isinstance(reading, (tuple, bool)):
            raise ParseError(series.kind, f"단일 값이 필요함: {reading!r}")
        reading = float(reading)
    data = dict(series.data or {})
    data[date_key] = reading
    retained = {key: value for key, value in series.retained.items() if key != date_key}
    return VitalSeries(
        kind=series.kind,
        data=data,
        retained=retained,
        entry_extra=series.entry_extra,
    )
