from __future__ import annotations

import math
import re
from datetime import date, datetime

from app.core.errors import ParseError

DATE_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def coerce_positive_float(value: object) -> float | None:
    """값을 양의 유한 실수로 변환

    Args:
        value: 원본 값

    Returns:
        실수 값 또는 변환 실패 시 None
    """
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if text == "":
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def parse_float(value: str | int | float | None, field: str) -> float:
    """값을 유한 실수로 파싱

    Args:
        value: 원본 값
        field: 에러 메시지에 사용할 필드명

    Returns:
        파싱된 실수 값

    Raises:
        ParseError: 파싱 실패 시
    """
    if value is None or str(value).strip() == "":
        raise ParseError(field, "값이 필요함")
    if isinstance(value, bool):
        raise ParseError(field, f"실수가 아님: {value}")
    try:
        number = float(str(value).strip())
    except ValueError as exc:
        raise ParseError(field, f"실수가 아님: {value}") from exc
    if not math.isfinite(number):
        raise ParseError(field, f"유한한 값이 아님: {value}")
    return number


def parse_blood_pressure(value: str | None) -> tuple[float, float]:
    """혈압 입력(수축기/이완기)을 파싱

    Args:
        value: "120/80" 형식의 원본 문자열

    Returns:
        (수축기, 이완기) 튜플

    Raises:
        ParseError: 두 값이 모두 유한 실수가 아닐 때
    """
    if value is None:
        raise ParseError("bloodPressure", "값이 필요함")
    parts = str(value).split("/")
    if len(parts) != 2:
        raise ParseError("bloodPressure", f"수축기/이완기 형식이 아님: {value}")
    systolic = parse_float(parts[0], "systolic")
    diastolic = parse_float(parts[1], "diastolic")
    return systolic, diastolic


def is_date_key(value: object) -> bool:
    """ISO 달력 날짜 키(YYYY-MM-DD)인지 확인

    Args:
        value: 확인할 키

    Returns:
        유효한 날짜 키 여부
    """
    if not isinstance(value, str) or not DATE_KEY_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def to_local_date(value: date | datetime | str) -> date:
    """선택한 날짜를 로컬 달력 날짜로 정규화

    시간대 정보가 있는 datetime은 로컬 시간대로 변환한 뒤 날짜만 취한다.

    Args:
        value: 날짜, datetime 또는 ISO 날짜 문자열

    Returns:
        로컬 달력 날짜

    Raises:
        ParseError: 날짜로 해석할 수 없을 때
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not is_date_key(text):
        raise ParseError("date", f"지원하지 않는 날짜 형식: {value}")
    return date.fromisoformat(text)


def to_date_key(value: date | datetime | str) -> str:
    """선택한 날짜를 시리즈 키(YYYY-MM-DD)로 변환

    Args:
        value: 날짜, datetime 또는 ISO 날짜 문자열

    Returns:
        YYYY-MM-DD 형식의 날짜 키

    Raises:
        ParseError: 날짜로 해석할 수 없을 때
    """
    return to_local_date(value).isoformat()
