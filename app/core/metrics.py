from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from app.utils.parsing import coerce_positive_float


def compute_bmi(height: object, weight: object) -> float | None:
    """키(cm)와 체중(kg)으로 BMI를 계산

    두 값 중 하나라도 비었거나 양의 유한 실수가 아니면 None을 반환한다.
    결과는 소수 둘째 자리에서 반올림(ROUND_HALF_UP)한다.

    Args:
        height: 키(센티미터)
        weight: 체중(킬로그램)

    Returns:
        BMI 값 또는 None
    """
    height_cm = coerce_positive_float(height)
    weight_kg = coerce_positive_float(weight)
    if height_cm is None or weight_kg is None:
        return None
    height_m = height_cm / 100
    bmi = weight_kg / (height_m * height_m)
    return float(Decimal(repr(bmi)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_bmi(value: float | None) -> str:
    """BMI 표시 문자열(빈 값이면 "")"""
    if value is None:
        return ""
    return f"{value:.2f}"
