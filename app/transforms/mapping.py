from app.models.patient import VitalKind

TITLE_MAPPING: dict[str, VitalKind] = {
    "산소포화도": "oxygen",
    "혈당": "glucose",
    "혈압": "bloodPressure",
    "oxygen": "oxygen",
    "glucose": "glucose",
    "bloodPressure": "bloodPressure",
}

KIND_TITLES: dict[VitalKind, str] = {
    "oxygen": "산소포화도",
    "glucose": "혈당",
    "bloodPressure": "혈압",
}
