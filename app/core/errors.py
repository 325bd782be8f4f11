class VitalsError(Exception):
    """바이탈 편집 예외의 기본 클래스"""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class ParseError(VitalsError):
    """입력값 파싱 또는 정규화 실패 시 발생"""

    def __init__(self, field: str, message: str) -> None:
        super().__init__("TX_PARSE_001", f"{field}: {message}")
        self.field = field


class PersistenceError(VitalsError):
    """문서 저장소 읽기/쓰기 실패 시 발생"""

    def __init__(self, message: str) -> None:
        super().__init__("STORE_IO_001", message)
