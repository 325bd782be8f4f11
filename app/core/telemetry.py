from __future__ import annotations

from pathlib import Path

import duckdb

from app.core.config import get_settings


class TelemetryStore:
    """이벤트 로그와 커밋 상태를 저장하는 DuckDB 텔레메트리 저장소"""

    _instance: "TelemetryStore | None" = None

    def __new__(cls) -> "TelemetryStore":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_db()
        return cls._instance

    def _init_db(self) -> None:
        settings = get_settings()
        Path(settings.duckdb_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(settings.duckdb_path)
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                timestamp TIMESTAMP,
                level VARCHAR,
                event VARCHAR,
                patient_id VARCHAR,
                stage VARCHAR,
                error_code VARCHAR,
                message VARCHAR,
                duration_ms INTEGER
            )
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS commit_status (
                patient_id VARCHAR,
                last_commit_at TIMESTAMP,
                last_success_at TIMESTAMP,
                last_status VARCHAR,
                last_error_code VARCHAR,
                fail_count INTEGER
            )
            """
        )

    def insert_log(self, record: dict) -> None:
        """로그 레코드를 저장

        Args:
            record: 로그 레코드 딕셔너리
        """
        self._conn.execute(
            """
            INSERT INTO logs (timestamp, level, event, patient_id, stage, error_code, message, duration_ms)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                record.get("timestamp"),
                record.get("level"),
                record.get("event"),
                record.get("patient_id"),
                record.get("stage"),
                record.get("error_code"),
                record.get("message"),
                record.get("duration_ms"),
            ],
        )

    def update_status(self, status: dict) -> None:
        """환자별 커밋 상태 레코드를 업서트

        실패 횟수는 연속 실패 기준으로 누적하며 성공 시 0으로 초기화한다.

        Args:
            status: 상태 레코드 딕셔너리
        """
        patient_id = status.get("patient_id")
        previous = self._conn.execute(
            "SELECT last_success_at, fail_count FROM commit_status WHERE patient_id = ?",
            [patient_id],
        ).fetchone()
        last_success_at = status.get("last_success_at")
        fail_count = 0
        if status.get("last_error_code"):
            fail_count = (previous[1] if previous else 0) + 1
            if last_success_at is None and previous:
                last_success_at = previous[0]
        self._conn.execute(
            """
            DELETE FROM commit_status WHERE patient_id = ?
            """,
            [patient_id],
        )
        self._conn.execute(
            """
            INSERT INTO commit_status (patient_id, last_commit_at, last_success_at, last_status, last_error_code, fail_count)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                patient_id,
                status.get("last_commit_at"),
                last_success_at,
                status.get("last_status"),
                status.get("last_error_code"),
                fail_count,
            ],
        )

    def query_logs(
        self,
        patient_id: str | None = None,
        event: str | None = None,
        limit: int = 100,
    ) -> list[tuple]:
        """환자/이벤트 조건으로 로그를 조회(최신순)

        Args:
            patient_id: 환자 식별자(선택)
            event: 이벤트 이름(선택)
            limit: 최대 행 수

        Returns:
            행 목록
        """
        conditions: list[str] = []
        params: list = []
        if patient_id is not None:
            conditions.append("patient_id = ?")
            params.append(patient_id)
        if event is not None:
            conditions.append("event = ?")
            params.append(event)
        query = "SELECT * FROM logs"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += f" ORDER BY timestamp DESC LIMIT {int(limit)}"
        return self._conn.execute(query, params).fetchall()

    def query_status(self, patient_id: str | None = None) -> list[tuple]:
        """환자별 커밋 상태 항목을 조회

        Args:
            patient_id: 환자 식별자(없으면 전체)

        Returns:
            행 목록
        """
        if patient_id is None:
            return self._conn.execute(
                "SELECT * FROM commit_status ORDER BY patient_id"
            ).fetchall()
        return self._conn.execute(
            "SELECT * FROM commit_status WHERE patient_id = ?", [patient_id]
        ).fetchall()
