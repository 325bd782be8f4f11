from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경 변수에서 애플리케이션 설정을 로드"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    environment: Literal["local", "dev", "prod"] = "local"
    version: str = "0.1.0"
    log_level: str = "INFO"
    document_store_url: str = "http://localhost:9000"
    document_store_api_key: str = ""
    document_store_timeout: float = 10.0
    chart_config_path: str = "charts.yaml"
    duckdb_path: str = "data/telemetry.duckdb"


VITAL_CHART_KINDS = ("oxygen", "glucose", "bloodPressure")


class TrackConfig(BaseModel):
    """차트 트랙 표시 설정"""

    label: str
    color: str = "rgb(75, 192, 192)"


class VitalChartConfig(BaseModel):
    """바이탈 종류별 차트 설정"""

    title: str
    tick_step: int = Field(..., gt=0)
    tracks: list[TrackConfig] = Field(..., min_length=1, max_length=2)


class ChartConfig(BaseModel):
    """차트 표시 설정 묶음"""

    window_size: int = Field(default=5, gt=0)
    vitals: dict[str, VitalChartConfig] = Field(
        default_factory=lambda: {
            "oxygen": VitalChartConfig(
                title="산소포화도",
                tick_step=20,
                tracks=[TrackConfig(label="산소포화도")],
            ),
            "glucose": VitalChartConfig(
                title="혈당",
                tick_step=50,
                tracks=[TrackConfig(label="혈당")],
            ),
            "bloodPressure": VitalChartConfig(
                title="혈압",
                tick_step=40,
                tracks=[
                    TrackConfig(label="수축기", color="rgb(255, 99, 132)"),
                    TrackConfig(label="이완기", color="rgb(54, 162, 235)"),
                ],
            ),
        }
    )

    @model_validator(mode="after")
    def _check_vitals(self) -> "ChartConfig":
        missing = [kind for kind in VITAL_CHART_KINDS if kind not in self.vitals]
        if missing:
            raise ValueError(f"차트 설정 누락: {missing}")
        if len(self.vitals["bloodPressure"].tracks) != 2:
            raise ValueError("bloodPressure 차트는 수축기/이완기 두 트랙이 필요함")
        return self


@lru_cache
def get_settings() -> Settings:
    """캐시된 설정 인스턴스를 반환"""
    return Settings()


@lru_cache
def load_chart_config() -> ChartConfig:
    """설정 파일(YAML)에서 차트 설정 로드

    파일이 없으면 기본 설정을 사용한다.

    Returns:
        차트 설정 인스턴스
    """
    settings = get_settings()
    path = Path(settings.chart_config_path)
    if not path.exists():
        return ChartConfig()
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return ChartConfig(**data)


def reload_chart_config() -> ChartConfig:
    """설정 캐시를 초기화하고 다시 로드

    Returns:
        차트 설정 인스턴스
    """
    load_chart_config.cache_clear()
    return load_chart_config()
