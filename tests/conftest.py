import os

import pytest

from app.core.config import get_settings, load_chart_config


@pytest.fixture(autouse=True, scope="session")
def _telemetry_path(tmp_path_factory):
    os.environ["DUCKDB_PATH"] = str(tmp_path_factory.mktemp("telemetry") / "telemetry.duckdb")
    get_settings.cache_clear()
    load_chart_config.cache_clear()
    yield
