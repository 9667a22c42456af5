# Copyright 2025 Edward Clewer
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Shared pytest fixtures for the smoothing aggregates test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict

import numpy as np
import pandas as pd
import pytest
import yaml


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20251019)


@pytest.fixture
def series_frame() -> pd.DataFrame:
    """Two short series with strictly increasing integer timestamps."""
    return pd.DataFrame(
        {
            "series": ["a", "a", "a", "a", "b", "b", "b"],
            "ts": [0, 1, 3, 4, 10, 11, 12],
            "value": [10.0, 12.0, 16.0, 18.0, 5.0, 4.0, 3.0],
        }
    )


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[Dict[str, Any]], Path]:
    """Return a helper that dumps a config mapping to YAML under ``tmp_path``."""

    def _write(payload: Dict[str, Any], name: str = "forecast.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def forecast_payload(tmp_path: Path, series_frame: pd.DataFrame) -> Dict[str, Any]:
    """A valid config mapping whose input CSV already exists on disk."""
    data_path = tmp_path / "data.csv"
    series_frame.to_csv(data_path, index=False)
    return {
        "schema_version": "1.0",
        "input": {
            "path": str(data_path),
            "value_column": "value",
            "timestamp_column": "ts",
            "group_by": ["series"],
        },
        "output": {"path": str(tmp_path / "out"), "mode": "final", "include_state": True},
        "settings": {"max_fill_gap": 1000},
        "aggregates": [
            {
                "name": "holt",
                "function": "Holt",
                "enabled": True,
                "use_timestamp": False,
                "params": {"alpha": 0.5, "beta": 0.5},
            },
            {
                "name": "holt_gaps",
                "function": "HoltWithTimeFillGaps",
                "use_timestamp": True,
                "params": {"alpha": 0.5, "beta": 0.5},
            },
            {
                "name": "seasonal",
                "function": "HoltWintersAdditional",
                "params": {"alpha": 0.5, "beta": 0.5, "gamma": 0.5, "seasons_count": 2},
            },
        ],
    }
