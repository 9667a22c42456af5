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

"""Tests for the forecast config parser."""

from __future__ import annotations

import copy
from pathlib import Path

import pytest

from smoothing_aggregates.config_parsers.forecast.config_parser import ForecastConfigParser
from smoothing_aggregates.config_parsers.forecast.dataclasses.holt_config import HoltConfig
from smoothing_aggregates.config_parsers.forecast.dataclasses.holt_winters_config import HoltWintersConfig
from smoothing_aggregates.config_parsers.forecast.dataclasses.moving_average_config import MovingAverageConfig
from smoothing_aggregates.estimators import Holt
from smoothing_aggregates.estimators import DEFAULT_MAX_FILL_GAP
from smoothing_aggregates.exceptions import ConfigError, InvalidParameter


def _load(write_config, payload) -> object:
    return ForecastConfigParser(write_config(payload)).load()


def test_load_builds_typed_aggregate_configs(write_config, forecast_payload, tmp_path: Path):
    config = _load(write_config, forecast_payload)

    assert config.schema_version == "1.0"
    assert config.input.path == (tmp_path / "data.csv").resolve()
    assert config.input.group_by == ["series"]
    assert config.output.mode == "final"
    assert config.output.include_state is True
    assert config.settings.max_fill_gap == 1000

    assert [agg.name for agg in config.aggregates] == ["holt", "holt_gaps", "seasonal"]
    assert isinstance(config.aggregates[0], HoltConfig)
    assert config.aggregates[1].use_timestamp is True
    assert config.aggregates[1].argument_count == 2
    seasonal = config.aggregates[2]
    assert isinstance(seasonal, HoltWintersConfig)
    assert seasonal.to_params() == {"alpha": 0.5, "beta": 0.5, "gamma": 0.5, "seasons_count": 2}


def test_relative_paths_resolve_against_config_directory(write_config, forecast_payload, tmp_path: Path):
    payload = copy.deepcopy(forecast_payload)
    payload["input"]["path"] = "data.csv"
    payload["output"]["path"] = "results"
    del payload["settings"]

    config = _load(write_config, payload)
    assert config.input.path == (tmp_path / "data.csv").resolve()
    assert config.output.path == (tmp_path / "results").resolve()
    assert not config.output.path.exists()
    assert config.settings.max_fill_gap == DEFAULT_MAX_FILL_GAP


def test_missing_config_file_raises(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        ForecastConfigParser(tmp_path / "absent.yaml")


def test_missing_input_file_raises(write_config, forecast_payload, tmp_path: Path):
    payload = copy.deepcopy(forecast_payload)
    payload["input"]["path"] = str(tmp_path / "missing.csv")
    with pytest.raises(ConfigError, match="does not exist"):
        _load(write_config, payload)


def test_unknown_function_raises(write_config, forecast_payload):
    payload = copy.deepcopy(forecast_payload)
    payload["aggregates"][0]["function"] = "Kalman"
    with pytest.raises(ConfigError, match="Unrecognized aggregate function 'Kalman'"):
        _load(write_config, payload)


@pytest.mark.parametrize(
    "params",
    [
        {"alpha": 1.5, "beta": 0.5},
        {"alpha": "fast", "beta": 0.5},
        {"alpha": 0.5},
        {"alpha": 0.5, "beta": 0.5, "window": 3},
    ],
)
def test_invalid_params_raise(write_config, forecast_payload, params):
    payload = copy.deepcopy(forecast_payload)
    payload["aggregates"][0]["params"] = params
    with pytest.raises(ConfigError, match="Failed to instantiate config for aggregate 'holt'"):
        _load(write_config, payload)


def test_non_positive_seasons_count_raises(write_config, forecast_payload):
    payload = copy.deepcopy(forecast_payload)
    payload["aggregates"][2]["params"]["seasons_count"] = 0
    with pytest.raises(ConfigError, match="seasons_count"):
        _load(write_config, payload)


def test_duplicate_names_raise(write_config, forecast_payload):
    payload = copy.deepcopy(forecast_payload)
    payload["aggregates"][1]["name"] = "holt"
    with pytest.raises(ConfigError, match="Duplicate aggregate name"):
        _load(write_config, payload)


@pytest.mark.parametrize(
    "build",
    [
        lambda: HoltConfig(name="h", function="Holt", alpha=1.5, beta=0.5),
        lambda: HoltConfig(name="h", function="Holt", alpha=True, beta=0.5),
        lambda: HoltWintersConfig(
            name="hw", function="HoltWinters", alpha=0.5, beta=0.5, gamma=0.5, seasons_count=0
        ),
        lambda: MovingAverageConfig(name="ma", function="exponentialMovingAverage", half_decay_time=-1.0),
    ],
)
def test_config_dataclasses_raise_invalid_parameter(build):
    """Out-of-range parameters fail at config construction with the estimator error type."""
    with pytest.raises(InvalidParameter):
        build()


def test_config_and_estimator_report_the_same_range_error():
    """Configs and estimators share one range check."""
    with pytest.raises(InvalidParameter) as from_config:
        HoltConfig(name="h", function="Holt", alpha=1.5, beta=0.5)
    with pytest.raises(InvalidParameter) as from_estimator:
        Holt(1.5, 0.5)
    assert str(from_config.value) == str(from_estimator.value)


def test_schema_version_is_required(write_config, forecast_payload):
    payload = copy.deepcopy(forecast_payload)
    del payload["schema_version"]
    with pytest.raises(ConfigError, match="schema_version"):
        _load(write_config, payload)


def test_unsupported_schema_version_raises(write_config, forecast_payload):
    payload = copy.deepcopy(forecast_payload)
    payload["schema_version"] = "9.9"
    with pytest.raises(ConfigError, match="unsupported schema_version"):
        _load(write_config, payload)


def test_numeric_schema_version_is_normalized_to_string(write_config, forecast_payload):
    """YAML reads 1.0 as a float; it is stored as the string "1.0"."""
    payload = copy.deepcopy(forecast_payload)
    payload["schema_version"] = 1.0
    assert _load(write_config, payload).schema_version == "1.0"


@pytest.mark.parametrize(
    ("section", "key"),
    [(None, "extras"), ("input", "delimiter"), ("output", "format"), ("settings", "tolerance")],
)
def test_unexpected_keys_raise(write_config, forecast_payload, section, key):
    payload = copy.deepcopy(forecast_payload)
    target = payload if section is None else payload[section]
    target[key] = 1
    with pytest.raises(ConfigError, match="unexpected keys"):
        _load(write_config, payload)


def test_use_timestamp_requires_timestamp_column(write_config, forecast_payload):
    payload = copy.deepcopy(forecast_payload)
    del payload["input"]["timestamp_column"]
    with pytest.raises(ConfigError, match="timestamp_column"):
        _load(write_config, payload)


def test_unknown_output_mode_raises(write_config, forecast_payload):
    payload = copy.deepcopy(forecast_payload)
    payload["output"]["mode"] = "rolling"
    with pytest.raises(ConfigError, match="output.mode"):
        _load(write_config, payload)


@pytest.mark.parametrize("value", [-1, True, "big"])
def test_invalid_max_fill_gap_raises(write_config, forecast_payload, value):
    payload = copy.deepcopy(forecast_payload)
    payload["settings"]["max_fill_gap"] = value
    with pytest.raises(ConfigError, match="max_fill_gap"):
        _load(write_config, payload)


def test_max_fill_gap_may_be_null(write_config, forecast_payload):
    payload = copy.deepcopy(forecast_payload)
    payload["settings"]["max_fill_gap"] = None
    assert _load(write_config, payload).settings.max_fill_gap is None


def test_root_must_be_mapping(write_config):
    with pytest.raises(ConfigError, match="root must be a mapping"):
        _load(write_config, ["not", "a", "mapping"])
