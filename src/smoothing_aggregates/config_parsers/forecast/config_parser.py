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

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Type

import yaml

from smoothing_aggregates.config_parsers.forecast.config_dataclass import (
    AggregateConfigBase,
    ForecastConfigData,
    InputConfig,
    OutputConfig,
    SettingsConfig,
)
from smoothing_aggregates.config_parsers.forecast.config_registry import CONFIG_REGISTRY
from smoothing_aggregates.config_parsers.utils.utils import validate_path
from smoothing_aggregates.config_validation import validate_forecast_config
from smoothing_aggregates.exceptions import ConfigError


class ForecastConfigParser:
    """
    Parses and validates the forecast YAML configuration file.

    Produces a ForecastConfigData whose aggregates are
    AggregateConfigBase-derived dataclasses describing which
    aggregate functions to evaluate and with which parameters.
    Relative paths are resolved against the config file's directory.
    """

    def __init__(
        self,
        config_path: Path,
        registry: Dict[str, Type[AggregateConfigBase]] = CONFIG_REGISTRY,
    ):
        self.registry = registry
        self.config_path = Path(config_path)

        if not self.config_path.exists():
            raise ConfigError(f"forecast config not found: {config_path}")

    # ------------------------------------------------------------------
    def load(self) -> ForecastConfigData:
        """Load and validate the forecast YAML into config dataclasses."""

        # --- Parse YAML ---
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                raw: Dict[str, Any] = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Error parsing YAML at {self.config_path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError("Invalid forecast config: root must be a mapping (YAML dict)")

        try:
            validated = validate_forecast_config(raw)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        base_dir = self.config_path.resolve().parent
        input_raw = validated["input"]
        output_raw = validated["output"]

        input_config = InputConfig(
            path=validate_path(
                input_raw["path"],
                must_exist=True,
                expect_dir=False,
                label="input.path",
                base_dir=base_dir,
            ),
            value_column=input_raw["value_column"],
            timestamp_column=input_raw["timestamp_column"],
            group_by=list(input_raw["group_by"]),
        )
        output_config = OutputConfig(
            path=validate_path(
                output_raw["path"],
                must_exist=False,
                expect_dir=True,
                label="output.path",
                base_dir=base_dir,
            ),
            mode=output_raw["mode"],
            include_state=output_raw["include_state"],
        )
        settings = SettingsConfig(**validated["settings"])

        return ForecastConfigData(
            schema_version=validated["schema_version"],
            input=input_config,
            output=output_config,
            settings=settings,
            aggregates=self._build_aggregates(validated["aggregates"]),
        )

    def _build_aggregates(self, entries: List[Dict[str, Any]]) -> List[AggregateConfigBase]:
        configs: List[AggregateConfigBase] = []
        seen_names: set[str] = set()

        # --- Build config dataclasses ---
        for i, entry in enumerate(entries, start=1):
            name = entry["name"]
            function = entry["function"]

            config_class = self.registry.get(function)
            if config_class is None:
                raise ConfigError(f"Unrecognized aggregate function '{function}' in entry #{i}")

            try:
                config_obj = config_class(
                    name=name,
                    function=function,
                    enabled=entry["enabled"],
                    use_timestamp=entry["use_timestamp"],
                    **entry["params"],
                )
            except Exception as e:
                raise ConfigError(
                    f"Failed to instantiate config for aggregate '{name}' of function '{function}': {e}"
                ) from e

            if name in seen_names:
                raise ConfigError(f"Duplicate aggregate name detected: '{name}'")
            seen_names.add(name)
            configs.append(config_obj)

        return configs
