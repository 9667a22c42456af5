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

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from smoothing_aggregates.estimators import DEFAULT_MAX_FILL_GAP


@dataclass(kw_only=True)
class AggregateConfigBase:
    name: str
    function: str
    enabled: bool = True
    use_timestamp: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.enabled, bool):
            raise TypeError(f"'enabled' must be a bool, got {type(self.enabled).__name__}")
        if not isinstance(self.use_timestamp, bool):
            raise TypeError(f"'use_timestamp' must be a bool, got {type(self.use_timestamp).__name__}")

    @property
    def argument_count(self) -> int:
        return 2 if self.use_timestamp else 1

    def to_params(self) -> Dict[str, Any]:
        """Return the estimator parameters, without the config-only fields."""
        d = asdict(self)
        for key in ("name", "function", "enabled", "use_timestamp"):
            d.pop(key, None)
        return d


@dataclass(kw_only=True)
class InputConfig:
    path: Path
    value_column: str
    timestamp_column: Optional[str] = None
    group_by: List[str] = field(default_factory=list)


@dataclass(kw_only=True)
class OutputConfig:
    path: Path
    mode: str = "final"
    include_state: bool = False


@dataclass(kw_only=True)
class SettingsConfig:
    max_fill_gap: Optional[int] = DEFAULT_MAX_FILL_GAP


@dataclass(kw_only=True)
class ForecastConfigData:
    """
    Container for a validated forecast run configuration.
    Created by ForecastConfigParser and consumed by AggregationRunner.
    """
    schema_version: str
    input: InputConfig
    output: OutputConfig
    settings: SettingsConfig = field(default_factory=SettingsConfig)
    aggregates: List[AggregateConfigBase] = field(default_factory=list)
