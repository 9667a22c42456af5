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

from dataclasses import dataclass

from smoothing_aggregates.estimators.base import validate_unit_interval

from ..config_dataclass import AggregateConfigBase


@dataclass(kw_only=True)
class ExponentialSmoothingConfig(AggregateConfigBase):
    """Configuration for exponentialSmoothingAlpha and its fill-gaps variant."""

    alpha: float

    def __post_init__(self) -> None:
        super().__post_init__()
        self.alpha = validate_unit_interval("alpha", self.alpha)
