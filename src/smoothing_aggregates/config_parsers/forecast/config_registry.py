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

from typing import Dict, Type

from smoothing_aggregates.config_parsers.forecast.config_dataclass import AggregateConfigBase
from smoothing_aggregates.config_parsers.forecast.dataclasses.exponential_smoothing_config import (
    ExponentialSmoothingConfig,
)
from smoothing_aggregates.config_parsers.forecast.dataclasses.holt_config import HoltConfig
from smoothing_aggregates.config_parsers.forecast.dataclasses.holt_winters_config import HoltWintersConfig
from smoothing_aggregates.config_parsers.forecast.dataclasses.moving_average_config import (
    MovingAverageConfig,
)

CONFIG_REGISTRY: Dict[str, Type[AggregateConfigBase]] = {
    "exponentialSmoothingAlpha": ExponentialSmoothingConfig,
    "exponentialSmoothingAlphaFillGaps": ExponentialSmoothingConfig,
    "Holt": HoltConfig,
    "HoltWithTime": HoltConfig,
    "HoltWithTimeFillGaps": HoltConfig,
    "HoltFillGaps": HoltConfig,
    "HoltWintersMultiply": HoltWintersConfig,
    "HoltWintersAdditional": HoltWintersConfig,
    "HoltWintersWithTimeMultiply": HoltWintersConfig,
    "HoltWintersWithTimeAdditional": HoltWintersConfig,
    "HoltWintersFillGapsMultiply": HoltWintersConfig,
    "HoltWintersFillGapsAdditional": HoltWintersConfig,
    "exponentialMovingAverage": MovingAverageConfig,
}
