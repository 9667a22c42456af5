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

"""Mergeable forecasting estimators."""

from .base import DEFAULT_MAX_FILL_GAP, SmoothedState
from .holt import Holt, HoltWithTime, HoltWithTimeFillGaps
from .holt_winters import HoltWinters, HoltWintersFillGaps, HoltWintersWithTime, SeasonalMode
from .level import Level, LevelWithTime, LevelWithTimeFillGaps
from .primitives.smoothed_average import ExponentiallySmoothedAverage

__all__ = [
    "DEFAULT_MAX_FILL_GAP",
    "ExponentiallySmoothedAverage",
    "Holt",
    "HoltWinters",
    "HoltWintersFillGaps",
    "HoltWintersWithTime",
    "HoltWithTime",
    "HoltWithTimeFillGaps",
    "Level",
    "LevelWithTime",
    "LevelWithTimeFillGaps",
    "SeasonalMode",
    "SmoothedState",
]
