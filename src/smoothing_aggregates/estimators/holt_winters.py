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

"""Holt-Winters triple exponential smoothing with a seasonal ring buffer."""

from __future__ import annotations

import numbers
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np

from smoothing_aggregates.estimators.base import validate_unit_interval
from smoothing_aggregates.estimators.holt import Holt, HoltWithTime, HoltWithTimeFillGaps
from smoothing_aggregates.estimators.serialization import StateReader, StateWriter
from smoothing_aggregates.exceptions import InvalidParameter

__all__ = [
    "SeasonalMode",
    "HoltWinters",
    "HoltWintersWithTime",
    "HoltWintersFillGaps",
    "validate_seasons_count",
]

MAX_SEASONS_COUNT = 1 << 32


class SeasonalMode(str, Enum):
    MULTIPLY = "multiply"
    ADDITIVE = "additive"

    @property
    def neutral(self) -> float:
        return 1.0 if self is SeasonalMode.MULTIPLY else 0.0


def validate_seasons_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidParameter(f"seasons_count must be an integer, got {type(value).__name__}")
    if not 0 < value < MAX_SEASONS_COUNT:
        raise InvalidParameter(f"seasons_count must lie in [1, 2**32), got {value}")
    return int(value)


def _validate_mode(value: Any) -> SeasonalMode:
    try:
        return SeasonalMode(value)
    except ValueError as exc:
        raise InvalidParameter(
            f"mode must be one of {[mode.value for mode in SeasonalMode]}, got {value!r}"
        ) from exc


class _SeasonalMixin:
    """Adds ``seasons_count`` seasonal corrections on top of a Holt variant.

    ``seasons`` is ``None`` until the first seasonal update and then a float64
    ring buffer indexed by cycle position. Slots never written hold the neutral
    correction.
    """

    def __init__(
        self,
        alpha: float,
        beta: float,
        gamma: float,
        seasons_count: int,
        mode: SeasonalMode | str = SeasonalMode.MULTIPLY,
        **kwargs: Any,
    ) -> None:
        super().__init__(alpha, beta, **kwargs)
        self.gamma = validate_unit_interval("gamma", gamma)
        self.seasons_count = validate_seasons_count(seasons_count)
        self.mode = _validate_mode(mode)
        self.seasons: Optional[np.ndarray] = None

    @property
    def params(self) -> Dict[str, Any]:
        return {
            **super().params,
            "gamma": self.gamma,
            "seasons_count": self.seasons_count,
            "mode": self.mode,
        }

    def _state(self) -> Tuple[Any, ...]:
        seasons = None if self.seasons is None else tuple(self.seasons.tolist())
        return super()._state() + (seasons,)

    def cycle_index(self, coord: int) -> int:
        if self.time_indexed:
            return coord % self.seasons_count
        return (coord - 1) % self.seasons_count

    def season(self, coord: int) -> float:
        if self.seasons is None:
            return self.mode.neutral
        return float(self.seasons[self.cycle_index(coord)])

    def _deseasonalize(self, value: float, coord: int, forecast: float) -> float:
        correction = self.season(coord)
        if self.mode is SeasonalMode.ADDITIVE:
            return value - correction
        if correction == 0.0:
            return forecast
        return value / correction

    def _update_season(self, value: float, coord: int) -> None:
        correction = self.season(coord)
        if self.mode is SeasonalMode.ADDITIVE:
            updated = self.gamma * (value - self.value) + (1.0 - self.gamma) * correction
        elif self.value == 0.0:
            updated = correction
        else:
            updated = self.gamma * (value / self.value) + (1.0 - self.gamma) * correction
        if self.seasons is None:
            self.seasons = np.full(self.seasons_count, self.mode.neutral, dtype=np.float64)
        self.seasons[self.cycle_index(coord)] = updated

    def _apply_season(self, level: float, coord: int) -> float:
        correction = self.season(coord)
        if self.mode is SeasonalMode.ADDITIVE:
            return level + correction
        return level * correction

    def result(self) -> Tuple[Any, ...]:
        if self.seasons is None:
            seasons = (self.mode.neutral,) * self.seasons_count
        else:
            seasons = tuple(self.seasons.tolist())
        return (self.get(), self.trend, seasons)

    def _write_fields(self, writer: StateWriter) -> None:
        super()._write_fields(writer)
        writer.write_seasons(self.seasons)

    def _read_fields(self, reader: StateReader) -> Dict[str, Any]:
        fields = super()._read_fields(reader)
        fields["seasons"] = reader.read_seasons(self.seasons_count)
        return fields


class HoltWinters(_SeasonalMixin, Holt):
    """Count-indexed Holt-Winters; observation ``i`` uses cycle slot ``i mod seasons_count``."""


class HoltWintersWithTime(_SeasonalMixin, HoltWithTime):
    """Holt-Winters over integer timestamps; slot is ``timestamp mod seasons_count``."""


class HoltWintersFillGaps(_SeasonalMixin, HoltWithTimeFillGaps):
    """Holt-Winters over integer timestamps with gaps filled by the trend.

    Filled steps leave the seasonal corrections untouched.
    """
