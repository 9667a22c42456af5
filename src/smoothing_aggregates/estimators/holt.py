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

"""Holt's double exponential smoothing (level plus trend)."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from smoothing_aggregates.estimators.base import (
    DEFAULT_MAX_FILL_GAP,
    SmoothedState,
    validate_coordinate,
    validate_max_fill_gap,
    validate_unit_interval,
)
from smoothing_aggregates.estimators.primitives.timestamped_value import (
    TimestampedValue,
    earliest_or_sum,
    latest_or_empty,
)
from smoothing_aggregates.estimators.serialization import StateReader, StateWriter
from smoothing_aggregates.exceptions import (
    GapTooLarge,
    NonMonotonicTimestamp,
    RemapError,
    UnorderedMerge,
    UnsupportedMerge,
)

__all__ = ["Holt", "HoltWithTime", "HoltWithTimeFillGaps"]


class _HoltBase(SmoothedState):
    """Level/trend state shared by the count and time indexed Holt variants.

    ``value`` is the smoothed level at ``reference`` and ``trend`` the slope per
    coordinate unit. ``first_trend`` stays ``None`` until a second distinct
    coordinate has been observed.

    Seasonal subclasses hook into :meth:`_observe` through
    :meth:`_deseasonalize`, :meth:`_update_season` and :meth:`_apply_season`,
    which are neutral here.
    """

    def __init__(self, alpha: float, beta: float) -> None:
        super().__init__()
        self.alpha = validate_unit_interval("alpha", alpha)
        self.beta = validate_unit_interval("beta", beta)
        self.trend = 0.0
        self.first_trend: Optional[TimestampedValue] = None

    @property
    def params(self) -> Dict[str, Any]:
        return {"alpha": self.alpha, "beta": self.beta}

    def _state(self) -> Tuple[Any, ...]:
        return super()._state() + (self.trend, self.first_trend)

    def is_point_state(self) -> bool:
        """True when all data sits at one coordinate and no trend exists yet."""
        return (
            self.first_value is not None
            and self.first_trend is None
            and self.first_value.timestamp == self.reference
        )

    # ------------------------------------------------------------------
    # seasonal hooks

    def _deseasonalize(self, value: float, coord: int, forecast: float) -> float:
        return value

    def _update_season(self, value: float, coord: int) -> None:
        pass

    def _apply_season(self, level: float, coord: int) -> float:
        return level

    # ------------------------------------------------------------------

    def _observe(self, value: float, coord: int) -> None:
        """Fold one raw observation at ``coord`` into the state."""
        if self.is_empty:
            self.value = self._deseasonalize(value, coord, value)
            self.trend = 0.0
            self.reference = coord
            self.first_value = TimestampedValue(value=value, timestamp=coord)
            self._update_season(value, coord)
            return

        delta = coord - self.reference
        if delta < 0 or coord < self.first_value.timestamp:
            raise RemapError(
                f"{type(self).__name__} cannot absorb coordinate {coord} before {self.reference}"
            )

        forecast = self.value + self.trend * delta
        level_input = self._deseasonalize(value, coord, forecast)
        sample = TimestampedValue(value=value, timestamp=coord)

        if self.first_trend is None:
            bridge_end = latest_or_empty(self.first_value, sample)
            if bridge_end is None:
                self.first_value = earliest_or_sum(self.first_value, sample)
                self.value += level_input
            else:
                # the first slope is the unweighted secant from the seed, so the level lands on the observation
                span = bridge_end.timestamp - self.first_value.timestamp
                self.trend = (level_input - self.value) / span
                self.first_trend = TimestampedValue(value=self.trend, timestamp=coord)
                self.value = level_input
        elif delta == 0:
            self.value = self.alpha * level_input + (1.0 - self.alpha) * self.value
        else:
            new_level = self.alpha * level_input + (1.0 - self.alpha) * forecast
            self.trend = self.beta * (new_level - self.value) / delta + (1.0 - self.beta) * self.trend
            self.value = new_level

        self.reference = coord
        self._update_season(value, coord)

    def _shift(self, delta: int) -> None:
        self.value += self.trend * delta

    def _value_at(self, coord: int) -> float:
        level = self.value + self.trend * (coord - self.reference)
        return self._apply_season(level, coord)

    def _forecast(self) -> float:
        return self._value_at(self.reference + 1)

    def result(self) -> Tuple[Any, ...]:
        return (self.get(), self.trend)

    def _write_fields(self, writer: StateWriter) -> None:
        writer.write_float(self.value)
        writer.write_float(self.trend)
        writer.write_uint(self.reference)
        writer.write_optional(self.first_value)
        writer.write_optional(self.first_trend)

    def _read_fields(self, reader: StateReader) -> Dict[str, Any]:
        return {
            "value": reader.read_float(),
            "trend": reader.read_float(),
            "reference": reader.read_uint(),
            "first_value": reader.read_optional(),
            "first_trend": reader.read_optional(),
        }


class Holt(_HoltBase):
    """Count-indexed Holt smoothing; observation ``i`` sits at count ``i + 1``."""

    @property
    def count(self) -> int:
        return self.reference

    def add(self, value: float) -> None:
        self._observe(float(value), self.reference + 1)

    def _merge_into(self, other: "Holt") -> None:
        if other.count != 1:
            raise UnsupportedMerge(
                f"{type(self).__name__} can only absorb a single observation, "
                f"got a state with count {other.count}"
            )
        self._observe(other.first_value.value, self.reference + 1)


class HoltWithTime(_HoltBase):
    """Holt smoothing over integer timestamps, ignoring gaps between them.

    Observations are folded in as single-observation states, so ``add`` and
    ``merge`` share one code path. ``observations`` counts the raw observations
    behind the state: observations sharing a timestamp collapse into one point,
    and such a point cannot stand in for its parts in a merge. Two single
    observations arriving in reverse order are replayed in time order; anything
    else earlier than the reference is refused.
    """

    time_indexed = True

    def __init__(self, alpha: float, beta: float) -> None:
        super().__init__(alpha, beta)
        self.observations = 0

    def _state(self) -> Tuple[Any, ...]:
        return super()._state() + (self.observations,)

    @property
    def timestamp(self) -> int:
        return self.reference

    def _observe(self, value: float, coord: int) -> None:
        super()._observe(value, coord)
        self.observations += 1

    def _point(self, value: float, timestamp: int) -> "HoltWithTime":
        point = self.empty()
        point._observe(value, timestamp)
        return point

    def add(self, value: float, timestamp: int) -> None:
        self.merge(self._point(float(value), validate_coordinate(timestamp)))

    def _merge_into(self, other: "HoltWithTime") -> None:
        if other.observations != 1:
            raise UnsupportedMerge(
                f"{type(self).__name__} can only absorb a single observation, "
                f"got a state built from {other.observations}"
            )
        if other.reference >= self.reference:
            self._observe(other.first_value.value, other.reference)
            return
        if not self.is_point_state():
            raise RemapError(
                f"{type(self).__name__} at {self.reference} cannot absorb an observation "
                f"at earlier timestamp {other.reference}"
            )
        if self.observations != 1:
            raise UnsupportedMerge(
                f"{type(self).__name__} cannot replay {self.observations} observations "
                f"at {self.reference} after an earlier one"
            )
        # secant bridge: replay the two observations in time order
        earlier = other.copy()
        earlier._observe(self.first_value.value, self.reference)
        self._restore(earlier)

    def _write_tail(self, writer: StateWriter) -> None:
        writer.write_uint(self.observations)

    def _read_tail(self, reader: StateReader) -> Dict[str, Any]:
        return {"observations": reader.read_uint()}


class HoltWithTimeFillGaps(_HoltBase):
    """Holt smoothing that fills every missing timestamp with the forecast.

    A synthetic observation equal to the forecast leaves the trend unchanged
    and moves the level by one trend step, so a gap is applied in closed form.
    """

    time_indexed = True

    def __init__(
        self,
        alpha: float,
        beta: float,
        max_fill_gap: Optional[int] = DEFAULT_MAX_FILL_GAP,
    ) -> None:
        super().__init__(alpha, beta)
        self.max_fill_gap = validate_max_fill_gap(max_fill_gap)

    @property
    def params(self) -> Dict[str, Any]:
        return {**super().params, "max_fill_gap": self.max_fill_gap}

    @property
    def timestamp(self) -> int:
        return self.reference

    def _fill_gap(self, gap: int) -> None:
        if gap <= 0:
            return
        if self.max_fill_gap is not None and gap > self.max_fill_gap:
            raise GapTooLarge(f"gap of {gap} exceeds max_fill_gap={self.max_fill_gap}")
        if self.first_trend is None:
            # the first synthetic step repeats the seed, establishing a flat trend
            self.trend = 0.0
            self.first_trend = TimestampedValue(value=0.0, timestamp=self.reference + 1)
        self.value += self.trend * gap
        self.reference += gap

    def add(self, value: float, timestamp: int) -> None:
        value = float(value)
        timestamp = validate_coordinate(timestamp)
        if self.is_empty:
            self._observe(value, timestamp)
            return
        if timestamp <= self.reference:
            raise NonMonotonicTimestamp(
                f"timestamp {timestamp} does not advance past {self.reference}"
            )
        self._fill_gap(timestamp - self.reference - 1)
        self._observe(value, timestamp)

    def _merge_into(self, other: "HoltWithTimeFillGaps") -> None:
        if self.reference >= other.first_value.timestamp:
            raise UnorderedMerge(
                f"state ending at {self.reference} cannot absorb a state starting at "
                f"{other.first_value.timestamp}"
            )
        if not other.is_point_state():
            raise UnsupportedMerge(f"{type(self).__name__} can only absorb a single observation")
        self.add(other.first_value.value, other.reference)
