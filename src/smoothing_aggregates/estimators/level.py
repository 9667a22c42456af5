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

"""Simple exponential smoothing over counts and integer timestamps."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from smoothing_aggregates.estimators.base import (
    DEFAULT_MAX_FILL_GAP,
    SmoothedState,
    validate_coordinate,
    validate_max_fill_gap,
    validate_unit_interval,
)
from smoothing_aggregates.estimators.primitives.scale import decay
from smoothing_aggregates.estimators.primitives.timestamped_value import (
    TimestampedValue,
    earliest_or_sum,
)
from smoothing_aggregates.estimators.serialization import StateReader, StateWriter
from smoothing_aggregates.exceptions import (
    GapTooLarge,
    NonMonotonicTimestamp,
    RemapError,
    UnorderedMerge,
    UnsupportedMerge,
)

__all__ = ["Level", "LevelWithTime", "LevelWithTimeFillGaps"]


class _LevelBase(SmoothedState):
    def __init__(self, alpha: float) -> None:
        super().__init__()
        self.alpha = validate_unit_interval("alpha", alpha)

    @property
    def params(self) -> Dict[str, Any]:
        return {"alpha": self.alpha}

    def _forecast(self) -> float:
        return self._value_at(self.reference)

    def _write_fields(self, writer: StateWriter) -> None:
        writer.write_float(self.value)
        writer.write_uint(self.reference)
        writer.write_optional(self.first_value)

    def _read_fields(self, reader: StateReader) -> Dict[str, Any]:
        return {
            "value": reader.read_float(),
            "reference": reader.read_uint(),
            "first_value": reader.read_optional(),
        }


class _DecayingAccumulator(_LevelBase):
    """Sum of ``alpha``-weighted observations decayed to the reference coordinate.

    The seed is kept apart in ``first_value``; the level adds it back with the
    decay accumulated since it was observed, so the first observation counts
    with full weight.
    """

    def _shift(self, delta: int) -> None:
        if delta >= 0:
            self.value *= decay(self.alpha, delta)
            return
        if self.alpha == 1.0:
            raise RemapError("cannot rewind an accumulator with alpha == 1: every past value decayed to zero")
        self.value /= decay(self.alpha, -delta)

    def _value_at(self, coord: int) -> float:
        seed = self.first_value
        return (
            self.value * decay(self.alpha, coord - self.reference)
            + seed.value * decay(self.alpha, coord - seed.timestamp + 1)
        )

    def _point(self, value: float, coord: int) -> "_DecayingAccumulator":
        point = self.empty()
        point.value = self.alpha * value
        point.reference = coord
        point.first_value = TimestampedValue(value=value, timestamp=coord)
        return point


class Level(_DecayingAccumulator):
    """Count-indexed exponential smoothing; observation ``i`` sits at count ``i + 1``."""

    @property
    def count(self) -> int:
        return self.reference

    def add(self, value: float) -> None:
        self.merge(self._point(float(value), 1))

    def _merge_into(self, other: "Level") -> None:
        if other.count != 1:
            raise UnsupportedMerge(
                f"Level can only absorb a single observation, got a state with count {other.count}"
            )
        self.value = self.value * (1.0 - self.alpha) + other.value
        self.reference += 1


class LevelWithTime(_DecayingAccumulator):
    """Timestamp-indexed exponential smoothing; missing time units decay as zeros.

    Each merge absorbs one raw observation, remapping both sides to the later
    timestamp and summing them, so a late observation lands exactly.
    ``observations`` counts the raw observations folded in.
    """

    time_indexed = True

    def __init__(self, alpha: float) -> None:
        super().__init__(alpha)
        self.observations = 0

    def _state(self) -> Tuple[Any, ...]:
        return super()._state() + (self.observations,)

    @property
    def timestamp(self) -> int:
        return self.reference

    def add(self, value: float, timestamp: int) -> None:
        point = self._point(float(value), validate_coordinate(timestamp))
        point.observations = 1
        self.merge(point)

    def _merge_into(self, other: "LevelWithTime") -> None:
        if other.observations != 1:
            raise UnsupportedMerge(
                f"LevelWithTime can only absorb a single observation, got {other.observations}"
            )
        target = max(self.reference, other.reference)
        theirs = other.copy()
        theirs._shift(target - other.reference)
        self._shift(target - self.reference)
        self.value += theirs.value
        self.reference = target
        self.first_value = earliest_or_sum(self.first_value, other.first_value)
        self.observations += 1

    def _write_tail(self, writer: StateWriter) -> None:
        writer.write_uint(self.observations)

    def _read_tail(self, reader: StateReader) -> Dict[str, Any]:
        return {"observations": reader.read_uint()}


class LevelWithTimeFillGaps(_LevelBase):
    """Timestamp-indexed smoothing that fills each missing unit with the forecast.

    ``value`` is the level itself. Filling with the forecast leaves the level
    where it is, so a gap only advances the reference.
    """

    time_indexed = True

    def __init__(self, alpha: float, max_fill_gap: Optional[int] = DEFAULT_MAX_FILL_GAP) -> None:
        super().__init__(alpha)
        self.max_fill_gap = validate_max_fill_gap(max_fill_gap)

    @property
    def params(self) -> Dict[str, Any]:
        return {"alpha": self.alpha, "max_fill_gap": self.max_fill_gap}

    @property
    def timestamp(self) -> int:
        return self.reference

    def add(self, value: float, timestamp: int) -> None:
        value = float(value)
        timestamp = validate_coordinate(timestamp)
        if self.is_empty:
            self.value = value
            self.reference = timestamp
            self.first_value = TimestampedValue(value=value, timestamp=timestamp)
            return
        if timestamp <= self.reference:
            raise NonMonotonicTimestamp(
                f"timestamp {timestamp} does not advance past {self.reference}"
            )
        gap = timestamp - self.reference - 1
        if self.max_fill_gap is not None and gap > self.max_fill_gap:
            raise GapTooLarge(f"gap of {gap} exceeds max_fill_gap={self.max_fill_gap}")
        self.value = self.alpha * value + (1.0 - self.alpha) * self.value
        self.reference = timestamp

    def _shift(self, delta: int) -> None:
        pass

    def _value_at(self, coord: int) -> float:
        return self.value

    def _merge_into(self, other: "LevelWithTimeFillGaps") -> None:
        if self.reference >= other.first_value.timestamp:
            raise UnorderedMerge(
                f"state ending at {self.reference} cannot absorb a state starting at "
                f"{other.first_value.timestamp}"
            )
        if other.first_value.timestamp != other.reference:
            raise UnsupportedMerge("LevelWithTimeFillGaps can only absorb a single observation")
        self.add(other.value, other.reference)
