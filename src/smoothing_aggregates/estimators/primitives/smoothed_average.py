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

"""Continuous-time exponentially decaying average with exact remap and merge."""

from __future__ import annotations

import math
import numbers
from typing import Any

from smoothing_aggregates.estimators.serialization import StateReader, StateWriter
from smoothing_aggregates.exceptions import InvalidParameter, ParameterMismatch

__all__ = ["ExponentiallySmoothedAverage", "validate_half_decay_time"]


def validate_half_decay_time(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameter(f"half_decay_time must be a real number, got {type(value).__name__}")
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise InvalidParameter(f"half_decay_time must be positive and finite, got {value}")
    return value


class ExponentiallySmoothedAverage:
    """Decaying sum over float time, normalised by the weight of a unit-spaced stream.

    ``value`` holds the sum of observations, each decayed to ``time`` by
    ``2 ** (-age / half_decay_time)``. An empty average has ``value == 0`` and
    ``time == -inf`` so it is the identity for :meth:`merge`.
    """

    def __init__(self, half_decay_time: float) -> None:
        self.half_decay_time = validate_half_decay_time(half_decay_time)
        self.value = 0.0
        self.time = -math.inf

    @property
    def params(self) -> dict:
        return {"half_decay_time": self.half_decay_time}

    @property
    def is_empty(self) -> bool:
        return self.time == -math.inf

    def empty(self) -> "ExponentiallySmoothedAverage":
        return type(self)(self.half_decay_time)

    def copy(self) -> "ExponentiallySmoothedAverage":
        clone = self.empty()
        clone.value = self.value
        clone.time = self.time
        return clone

    def scale(self, time_passed: float) -> float:
        return 2.0 ** (-time_passed / self.half_decay_time)

    def sum_weights(self) -> float:
        """Total weight of an infinite stream of observations one time unit apart."""
        return 1.0 / (1.0 - self.scale(1.0))

    def _value_at(self, time: float) -> float:
        if self.is_empty:
            return 0.0
        return self.value * self.scale(time - self.time)

    def remap(self, time: float) -> "ExponentiallySmoothedAverage":
        """Re-express the average at ``time``; both directions are exact."""
        out = self.copy()
        out.value = self._value_at(float(time))
        out.time = float(time)
        return out

    def merge(self, other: "ExponentiallySmoothedAverage") -> None:
        if not isinstance(other, ExponentiallySmoothedAverage) or other.params != self.params:
            raise ParameterMismatch(f"cannot merge {other!r} into {self!r}")
        if other.is_empty:
            return
        if self.is_empty:
            self.value, self.time = other.value, other.time
            return
        if self.time >= other.time:
            self.value += other._value_at(self.time)
        else:
            self.value = self._value_at(other.time) + other.value
            self.time = other.time

    @staticmethod
    def merged(
        a: "ExponentiallySmoothedAverage", b: "ExponentiallySmoothedAverage"
    ) -> "ExponentiallySmoothedAverage":
        out = a.copy()
        out.merge(b)
        return out

    def add(self, value: float, time: float) -> None:
        point = self.empty()
        point.value = float(value)
        point.time = float(time)
        self.merge(point)

    def get(self, at: float | None = None) -> float:
        if self.is_empty:
            return 0.0
        value = self.value if at is None else self._value_at(float(at))
        return value / self.sum_weights()

    def less(self, other: "ExponentiallySmoothedAverage") -> bool:
        """Compare both averages at the later of their two reference times."""
        if other.params != self.params:
            raise ParameterMismatch(f"cannot compare {other!r} with {self!r}")
        time = max(self.time, other.time)
        return self._value_at(time) < other._value_at(time)

    def result(self) -> tuple:
        return (self.get(),)

    def serialize(self) -> bytes:
        writer = StateWriter()
        writer.write_float(self.value)
        writer.write_float(self.time)
        return writer.getvalue()

    def deserialize(self, payload: bytes) -> None:
        reader = StateReader(payload)
        value = reader.read_float()
        time = reader.read_float()
        reader.finish()
        self.value, self.time = value, time

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExponentiallySmoothedAverage):
            return NotImplemented
        return (self.params, self.value, self.time) == (other.params, other.value, other.time)

    def __repr__(self) -> str:
        return (
            f"ExponentiallySmoothedAverage(half_decay_time={self.half_decay_time}, "
            f"value={self.value}, time={self.time})"
        )
