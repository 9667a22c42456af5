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

"""Shared protocol and parameter validation for mergeable smoothing states."""

from __future__ import annotations

import copy
import math
import numbers
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from smoothing_aggregates.estimators.primitives.timestamped_value import TimestampedValue
from smoothing_aggregates.estimators.serialization import UINT64_MAX, StateReader, StateWriter
from smoothing_aggregates.exceptions import (
    InvalidParameter,
    InvalidTimestamp,
    ParameterMismatch,
    RemapError,
)

__all__ = [
    "DEFAULT_MAX_FILL_GAP",
    "SmoothedState",
    "validate_coordinate",
    "validate_max_fill_gap",
    "validate_unit_interval",
]

DEFAULT_MAX_FILL_GAP = 1_000_000


def validate_unit_interval(name: str, value: Any) -> float:
    """Return ``value`` as a float in ``[0, 1]`` or raise :class:`InvalidParameter`."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameter(f"{name} must be a real number, got {type(value).__name__}")
    value = float(value)
    if not math.isfinite(value) or not 0.0 <= value <= 1.0:
        raise InvalidParameter(f"{name} must lie in [0, 1], got {value}")
    return value


def validate_coordinate(value: Any) -> int:
    """Return ``value`` as an unsigned 64-bit coordinate or raise :class:`InvalidTimestamp`."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidTimestamp(f"timestamp must be an unsigned integer, got {value!r}")
    value = int(value)
    if not 0 <= value <= UINT64_MAX:
        raise InvalidTimestamp(f"timestamp {value} is outside the unsigned 64-bit range")
    return value


def validate_max_fill_gap(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 0:
        raise InvalidParameter(f"max_fill_gap must be a non-negative integer or None, got {value!r}")
    return int(value)


class SmoothedState(ABC):
    """A smoothing state that can be updated, merged, remapped and serialized.

    Subclasses hold ``value``, a reference coordinate (``reference``, exposed as
    ``count`` or ``timestamp``) and the optional ``first_value`` seed. A state
    without a seed is the identity element for :meth:`merge`.

    Subclasses implement:

    - ``params``: the construction arguments, used by :meth:`empty` and for
      compatibility checks.
    - ``_merge_into(other)``: fold a non-empty ``other`` into a non-empty self.
    - ``_shift(delta)``: move the reference by ``delta`` (possibly negative).
    - ``_value_at(coord)`` and ``_forecast()``: read the estimate.
    - ``_write_fields`` / ``_read_fields``: the fixed-width layout.

    ``_write_tail`` / ``_read_tail`` append bookkeeping after the layout fields;
    they are empty unless a variant needs them.
    """

    time_indexed = False

    def __init__(self) -> None:
        self.value = 0.0
        self.reference = 0
        self.first_value: Optional[TimestampedValue] = None

    @property
    @abstractmethod
    def params(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def _merge_into(self, other: "SmoothedState") -> None:
        ...

    @abstractmethod
    def _shift(self, delta: int) -> None:
        ...

    @abstractmethod
    def _value_at(self, coord: int) -> float:
        ...

    @abstractmethod
    def _forecast(self) -> float:
        ...

    @abstractmethod
    def _write_fields(self, writer: StateWriter) -> None:
        ...

    @abstractmethod
    def _read_fields(self, reader: StateReader) -> Dict[str, Any]:
        ...

    def _state(self) -> Tuple[Any, ...]:
        return (self.value, self.reference, self.first_value)

    def _write_tail(self, writer: StateWriter) -> None:
        pass

    def _read_tail(self, reader: StateReader) -> Dict[str, Any]:
        return {}

    # ------------------------------------------------------------------
    # lifecycle

    def empty(self) -> "SmoothedState":
        return type(self)(**self.params)

    @property
    def is_empty(self) -> bool:
        return self.first_value is None

    def copy(self) -> "SmoothedState":
        return copy.deepcopy(self)

    def _restore(self, other: "SmoothedState") -> None:
        self.__dict__.update(copy.deepcopy(other.__dict__))

    def _check_compatible(self, other: "SmoothedState") -> None:
        if type(other) is not type(self):
            raise ParameterMismatch(
                f"cannot combine {type(self).__name__} with {type(other).__name__}"
            )
        if other.params != self.params:
            raise ParameterMismatch(
                f"{type(self).__name__} parameters differ: {self.params} != {other.params}"
            )

    # ------------------------------------------------------------------
    # combination

    def merge(self, other: "SmoothedState") -> None:
        """Fold ``other`` into this state in place."""
        self._check_compatible(other)
        if other.is_empty:
            return
        if self.is_empty:
            self._restore(other)
            return
        self._merge_into(other)

    @staticmethod
    def merged(a: "SmoothedState", b: "SmoothedState") -> "SmoothedState":
        """Pure form of :meth:`merge`; neither operand is modified."""
        out = a.copy()
        out.merge(b)
        return out

    def remap(self, coord: int, *, rewind: bool = False) -> "SmoothedState":
        """Return a copy re-expressed at ``coord`` without adding information.

        Moving backwards is refused unless ``rewind`` is set explicitly.
        """
        coord = validate_coordinate(coord)
        if coord < self.reference and not rewind:
            raise RemapError(
                f"cannot remap {type(self).__name__} from {self.reference} back to {coord}"
            )
        out = self.copy()
        if not out.is_empty:
            out._shift(coord - self.reference)
        out.reference = coord
        return out

    # ------------------------------------------------------------------
    # readout

    def get(self, at: Optional[int] = None) -> float:
        """Forecast for the next coordinate, or the estimate at ``at``."""
        if self.is_empty:
            return math.nan
        if at is None:
            return self._forecast()
        at = validate_coordinate(at)
        if at < self.reference:
            raise RemapError(f"cannot read {type(self).__name__} at {at} before {self.reference}")
        return self._value_at(at)

    def less(self, other: "SmoothedState") -> bool:
        """Compare both estimates at the later of the two reference coordinates."""
        self._check_compatible(other)
        coord = max(self.reference, other.reference)
        return self.get(coord) < other.get(coord)

    def result(self) -> Tuple[Any, ...]:
        return (self.get(),)

    # ------------------------------------------------------------------
    # persistence

    def serialize(self) -> bytes:
        writer = StateWriter()
        self._write_fields(writer)
        self._write_tail(writer)
        return writer.getvalue()

    def deserialize(self, payload: bytes) -> None:
        """Replace this state with the one encoded in ``payload``."""
        reader = StateReader(payload)
        fields = self._read_fields(reader)
        fields.update(self._read_tail(reader))
        reader.finish()
        self.__dict__.update(fields)

    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SmoothedState):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.params == other.params
            and self._state() == other._state()
        )

    def __repr__(self) -> str:
        params = ", ".join(f"{key}={value!r}" for key, value in self.params.items())
        return f"{type(self).__name__}({params}, value={self.value!r}, reference={self.reference})"
