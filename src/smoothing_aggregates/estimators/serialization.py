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

"""Flat, versionless, little-endian codec for smoothed states."""

from __future__ import annotations

import struct
from typing import Optional

import numpy as np

from smoothing_aggregates.estimators.primitives.timestamped_value import TimestampedValue
from smoothing_aggregates.exceptions import SerializationError

__all__ = ["StateWriter", "StateReader", "UINT64_MAX"]

UINT64_MAX = (1 << 64) - 1

_FLOAT = struct.Struct("<d")
_UINT = struct.Struct("<Q")
_BOOL = struct.Struct("<?")
_SEASON_DTYPE = np.dtype("<f8")


class StateWriter:
    """Appends fixed-width fields in the order a state declares them."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write_float(self, value: float) -> None:
        self._buffer += _FLOAT.pack(float(value))

    def write_uint(self, value: int) -> None:
        if not 0 <= value <= UINT64_MAX:
            raise SerializationError(f"coordinate {value} does not fit in an unsigned 64-bit field")
        self._buffer += _UINT.pack(value)

    def write_bool(self, value: bool) -> None:
        self._buffer += _BOOL.pack(bool(value))

    def write_optional(self, sample: Optional[TimestampedValue]) -> None:
        """Write a (value, coordinate, present) triple; absent samples are zero-filled."""
        if sample is None:
            self.write_float(0.0)
            self.write_uint(0)
            self.write_bool(False)
            return
        self.write_float(sample.value)
        self.write_uint(sample.timestamp)
        self.write_bool(True)

    def write_seasons(self, seasons: Optional[np.ndarray]) -> None:
        if seasons is None:
            self.write_bool(False)
            return
        self.write_bool(True)
        self._buffer += np.ascontiguousarray(seasons, dtype=_SEASON_DTYPE).tobytes()

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


class StateReader:
    """Reads fields back in declaration order, rejecting truncated payloads."""

    def __init__(self, payload: bytes) -> None:
        self._view = memoryview(bytes(payload))
        self._offset = 0

    def _take(self, size: int) -> memoryview:
        end = self._offset + size
        if end > len(self._view):
            raise SerializationError(
                f"truncated state payload: need {end} bytes, got {len(self._view)}"
            )
        chunk = self._view[self._offset:end]
        self._offset = end
        return chunk

    def read_float(self) -> float:
        return _FLOAT.unpack(self._take(_FLOAT.size))[0]

    def read_uint(self) -> int:
        return _UINT.unpack(self._take(_UINT.size))[0]

    def read_bool(self) -> bool:
        return _BOOL.unpack(self._take(_BOOL.size))[0]

    def read_optional(self) -> Optional[TimestampedValue]:
        value = self.read_float()
        timestamp = self.read_uint()
        present = self.read_bool()
        if not present:
            return None
        return TimestampedValue(value=value, timestamp=timestamp)

    def read_seasons(self, seasons_count: int) -> Optional[np.ndarray]:
        if not self.read_bool():
            return None
        raw = self._take(_SEASON_DTYPE.itemsize * seasons_count)
        return np.frombuffer(raw, dtype=_SEASON_DTYPE).astype(np.float64)

    def finish(self) -> None:
        remaining = len(self._view) - self._offset
        if remaining:
            raise SerializationError(f"unexpected {remaining} trailing bytes in state payload")
