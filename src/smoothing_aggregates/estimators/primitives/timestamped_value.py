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

"""Seed samples tagged with the coordinate they were observed at."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

__all__ = ["TimestampedValue", "earliest_or_sum", "latest_or_empty"]


@dataclass(frozen=True)
class TimestampedValue:
    """A value observed at an unsigned integer coordinate (timestamp or count)."""

    value: float
    timestamp: int


def earliest_or_sum(
    a: Optional[TimestampedValue],
    b: Optional[TimestampedValue],
) -> Optional[TimestampedValue]:
    """Keep the earlier seed; two seeds at the same coordinate combine additively."""
    if a is None:
        return b
    if b is None:
        return a
    if a.timestamp == b.timestamp:
        return TimestampedValue(value=a.value + b.value, timestamp=a.timestamp)
    return a if a.timestamp < b.timestamp else b


def latest_or_empty(
    a: Optional[TimestampedValue],
    b: Optional[TimestampedValue],
) -> Optional[TimestampedValue]:
    """Keep the later sample; coinciding samples cancel to ``None``."""
    if a is None:
        return b
    if b is None:
        return a
    if a.timestamp == b.timestamp:
        return None
    return a if a.timestamp > b.timestamp else b
