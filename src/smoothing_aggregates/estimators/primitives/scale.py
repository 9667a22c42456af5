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

"""Precision-stable integer powers used for every decay factor."""

from __future__ import annotations

__all__ = ["scale", "decay"]


def scale(base: float, n: int) -> float:
    """Return ``base ** n`` using exponentiation by squaring.

    ``math.pow`` rounds through ``exp``/``log`` and drifts for long gaps; squaring
    keeps the error bounded by ``O(log n)`` multiplications.
    """
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"exponent must be an int, got {type(n).__name__}")
    if n < 0:
        raise ValueError(f"exponent must be non-negative, got {n}")

    result = 1.0
    base = float(base)
    while n:
        if n & 1:
            result *= base
        n >>= 1
        if n:
            base *= base
    return result


def decay(alpha: float, n: int) -> float:
    """How much a smoothed value decays after ``n`` steps: ``(1 - alpha) ** n``."""
    return scale(1.0 - alpha, n)
