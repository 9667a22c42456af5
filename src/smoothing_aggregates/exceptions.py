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

"""Project-wide exception hierarchy."""

from __future__ import annotations


class SmoothingError(Exception):
    """Base exception for the smoothing aggregates stack."""


class ConfigError(SmoothingError):
    """Raised when user-supplied configuration is invalid."""


class InvalidParameter(ConfigError, ValueError):
    """Raised when an estimator or aggregate function is constructed with bad parameters."""


class ParameterMismatch(InvalidParameter):
    """Raised when states built with different parameters are combined."""


class InvariantViolation(SmoothingError):
    """Raised for states the hosting engine should never legitimately produce."""


class UnsupportedMerge(InvariantViolation):
    """Raised when both merge operands already hold more than one observation."""


class RemapError(InvariantViolation):
    """Raised when a state is re-expressed at a coordinate it cannot reach."""


class DataError(SmoothingError):
    """Raised for recoverable problems with the observations themselves."""


class UnorderedMerge(DataError):
    """Raised when fill-gaps merge operands have interleaved or reversed time ranges."""


class NonMonotonicTimestamp(DataError):
    """Raised when a fill-gaps estimator receives a timestamp that does not advance."""


class GapTooLarge(DataError):
    """Raised when a timestamp gap exceeds the configured fill limit."""


class InvalidTimestamp(DataError, ValueError):
    """Raised when a timestamp is not an unsigned 64-bit integer."""


class IncorrectDataError(DataError):
    """Raised by aggregate functions to report bad data together with the function name."""


class SerializationError(SmoothingError):
    """Raised when a serialized state payload cannot be decoded."""
