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

"""Adapter exposing an estimator through the aggregate-function lifecycle."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Any, Iterator, Optional, Tuple

from smoothing_aggregates.exceptions import DataError, IncorrectDataError, InvalidParameter

logger = logging.getLogger(__name__)

__all__ = ["AggregateFunction"]


class AggregateFunction:
    """Creates, updates, merges and finalizes states for one named function.

    ``prototype`` is an empty estimator carrying the validated parameters;
    every state handed out by :meth:`create` is a fresh copy of it.
    """

    def __init__(self, name: str, prototype: Any, argument_count: int) -> None:
        self.name = name
        self.prototype = prototype
        self.argument_count = argument_count

    @property
    def uses_timestamp(self) -> bool:
        return self.argument_count == 2

    @contextmanager
    def _incorrect_data(self) -> Iterator[None]:
        try:
            yield
        except IncorrectDataError:
            raise
        except DataError as exc:
            raise IncorrectDataError(
                f"Incorrect data given to aggregate function {self.name}, {exc}"
            ) from exc

    def create(self) -> Any:
        return self.prototype.empty()

    def add(self, state: Any, value: float, timestamp: Optional[int] = None) -> None:
        if self.uses_timestamp:
            if timestamp is None:
                raise InvalidParameter(f"aggregate function {self.name} requires a timestamp argument")
            with self._incorrect_data():
                state.add(value, timestamp)
            return
        if timestamp is not None:
            raise InvalidParameter(f"aggregate function {self.name} takes a single argument")
        with self._incorrect_data():
            state.add(value)

    def merge(self, state: Any, other: Any) -> None:
        with self._incorrect_data():
            state.merge(other)

    def serialize(self, state: Any) -> bytes:
        return state.serialize()

    def deserialize(self, payload: bytes) -> Any:
        state = self.create()
        state.deserialize(payload)
        return state

    def result(self, state: Any) -> Tuple[Any, ...]:
        return state.result()

    def __repr__(self) -> str:
        return f"AggregateFunction(name={self.name!r}, arguments={self.argument_count}, prototype={self.prototype!r})"
