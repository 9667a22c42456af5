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

"""Evaluate configured aggregate functions over a pandas table."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Any, Dict, Iterator, List, Tuple

import numpy as np
import pandas as pd

from smoothing_aggregates.aggregates.function import AggregateFunction
from smoothing_aggregates.aggregates.registry import get_aggregate_function
from smoothing_aggregates.config_parsers.forecast.config_dataclass import (
    AggregateConfigBase,
    ForecastConfigData,
)
from smoothing_aggregates.exceptions import ConfigError, DataError
from smoothing_aggregates.logging_utils import log_context

logger = logging.getLogger(__name__)

__all__ = ["AggregateFailure", "AggregationRunner", "RunResult"]


@dataclass(frozen=True)
class AggregateFailure:
    group: str
    aggregate: str
    function: str
    error_type: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {
            "group": self.group,
            "aggregate": self.aggregate,
            "function": self.function,
            "error_type": self.error_type,
            "message": self.message,
        }


@dataclass
class RunResult:
    frame: pd.DataFrame
    failures: List[AggregateFailure] = field(default_factory=list)


def _split_result(result: Tuple[Any, ...]) -> Tuple[float, float, Any]:
    forecast = result[0]
    trend = result[1] if len(result) > 1 else math.nan
    seasons = list(result[2]) if len(result) > 2 else None
    return forecast, trend, seasons


class AggregationRunner:
    """Runs every enabled aggregate over each group of rows, in row order.

    ``final`` mode produces one row per group with ``<name>.forecast``,
    ``<name>.trend``, ``<name>.seasons`` and, when requested, the hex encoded
    ``<name>.state``. ``window`` mode keeps every input row and appends the
    running ``<name>.forecast`` and ``<name>.trend`` after that row.

    A data error in one (group, aggregate) pair is logged and recorded in
    :attr:`RunResult.failures`; its outputs stay NaN and the other pairs run on.
    """

    def __init__(self, config: ForecastConfigData) -> None:
        self.config = config
        self.functions: List[Tuple[AggregateConfigBase, AggregateFunction]] = []

        for cfg in config.aggregates:
            if not cfg.enabled:
                logger.info("aggregate disabled via config", extra={"aggregate": cfg.name})
                continue
            function = get_aggregate_function(
                cfg.function,
                cfg.to_params(),
                cfg.argument_count,
                max_fill_gap=config.settings.max_fill_gap,
            )
            self.functions.append((cfg, function))

    # ------------------------------------------------------------------
    def _check_columns(self, frame: pd.DataFrame) -> None:
        input_cfg = self.config.input
        required = [input_cfg.value_column, *input_cfg.group_by]
        if any(fn.uses_timestamp for _, fn in self.functions):
            required.append(input_cfg.timestamp_column)
        missing = [column for column in required if column not in frame.columns]
        if missing:
            raise ConfigError(f"input data is missing columns {missing}")

    def _groups(self, frame: pd.DataFrame) -> Iterator[Tuple[Tuple[Any, ...], pd.DataFrame]]:
        group_by = self.config.input.group_by
        if not group_by:
            yield (), frame
            return
        for key, rows in frame.groupby(group_by, sort=True, dropna=False):
            if not isinstance(key, tuple):
                key = (key,)
            yield key, rows

    def _evaluate(
        self,
        function: AggregateFunction,
        values: np.ndarray,
        timestamps: np.ndarray | None,
        running: List[Tuple[float, float]] | None,
    ) -> Any:
        """Fold the rows into a fresh state; running forecasts go to ``running`` when given."""
        state = function.create()
        for idx, value in enumerate(values):
            if function.uses_timestamp:
                function.add(state, value, timestamps[idx])
            else:
                function.add(state, value)
            if running is not None:
                forecast, trend, _ = _split_result(function.result(state))
                running.append((forecast, trend))
        return state

    # ------------------------------------------------------------------
    def run(self, frame: pd.DataFrame) -> RunResult:
        self._check_columns(frame)
        input_cfg = self.config.input
        window_mode = self.config.output.mode == "window"
        include_state = self.config.output.include_state
        failures: List[AggregateFailure] = []

        logger.info(
            "starting aggregation",
            extra={
                "rows": len(frame),
                "aggregates": [cfg.name for cfg, _ in self.functions],
                "mode": self.config.output.mode,
            },
        )

        records: List[Dict[str, Any]] = []
        window_parts: List[pd.DataFrame] = []

        for key, rows in self._groups(frame):
            label = "/".join(str(part) for part in key) or "<all>"
            values = rows[input_cfg.value_column].to_numpy()
            timestamps = (
                rows[input_cfg.timestamp_column].to_numpy()
                if input_cfg.timestamp_column is not None and input_cfg.timestamp_column in rows.columns
                else None
            )
            record: Dict[str, Any] = dict(zip(input_cfg.group_by, key))
            window_part = rows.copy() if window_mode else None

            with log_context(group=label):
                for cfg, function in self.functions:
                    with log_context(aggregate=cfg.name, function=cfg.function):
                        running: List[Tuple[float, float]] = []
                        try:
                            state = self._evaluate(
                                function, values, timestamps, running if window_mode else None
                            )
                        except DataError as exc:
                            failures.append(
                                AggregateFailure(
                                    group=label,
                                    aggregate=cfg.name,
                                    function=cfg.function,
                                    error_type=type(exc).__name__,
                                    message=str(exc),
                                )
                            )
                            logger.error(
                                "aggregate failed for group; continuing",
                                extra={"error": str(exc)},
                            )
                            state = None

                        if window_mode:
                            padded = running + [(math.nan, math.nan)] * (len(rows) - len(running))
                            window_part[f"{cfg.name}.forecast"] = [item[0] for item in padded]
                            window_part[f"{cfg.name}.trend"] = [item[1] for item in padded]
                            continue

                        if state is None:
                            forecast, trend, seasons = math.nan, math.nan, None
                        else:
                            forecast, trend, seasons = _split_result(function.result(state))
                        record[f"{cfg.name}.forecast"] = forecast
                        record[f"{cfg.name}.trend"] = trend
                        record[f"{cfg.name}.seasons"] = seasons
                        if include_state:
                            record[f"{cfg.name}.state"] = (
                                None if state is None else function.serialize(state).hex()
                            )

            if window_mode:
                window_parts.append(window_part)
            else:
                records.append(record)

        if window_mode:
            result_frame = pd.concat(window_parts) if window_parts else frame.iloc[0:0].copy()
        else:
            result_frame = pd.DataFrame.from_records(records)

        logger.info(
            "aggregation complete",
            extra={"output_rows": len(result_frame), "failures": len(failures)},
        )
        return RunResult(frame=result_frame, failures=failures)
