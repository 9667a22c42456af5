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

"""Name lookup table for the aggregate functions built on the estimators."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

from smoothing_aggregates.aggregates.function import AggregateFunction
from smoothing_aggregates.estimators import (
    DEFAULT_MAX_FILL_GAP,
    ExponentiallySmoothedAverage,
    Holt,
    HoltWinters,
    HoltWintersFillGaps,
    HoltWintersWithTime,
    HoltWithTime,
    HoltWithTimeFillGaps,
    Level,
    LevelWithTime,
    LevelWithTimeFillGaps,
    SeasonalMode,
)
from smoothing_aggregates.exceptions import InvalidParameter

logger = logging.getLogger(__name__)

__all__ = ["FunctionSpec", "FUNCTION_REGISTRY", "get_aggregate_function"]


@dataclass(frozen=True)
class FunctionSpec:
    """Parameters and per-arity estimator factories for one function name."""

    name: str
    param_names: Tuple[str, ...]
    factories: Dict[int, Callable[..., Any]] = field(default_factory=dict)
    fills_gaps: bool = False


_LEVEL_PARAMS = ("alpha",)
_HOLT_PARAMS = ("alpha", "beta")
_HOLT_WINTERS_PARAMS = ("alpha", "beta", "gamma", "seasons_count")


def _holt_winters_specs(mode: SeasonalMode, suffix: str) -> Dict[str, FunctionSpec]:
    return {
        f"HoltWinters{suffix}": FunctionSpec(
            name=f"HoltWinters{suffix}",
            param_names=_HOLT_WINTERS_PARAMS,
            factories={1: partial(HoltWinters, mode=mode)},
        ),
        f"HoltWintersWithTime{suffix}": FunctionSpec(
            name=f"HoltWintersWithTime{suffix}",
            param_names=_HOLT_WINTERS_PARAMS,
            factories={2: partial(HoltWintersWithTime, mode=mode)},
        ),
        f"HoltWintersFillGaps{suffix}": FunctionSpec(
            name=f"HoltWintersFillGaps{suffix}",
            param_names=_HOLT_WINTERS_PARAMS,
            factories={2: partial(HoltWintersFillGaps, mode=mode)},
            fills_gaps=True,
        ),
    }


FUNCTION_REGISTRY: Dict[str, FunctionSpec] = {
    "exponentialSmoothingAlpha": FunctionSpec(
        name="exponentialSmoothingAlpha",
        param_names=_LEVEL_PARAMS,
        factories={1: Level, 2: LevelWithTime},
    ),
    "exponentialSmoothingAlphaFillGaps": FunctionSpec(
        name="exponentialSmoothingAlphaFillGaps",
        param_names=_LEVEL_PARAMS,
        factories={2: LevelWithTimeFillGaps},
        fills_gaps=True,
    ),
    "Holt": FunctionSpec(
        name="Holt",
        param_names=_HOLT_PARAMS,
        factories={1: Holt, 2: HoltWithTime},
    ),
    "HoltWithTime": FunctionSpec(
        name="HoltWithTime",
        param_names=_HOLT_PARAMS,
        factories={2: HoltWithTime},
    ),
    "HoltWithTimeFillGaps": FunctionSpec(
        name="HoltWithTimeFillGaps",
        param_names=_HOLT_PARAMS,
        factories={2: HoltWithTimeFillGaps},
        fills_gaps=True,
    ),
    **_holt_winters_specs(SeasonalMode.MULTIPLY, "Multiply"),
    **_holt_winters_specs(SeasonalMode.ADDITIVE, "Additional"),
    "exponentialMovingAverage": FunctionSpec(
        name="exponentialMovingAverage",
        param_names=("half_decay_time",),
        factories={2: ExponentiallySmoothedAverage},
    ),
}
FUNCTION_REGISTRY["HoltFillGaps"] = FUNCTION_REGISTRY["HoltWithTimeFillGaps"]


def _ordered_params(spec: FunctionSpec, params: Sequence[Any] | Mapping[str, Any]) -> Tuple[Any, ...]:
    expected = len(spec.param_names)
    if isinstance(params, Mapping):
        missing = [key for key in spec.param_names if key not in params]
        extra = sorted(set(params) - set(spec.param_names))
        if missing or extra:
            raise InvalidParameter(
                f"Aggregate function {spec.name} requires parameters {list(spec.param_names)}; "
                f"missing {missing}, unexpected {extra}"
            )
        return tuple(params[key] for key in spec.param_names)
    values = tuple(params)
    if len(values) != expected:
        raise InvalidParameter(
            f"Aggregate function {spec.name} requires {expected} parameter(s) "
            f"{list(spec.param_names)}, got {len(values)}"
        )
    return values


def get_aggregate_function(
    name: str,
    params: Sequence[Any] | Mapping[str, Any],
    argument_count: int = 1,
    *,
    max_fill_gap: Optional[int] = DEFAULT_MAX_FILL_GAP,
) -> AggregateFunction:
    """Validate ``params`` and arity for ``name`` and build its aggregate function."""
    spec = FUNCTION_REGISTRY.get(name)
    if spec is None:
        raise InvalidParameter(f"Unknown aggregate function '{name}'")

    factory = spec.factories.get(argument_count)
    if factory is None:
        allowed = sorted(spec.factories)
        raise InvalidParameter(
            f"Aggregate function {name} accepts {allowed} argument(s), got {argument_count}"
        )

    values = _ordered_params(spec, params)
    kwargs: Dict[str, Any] = {"max_fill_gap": max_fill_gap} if spec.fills_gaps else {}
    try:
        prototype = factory(*values, **kwargs)
    except InvalidParameter as exc:
        raise InvalidParameter(f"Aggregate function {name}: {exc}") from exc

    logger.debug(
        "built aggregate function",
        extra={"function": name, "arguments": argument_count, "params": dict(zip(spec.param_names, values))},
    )
    return AggregateFunction(name, prototype, argument_count)
