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

"""Top-level exports for the smoothing_aggregates package."""

__all__ = [
    "ExponentiallySmoothedAverage",
    "Holt",
    "HoltWinters",
    "HoltWintersFillGaps",
    "HoltWintersWithTime",
    "HoltWithTime",
    "HoltWithTimeFillGaps",
    "Level",
    "LevelWithTime",
    "LevelWithTimeFillGaps",
    "SeasonalMode",
    "get_aggregate_function",
    "run_forecast",
]

_ESTIMATORS = {
    "ExponentiallySmoothedAverage",
    "Holt",
    "HoltWinters",
    "HoltWintersFillGaps",
    "HoltWintersWithTime",
    "HoltWithTime",
    "HoltWithTimeFillGaps",
    "Level",
    "LevelWithTime",
    "LevelWithTimeFillGaps",
    "SeasonalMode",
}


def __getattr__(name):
    """Lazily import heavy submodules when their symbols are first accessed."""
    if name in _ESTIMATORS:
        from smoothing_aggregates import estimators

        globals().update({key: getattr(estimators, key) for key in _ESTIMATORS})
        return globals()[name]

    if name == "get_aggregate_function":
        from smoothing_aggregates.aggregates.registry import get_aggregate_function
        globals()["get_aggregate_function"] = get_aggregate_function
        return get_aggregate_function

    if name == "run_forecast":
        from smoothing_aggregates.workflow import run_forecast
        globals()["run_forecast"] = run_forecast
        return run_forecast

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
