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

"""Algebraic properties shared by every estimator: identity, splits, remap."""

from __future__ import annotations

import numpy as np
import pytest

from smoothing_aggregates.estimators import (
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
    SmoothedState,
)
from smoothing_aggregates.exceptions import ParameterMismatch, UnsupportedMerge

COUNT_ESTIMATORS = [
    pytest.param(lambda: Level(0.3), id="level"),
    pytest.param(lambda: Holt(0.3, 0.2), id="holt"),
    pytest.param(lambda: HoltWinters(0.3, 0.2, 0.1, 3, SeasonalMode.MULTIPLY), id="hw_multiply"),
    pytest.param(lambda: HoltWinters(0.3, 0.2, 0.1, 3, SeasonalMode.ADDITIVE), id="hw_additive"),
]

TIME_ESTIMATORS = [
    pytest.param(lambda: LevelWithTime(0.3), id="level_with_time"),
    pytest.param(lambda: LevelWithTimeFillGaps(0.3), id="level_fill_gaps"),
    pytest.param(lambda: HoltWithTime(0.3, 0.2), id="holt_with_time"),
    pytest.param(lambda: HoltWithTimeFillGaps(0.3, 0.2), id="holt_fill_gaps"),
    pytest.param(lambda: HoltWintersWithTime(0.3, 0.2, 0.1, 4, SeasonalMode.MULTIPLY), id="hw_with_time"),
    pytest.param(lambda: HoltWintersFillGaps(0.3, 0.2, 0.1, 4, SeasonalMode.ADDITIVE), id="hw_fill_gaps"),
]


def _observations(rng, size=12):
    values = rng.uniform(1.0, 10.0, size=size).tolist()
    timestamps = np.cumsum(rng.integers(1, 4, size=size)).tolist()
    return values, timestamps


def _build_count(factory, values):
    state = factory()
    for value in values:
        state.add(value)
    return state


def _build_time(factory, values, timestamps):
    state = factory()
    for value, ts in zip(values, timestamps):
        state.add(value, ts)
    return state


@pytest.mark.parametrize("factory", COUNT_ESTIMATORS)
def test_count_identity(factory, rng):
    """Merging with an empty state on either side changes nothing."""
    values, _ = _observations(rng)
    state = _build_count(factory, values)
    empty = factory()
    assert SmoothedState.merged(empty, state) == state
    assert SmoothedState.merged(state, empty) == state


@pytest.mark.parametrize("factory", TIME_ESTIMATORS)
def test_time_identity(factory, rng):
    """Merging with an empty state on either side changes nothing."""
    values, timestamps = _observations(rng)
    state = _build_time(factory, values, timestamps)
    empty = factory()
    assert SmoothedState.merged(empty, state) == state
    assert SmoothedState.merged(state, empty) == state


@pytest.mark.parametrize("factory", COUNT_ESTIMATORS)
def test_count_sequential_equivalence_at_every_split(factory, rng):
    """Adding a prefix and merging the rest point by point equals adding everything."""
    values, _ = _observations(rng)
    expected = _build_count(factory, values)
    for split in range(len(values) + 1):
        state = _build_count(factory, values[:split])
        for value in values[split:]:
            state.merge(_build_count(factory, [value]))
        assert state == expected


@pytest.mark.parametrize("factory", TIME_ESTIMATORS)
def test_time_sequential_equivalence_at_every_split(factory, rng):
    """Adding a prefix and merging the rest point by point equals adding everything."""
    values, timestamps = _observations(rng)
    expected = _build_time(factory, values, timestamps)
    for split in range(len(values) + 1):
        state = _build_time(factory, values[:split], timestamps[:split])
        for value, ts in zip(values[split:], timestamps[split:]):
            state.merge(_build_time(factory, [value], [ts]))
        assert state == expected


GAP_IGNORING_ESTIMATORS = [
    pytest.param(lambda: LevelWithTime(0.3), id="level_with_time"),
    pytest.param(lambda: HoltWithTime(0.3, 0.2), id="holt_with_time"),
    pytest.param(lambda: HoltWintersWithTime(0.3, 0.2, 0.1, 4, SeasonalMode.ADDITIVE), id="hw_with_time"),
]


@pytest.mark.parametrize("factory", GAP_IGNORING_ESTIMATORS)
def test_shared_timestamp_splits_merge_singletons_and_refuse_blocks(factory, rng):
    """With repeated timestamps, single observations merge exactly and larger blocks are refused."""
    values = rng.uniform(1.0, 10.0, size=12).tolist()
    timestamps = np.cumsum(rng.integers(0, 3, size=12)).tolist()
    timestamps[2] = timestamps[1]
    expected = _build_time(factory, values, timestamps)

    for split in range(len(values) + 1):
        state = _build_time(factory, values[:split], timestamps[:split])
        for value, ts in zip(values[split:], timestamps[split:]):
            state.merge(_build_time(factory, [value], [ts]))
        assert state == expected

        if split and len(values) - split >= 2:
            block = _build_time(factory, values[split:], timestamps[split:])
            with pytest.raises(UnsupportedMerge):
                _build_time(factory, values[:split], timestamps[:split]).merge(block)


@pytest.mark.parametrize("factory", TIME_ESTIMATORS)
def test_split_through_serialization(factory, rng):
    """A state shipped as bytes mid-stream continues exactly as the original would."""
    values, timestamps = _observations(rng)
    expected = _build_time(factory, values, timestamps)
    split = len(values) // 2
    partial = _build_time(factory, values[:split], timestamps[:split])
    shipped = factory()
    shipped.deserialize(partial.serialize())
    for value, ts in zip(values[split:], timestamps[split:]):
        shipped.add(value, ts)
    assert shipped == expected


@pytest.mark.parametrize("factory", COUNT_ESTIMATORS)
def test_count_remap_round_trip(factory, rng):
    """Remapping forward then rewinding lands where a direct remap does."""
    values, _ = _observations(rng)
    state = _build_count(factory, values)
    t0 = state.reference + 2
    t1 = state.reference + 7
    round_trip = state.remap(t1).remap(t0, rewind=True)
    direct = state.remap(t0)
    assert round_trip.reference == direct.reference == t0
    assert round_trip.value == pytest.approx(direct.value, rel=1e-9, abs=1e-9)
    assert round_trip.get() == pytest.approx(direct.get(), rel=1e-9, abs=1e-9)


@pytest.mark.parametrize("factory", TIME_ESTIMATORS)
def test_time_remap_round_trip(factory, rng):
    """Remapping forward then rewinding restores the level and forecast."""
    values, timestamps = _observations(rng)
    state = _build_time(factory, values, timestamps)
    t0 = state.reference
    t1 = state.reference + 5
    round_trip = state.remap(t1).remap(t0, rewind=True)
    assert round_trip.value == pytest.approx(state.value, rel=1e-9, abs=1e-9)
    assert round_trip.get() == pytest.approx(state.get(), rel=1e-9, abs=1e-9)


@pytest.mark.parametrize("factory", COUNT_ESTIMATORS + TIME_ESTIMATORS)
def test_merge_across_types_or_parameters_raises(factory):
    """Merging or comparing different estimator kinds raises ParameterMismatch."""
    state = factory()
    other = Holt(0.9, 0.9) if not isinstance(state, Holt) else Level(0.9)
    with pytest.raises(ParameterMismatch):
        state.merge(other)
    with pytest.raises(ParameterMismatch):
        state.less(other)


def test_less_compares_at_later_reference():
    """less() projects both states to the later reference before comparing."""
    rising = Holt(0.5, 0.5)
    for value in (1.0, 2.0):
        rising.add(value)
    flat = Holt(0.5, 0.5)
    for value in (3.0, 3.0, 3.0, 3.0):
        flat.add(value)
    # projected to count 4, the rising series reaches 4 and overtakes the flat one
    assert flat.less(rising)
    assert not rising.less(flat)


def test_less_with_empty_state_is_false():
    """An empty state is neither less nor greater than anything."""
    state = LevelWithTime(0.5)
    state.add(1.0, 3)
    assert not state.less(state.empty())
    assert not state.empty().less(state)
