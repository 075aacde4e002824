"""Unit tests for compute_mapping()."""

from __future__ import annotations

import random

import pytest

from axisstats.errors import UnsupportedScalePolicyError
from axisstats.scaling.policy import ScalePolicy, ScaleSpec, WeightSource
from axisstats.scaling.scale_mapper import compute_mapping
from axisstats.scaling.world_key import pack_key


# ---------------------------------------------------------------------------
# Degenerate key sets
# ---------------------------------------------------------------------------

def test_empty_keys_give_empty_mapping() -> None:
    assert compute_mapping(ScalePolicy.LINEAR, []) == {}


def test_single_key_maps_to_center() -> None:
    assert compute_mapping(ScalePolicy.LOG, [42]) == {42: 0.5}


def test_two_keys_map_to_fixed_positions() -> None:
    assert compute_mapping(ScalePolicy.EQUAL_RANK, [900, -3]) == {-3: 0.10, 900: 0.90}


def test_duplicates_collapse_before_bypass() -> None:
    assert compute_mapping(ScalePolicy.LINEAR, [7, 7, 9, 9, 9]) == {7: 0.10, 9: 0.90}


def test_two_keys_ignore_weights_for_descending_sort() -> None:
    """The bypass runs before the policy, so weights cannot reorder two keys."""
    weights = {"1": 100.0, "2": 1.0}
    mapping = compute_mapping(ScalePolicy.SORT_DESCENDING, [1, 2], weights=weights)
    assert mapping == {1: 0.10, 2: 0.90}


def test_bypass_accepts_unknown_policy_and_missing_weights() -> None:
    assert compute_mapping("not-a-policy", [5]) == {5: 0.5}
    assert compute_mapping(ScalePolicy.SORT_ASCENDING, [5, 6]) == {5: 0.10, 6: 0.90}


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------

def test_linear_with_bounds() -> None:
    mapping = compute_mapping(ScalePolicy.LINEAR, {0, 50, 100}, min_bound=0, max_bound=100)
    assert mapping == {0: 0.0, 50: 0.5, 100: 1.0}


def test_linear_bounds_default_to_key_range() -> None:
    mapping = compute_mapping(ScalePolicy.LINEAR, [10, 20, 40])
    assert mapping[10] == 0.0
    assert mapping[20] == pytest.approx(1 / 3)
    assert mapping[40] == 1.0


def test_linear_equal_bounds_map_everything_to_center() -> None:
    mapping = compute_mapping(ScalePolicy.LINEAR, [1, 2, 3], min_bound=5, max_bound=5)
    assert mapping == {1: 0.5, 2: 0.5, 3: 0.5}


def test_linear_on_packed_keys_keeps_order() -> None:
    keys = [pack_key(1, 0), pack_key(1, 5), pack_key(2, 0)]
    mapping = compute_mapping(ScalePolicy.LINEAR, keys)
    assert mapping[keys[0]] == 0.0
    assert 0.0 < mapping[keys[1]] < 0.01
    assert mapping[keys[2]] == 1.0


def test_equal_rank_five_keys() -> None:
    mapping = compute_mapping(ScalePolicy.EQUAL_RANK, [300, 1, 20, 4000, 55])
    assert [mapping[k] for k in sorted(mapping)] == [0.0, 0.25, 0.5, 0.75, 1.0]


def test_log_clamps_min_bound_to_one() -> None:
    mapping = compute_mapping(ScalePolicy.LOG, [1, 10, 100])
    assert mapping[1] == 0.0
    assert mapping[10] == pytest.approx(0.5)
    assert mapping[100] == pytest.approx(1.0)


def test_log_maps_non_positive_keys_to_zero() -> None:
    mapping = compute_mapping(ScalePolicy.LOG, [-5, 0, 10, 100])
    assert mapping[-5] == 0.0
    assert mapping[0] == 0.0
    assert mapping[10] == pytest.approx(0.5)
    assert mapping[100] == pytest.approx(1.0)


def test_log_zero_span_falls_back_to_center() -> None:
    mapping = compute_mapping(ScalePolicy.LOG, [0, 1, 5], min_bound=5, max_bound=5)
    assert mapping[0] == 0.0
    assert mapping[1] == 0.0
    assert mapping[5] == 0.5


@pytest.mark.parametrize("policy", [ScalePolicy.LINEAR, ScalePolicy.LOG, ScalePolicy.EQUAL_RANK])
def test_key_policies_are_monotonic(policy: ScalePolicy) -> None:
    rng = random.Random(1234)
    keys = rng.sample(range(-1000, 100000), 200)
    mapping = compute_mapping(policy, keys)
    assert set(mapping) == set(keys)
    values = [mapping[k] for k in sorted(keys)]
    assert all(a <= b for a, b in zip(values, values[1:]))
    assert all(0.0 <= v <= 1.0 for v in values)


def test_sort_ascending_breaks_ties_by_key_ascending() -> None:
    weights = {"1": 5.0, "2": 5.0, "3": 1.0, "4": 9.0}
    mapping = compute_mapping(ScalePolicy.SORT_ASCENDING, [1, 2, 3, 4], weights=weights)
    assert mapping[3] == 0.0
    assert mapping[1] == pytest.approx(1 / 3)
    assert mapping[2] == pytest.approx(2 / 3)
    assert mapping[4] == 1.0


def test_sort_descending_breaks_ties_by_key_descending() -> None:
    weights = {"1": 5.0, "2": 5.0, "3": 1.0, "4": 9.0}
    mapping = compute_mapping(ScalePolicy.SORT_DESCENDING, [1, 2, 3, 4], weights=weights)
    assert mapping[4] == 0.0
    # Tied weights: the larger key comes first when descending.
    assert mapping[2] == pytest.approx(1 / 3)
    assert mapping[1] == pytest.approx(2 / 3)
    assert mapping[3] == 1.0


def test_sort_three_keys_with_tie() -> None:
    weights = {"1": 5.0, "2": 5.0, "3": 1.0}
    asc = compute_mapping(ScalePolicy.SORT_ASCENDING, {1, 2, 3}, weights=weights)
    desc = compute_mapping(ScalePolicy.SORT_DESCENDING, {1, 2, 3}, weights=weights)
    assert asc == {3: 0.0, 1: 0.5, 2: 1.0}
    assert desc == {2: 0.0, 1: 0.5, 3: 1.0}


def test_sort_missing_weight_counts_as_zero() -> None:
    mapping = compute_mapping(ScalePolicy.SORT_ASCENDING, [1, 2, 3], weights={"1": 2.0, "2": 3.0})
    assert mapping == {3: 0.0, 1: 0.5, 2: 1.0}


def test_sort_accepts_int_keyed_weights() -> None:
    mapping = compute_mapping(ScalePolicy.SORT_ASCENDING, [1, 2, 3], weights={1: 3.0, 2: 2.0, 3: 1.0})
    assert mapping == {3: 0.0, 2: 0.5, 1: 1.0}


def test_sort_without_weights_raises() -> None:
    with pytest.raises(ValueError):
        compute_mapping(ScalePolicy.SORT_ASCENDING, [1, 2, 3])


def test_policy_given_as_spec_or_label() -> None:
    weights = {"1": 1.0, "2": 2.0, "3": 3.0}
    by_spec = compute_mapping(
        ScaleSpec(ScalePolicy.SORT_DESCENDING, WeightSource.ITEM_COUNT), [1, 2, 3], weights=weights
    )
    by_label = compute_mapping("Sort Rec (R)", [1, 2, 3], weights=weights)
    assert by_spec == by_label == {3: 0.0, 2: 0.5, 1: 1.0}


def test_unknown_policy_raises_with_three_keys() -> None:
    with pytest.raises(UnsupportedScalePolicyError) as exc_info:
        compute_mapping("spiral", [1, 2, 3])
    assert exc_info.value.policy == "spiral"
    assert isinstance(exc_info.value, NotImplementedError)
