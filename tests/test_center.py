"""Tests for global and blocked centering."""

import numpy as np
import pytest

from sizefactors.centering import center, center_blocked, compute_blocked_mean, compute_mean
from sizefactors.config import BlockMode, CenterOptions
from sizefactors.sanitize import Diagnostics


def test_center_positive_values_has_unit_mean():
    rng = np.random.default_rng(42)
    sf = rng.uniform(0.1, 5.0, 200)
    original_mean = sf.mean()

    mean = center(sf)

    assert mean == pytest.approx(original_mean)
    assert sf.mean() == pytest.approx(1.0)


def test_center_is_idempotent():
    rng = np.random.default_rng(0)
    sf = rng.lognormal(size=100)
    center(sf)
    once = sf.copy()

    mean = center(sf)

    assert mean == pytest.approx(1.0)
    np.testing.assert_allclose(sf, once)


def test_center_all_zero_is_noop():
    sf = np.zeros(5)
    diag = Diagnostics()

    mean = center(sf, diag)

    assert mean == 0.0
    np.testing.assert_array_equal(sf, np.zeros(5))
    assert diag.has_zero


def test_center_empty_array():
    sf = np.array([], dtype=np.float64)
    assert center(sf) == 0.0
    assert compute_mean(sf, options=CenterOptions(ignore_invalid=False)) == 0.0


def test_ignore_invalid_skips_and_reports():
    sf = np.array([1.0, -1.0, np.nan, 3.0])
    diag = Diagnostics()

    mean = center(sf, diag, CenterOptions(ignore_invalid=True))

    assert mean == pytest.approx(2.0)
    assert diag.has_negative
    assert diag.has_nan
    assert not diag.has_zero
    assert not diag.has_infinite
    # Invalid entries are divided, not replaced.
    np.testing.assert_allclose(sf, [0.5, -0.5, np.nan, 1.5], equal_nan=True)


def test_no_filtering_propagates_nan_mean():
    sf = np.array([1.0, -1.0, np.nan, 3.0])
    diag = Diagnostics()

    mean = center(sf, diag, CenterOptions(ignore_invalid=False))

    # A NaN mean is truthy, so the division is applied.
    assert np.isnan(mean)
    assert np.all(np.isnan(sf))
    assert not diag.any_invalid


def test_diagnostics_optional_and_accumulate():
    assert compute_mean(np.array([0.0, 2.0])) == pytest.approx(2.0)

    diag = Diagnostics()
    compute_mean(np.array([0.0, 2.0]), diag)
    compute_mean(np.array([np.inf, 2.0]), diag)
    assert diag.has_zero
    assert diag.has_infinite


def test_custom_classifier_is_used():
    def drop_large(values, diagnostics):
        return values > 10

    sf = np.array([1.0, 3.0, 100.0])
    mean = center(sf, classifier=drop_large)

    assert mean == pytest.approx(2.0)
    np.testing.assert_allclose(sf, [0.5, 1.5, 50.0])


def test_scalar_classifier_runs_per_value():
    from sizefactors.sanitize import elementwise, is_invalid

    sf = np.array([1.0, -1.0, 3.0])
    diag = Diagnostics()

    mean = center(sf, diag, classifier=is_invalid)

    assert mean == pytest.approx(2.0)
    assert diag.has_negative
    np.testing.assert_allclose(sf, [0.5, -0.5, 1.5])

    seen = []

    @elementwise
    def non_positive(value, diagnostics):
        seen.append(value)
        return not value > 0

    block = np.array([0, 0, 1, 1])
    means = compute_blocked_mean(np.array([2.0, 0.0, 4.0, 8.0]), block, classifier=non_positive)

    assert seen == [2.0, 0.0, 4.0, 8.0]
    np.testing.assert_allclose(means, [2.0, 6.0])


def test_center_preserves_float32():
    sf = np.array([1.0, 2.0, 3.0], dtype=np.float32)
    center(sf)
    assert sf.dtype == np.float32
    np.testing.assert_allclose(sf, [0.5, 1.0, 1.5], rtol=1e-6)


def test_center_rejects_non_buffers():
    with pytest.raises(TypeError, match="numpy array"):
        center([1.0, 2.0])
    with pytest.raises(TypeError, match="floating-point"):
        center(np.array([1, 2, 3]))
    with pytest.raises(ValueError, match="one-dimensional"):
        center(np.ones((2, 2)))


# ----------------------------------------------------------------------
# Blocked
# ----------------------------------------------------------------------


def test_blocked_mean_does_not_mutate():
    sf = np.array([1.0, 3.0, 10.0, 20.0])
    block = np.array([0, 0, 1, 1])

    means = compute_blocked_mean(sf, block)

    np.testing.assert_allclose(means, [2.0, 15.0])
    np.testing.assert_array_equal(sf, [1.0, 3.0, 10.0, 20.0])


def test_blocked_mean_empty_blocks_are_zero():
    sf = np.array([2.0, 4.0])
    block = np.array([0, 2])

    means = compute_blocked_mean(sf, block, num_blocks=4)

    np.testing.assert_allclose(means, [2.0, 0.0, 4.0, 0.0])


def test_blocked_mean_ignores_invalid():
    sf = np.array([2.0, np.nan, 0.0, 4.0, -1.0])
    block = np.array([0, 0, 1, 1, 1])
    diag = Diagnostics()

    means = compute_blocked_mean(sf, block, diag)

    np.testing.assert_allclose(means, [2.0, 4.0])
    assert diag.has_nan and diag.has_zero and diag.has_negative


def test_per_block_matches_separate_centering():
    rng = np.random.default_rng(7)
    sf = rng.uniform(0.2, 4.0, 60)
    block = rng.integers(0, 3, 60)
    opts = CenterOptions(block_mode=BlockMode.PER_BLOCK)

    blocked = sf.copy()
    means = center_blocked(blocked, block, options=opts)

    for b in range(3):
        subset = sf[block == b].copy()
        m = center(subset)
        assert means[b] == pytest.approx(m)
        np.testing.assert_allclose(blocked[block == b], subset)


def test_per_block_leaves_zero_mean_block():
    sf = np.array([2.0, 4.0, 0.0, 0.0])
    block = np.array([0, 0, 1, 1])

    means = center_blocked(sf, block, options=CenterOptions(block_mode="per_block"))

    np.testing.assert_allclose(means, [3.0, 0.0])
    np.testing.assert_allclose(sf, [2 / 3, 4 / 3, 0.0, 0.0])


def test_per_block_nan_mean_without_filtering():
    sf = np.array([np.nan, 1.0, 2.0, 4.0])
    block = np.array([0, 0, 1, 1])
    opts = CenterOptions(block_mode=BlockMode.PER_BLOCK, ignore_invalid=False)

    center_blocked(sf, block, options=opts)

    assert np.all(np.isnan(sf[:2]))
    np.testing.assert_allclose(sf[2:], [2 / 3, 4 / 3])


def test_lowest_scales_by_smallest_block_mean():
    sf = np.array([1.0, 3.0, 2.0, 6.0, 4.0, 12.0])
    block = np.array([0, 0, 1, 1, 2, 2])

    means = center_blocked(sf, block, options=CenterOptions(block_mode=BlockMode.LOWEST))

    np.testing.assert_allclose(means, [2.0, 4.0, 8.0])
    assert sf[block == 0].mean() == pytest.approx(1.0)
    assert sf[block == 1].mean() == pytest.approx(2.0)
    assert sf[block == 2].mean() == pytest.approx(4.0)


def test_lowest_is_default_mode():
    sf = np.array([1.0, 3.0, 8.0])
    block = np.array([0, 0, 1])

    center_blocked(sf, block)

    np.testing.assert_allclose(sf, [0.5, 1.5, 4.0])


def test_lowest_skips_zero_mean_blocks():
    sf = np.array([0.0, 0.0, 4.0, 8.0])
    block = np.array([0, 0, 2, 2])

    means = center_blocked(sf, block)

    np.testing.assert_allclose(means, [0.0, 0.0, 6.0])
    np.testing.assert_allclose(sf, [0.0, 0.0, 4 / 6, 8 / 6])


def test_lowest_all_zero_is_noop():
    sf = np.zeros(4)
    block = np.array([0, 1, 1, 2])

    means = center_blocked(sf, block)

    np.testing.assert_array_equal(means, np.zeros(3))
    np.testing.assert_array_equal(sf, np.zeros(4))


def test_lowest_never_picks_nan_mean():
    sf = np.array([np.nan, 1.0, 2.0, 2.0])
    block = np.array([0, 0, 1, 1])
    opts = CenterOptions(ignore_invalid=False)

    means = center_blocked(sf, block, options=opts)

    assert np.isnan(means[0])
    np.testing.assert_allclose(sf, [np.nan, 0.5, 1.0, 1.0], equal_nan=True)


def test_lowest_never_picks_negative_mean():
    sf = np.array([-4.0, 2.0, 2.0, 6.0])
    block = np.array([0, 0, 1, 1])
    opts = CenterOptions(ignore_invalid=False)

    means = center_blocked(sf, block, options=opts)

    np.testing.assert_allclose(means, [-1.0, 4.0])
    np.testing.assert_allclose(sf, [-1.0, 0.5, 0.5, 1.5])


def test_blocked_validates_labels():
    sf = np.ones(3)
    with pytest.raises(ValueError, match="Length mismatch"):
        center_blocked(sf, np.array([0, 1]))
    with pytest.raises(ValueError, match="non-negative"):
        center_blocked(sf, np.array([0, -1, 1]))
    with pytest.raises(TypeError, match="integers"):
        center_blocked(sf, np.array([0.0, 1.0, 1.0]))
    with pytest.raises(ValueError, match="num_blocks"):
        compute_blocked_mean(sf, np.array([0, 1, 2]), num_blocks=2)


def test_count_groups():
    from sizefactors._utils import count_groups

    assert count_groups(np.array([], dtype=int)) == 0
    assert count_groups(np.array([0, 3, 1])) == 4
