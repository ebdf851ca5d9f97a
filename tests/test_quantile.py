import math

import numpy as np
import pytest

from mcs import ContractViolationWarning
from mcs.constants import EQ
from mcs.quantile import (
    quantile_rank_bounds,
    quantile_slop,
    quantile_slop_hi,
    quantile_slop_lo,
    quantile_value_bounds,
)
from mcs.threshold import threshold, threshold_span


def test_quantile_slop_matches_span_one_threshold():
    e = math.log(0.05)
    assert quantile_slop(0.5, 1000, 32, e) == 1 + 0.5 * threshold(1000, 32, e + EQ)
    assert quantile_slop(0.1, 10000, 3, math.log(0.001)) == 1 + threshold_span(
        10000, 3, 1.0, math.log(0.001) + EQ
    )


def test_quantile_slop_is_symmetric_in_q():
    e = math.log(0.01)
    assert quantile_slop(0.1, 10000, 3, e) == quantile_slop(0.9, 10000, 3, e)


def test_quantile_slop_boundaries():
    assert quantile_slop(0.0, 1000, 32, -3.0) == 1.0
    assert quantile_slop(1.0, 1000, 32, -3.0) == 1.0
    assert quantile_slop(0.5, 5, 32, -3.0) == math.inf


def test_out_of_range_quantile_warns():
    with pytest.warns(ContractViolationWarning, match="percentile"):
        assert quantile_slop(90.0, 1000, 32, -3.0) == 1.0
    with pytest.warns(ContractViolationWarning):
        assert quantile_slop_hi(-0.5, 1000, 32, -3.0) == 1.0
    with pytest.warns(ContractViolationWarning):
        assert quantile_slop_lo(1.5, 1000, 32, -3.0) == -1.0


def test_one_sided_boundaries():
    assert quantile_slop_hi(0.0, 1000, 32, -3.0) == 1.0
    assert quantile_slop_hi(1.0, 1000, 32, -3.0) == math.inf
    assert quantile_slop_lo(0.0, 1000, 32, -3.0) == -math.inf
    assert quantile_slop_lo(1.0, 1000, 32, -3.0) == -1.0
    assert quantile_slop_hi(0.25, 5, 32, -3.0) == math.inf
    assert quantile_slop_lo(0.25, 5, 32, -3.0) == -math.inf


def test_one_sided_slops_are_tighter_on_the_short_side():
    e = math.log(0.05)
    sym = quantile_slop(0.25, 10000, 32, e)
    assert quantile_slop_hi(0.25, 10000, 32, e) < sym
    assert -quantile_slop_lo(0.25, 10000, 32, e) >= sym
    assert -quantile_slop_lo(0.75, 10000, 32, e) < sym
    assert quantile_slop_hi(0.75, 10000, 32, e) >= sym


def test_median_one_sided_slops_match_symmetric():
    e = math.log(0.05)
    sym = quantile_slop(0.5, 10000, 32, e)
    assert quantile_slop_hi(0.5, 10000, 32, e) == pytest.approx(sym, rel=1e-12)
    assert -quantile_slop_lo(0.5, 10000, 32, e) == pytest.approx(sym, rel=1e-12)


@pytest.mark.parametrize("q", [0.125, 0.25, 0.375, 0.5, 0.625, 0.875])
def test_mirrored_quantiles_are_consistent(q):
    e = math.log(0.01)
    assert quantile_slop_hi(q, 5000, 16, e) + quantile_slop_lo(1 - q, 5000, 16, e) == 0.0


def test_rank_bounds_contain_the_center():
    e = math.log(0.05)
    slop = quantile_slop(0.5, 1000, 32, e)
    lo, hi = quantile_rank_bounds(0.5, 1000, 32, e)
    assert lo == math.floor(lo) and hi == math.ceil(hi)
    assert lo <= 500 - slop
    assert hi >= 500 + slop
    assert hi - lo <= 2 * slop + 3


def test_asymmetric_rank_bounds_are_tighter_for_low_quantiles():
    e = math.log(0.05)
    lo_s, hi_s = quantile_rank_bounds(0.1, 10000, 32, e)
    lo_a, hi_a = quantile_rank_bounds(0.1, 10000, 32, e, asymmetric=True)
    assert hi_a <= hi_s
    assert lo_a <= lo_s


def test_rank_bounds_before_min_count():
    assert quantile_rank_bounds(0.5, 10, 32, -3.0) == (-math.inf, math.inf)


def test_value_bounds_on_known_sample():
    rng = np.random.default_rng(7)
    values = rng.permutation(np.arange(2000, dtype=float))
    e = math.log(0.05)
    lo_rank, hi_rank = quantile_rank_bounds(0.5, 2000, 32, e)
    lo, hi = quantile_value_bounds(values, 0.5, 32, e)
    assert lo == lo_rank
    assert hi == hi_rank
    assert lo < 1000 < hi


def test_value_bounds_ignore_non_finite_and_small_samples():
    assert quantile_value_bounds([1.0, 2.0, 3.0], 0.5, 32, -3.0) == (-math.inf, math.inf)
    values = np.concatenate([np.arange(2000, dtype=float), [np.nan, np.inf]])
    assert quantile_value_bounds(values, 0.5, 32, -3.0) == quantile_value_bounds(
        np.arange(2000, dtype=float), 0.5, 32, -3.0
    )


def test_extreme_quantile_has_open_side():
    lo, hi = quantile_value_bounds(np.arange(100, dtype=float), 0.99, 32, math.log(0.05))
    assert hi == math.inf
    assert math.isfinite(lo)


def test_nan_quantile_warns_and_propagates():
    for fn in (quantile_slop, quantile_slop_hi, quantile_slop_lo):
        with pytest.warns(ContractViolationWarning, match="NaN"):
            assert math.isnan(fn(math.nan, 1000, 32, -3.0))
    with pytest.warns(ContractViolationWarning):
        assert quantile_value_bounds(np.arange(100.0), math.nan, 32, -3.0) == (-math.inf, math.inf)
