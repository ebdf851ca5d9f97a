import math

import numpy as np
import pandas as pd
import pytest

from mcs.constants import EQ
from mcs.sequential import (
    BoundedSimConfig,
    Direction,
    MetricKind,
    MonitorConfig,
    MonitorSpec,
    build_increments,
    run_monitor,
    simulate_bounded_stream,
    sum_boundaries,
)
from mcs.threshold import threshold_range


def test_sum_boundaries_split_budget_for_two_sided():
    e = math.log(0.05)
    upper, lower = sum_boundaries(1000, -0.2, 0.8, 32, e, Direction.TWO_SIDED)
    assert upper == threshold_range(1000, 32, -0.2, 0.8, e + EQ)
    assert lower == -threshold_range(1000, 32, -0.8, 0.2, e + EQ)
    assert -lower < upper


def test_sum_boundaries_one_sided():
    e = math.log(0.05)
    upper, lower = sum_boundaries(1000, -1.0, 1.0, 32, e, Direction.INCREASE)
    assert lower == -math.inf
    assert upper == threshold_range(1000, 32, -1.0, 1.0, e)
    upper, lower = sum_boundaries(1000, -1.0, 1.0, 32, e, Direction.DECREASE)
    assert upper == math.inf
    assert math.isfinite(lower) and lower < 0


def test_sum_boundaries_before_min_count():
    assert sum_boundaries(10, -1.0, 1.0, 32, -3.0) == (math.inf, -math.inf)


def test_null_stream_does_not_stop():
    df = simulate_bounded_stream(BoundedSimConfig(n=3000, effect=0.0, seed=11))
    spec = MonitorSpec(kind=MetricKind.MEAN, value_col="x", lo=-1.0, hi=1.0, timestamp_col="timestamp")
    cfg = MonitorConfig(alpha=1e-6, min_count=32)

    x, _, lo, hi, warnings = build_increments(df, spec)
    res = run_monitor(x, lo, hi, cfg)

    assert res.decision == "continue"
    assert not res.stopped and res.stop_n is None
    assert warnings == []
    tab = res.look_table
    assert len(tab) == 3000
    for col in ["n", "sum", "mean", "boundary_upper", "boundary_lower", "crossed"]:
        assert col in tab.columns
    assert np.all(np.isinf(tab["boundary_upper"].to_numpy()[:31]))
    assert np.all(np.isfinite(tab["boundary_upper"].to_numpy()[31:]))
    lo_band, hi_band = res.null_band
    assert lo_band < 0 < hi_band


def test_shifted_stream_is_rejected_early():
    df = simulate_bounded_stream(BoundedSimConfig(n=5000, effect=0.5, seed=3))
    spec = MonitorSpec(kind=MetricKind.MEAN, value_col="x", lo=-1.0, hi=1.0)
    cfg = MonitorConfig(alpha=0.05, min_count=32, direction=Direction.INCREASE)

    x, _, lo, hi, _ = build_increments(df, spec)
    res = run_monitor(x, lo, hi, cfg)

    assert res.decision == "reject"
    assert res.stopped
    assert 32 <= res.stop_n < 5000
    assert res.final_sum > 0
    assert res.final_ci is not None and res.final_ci[0] > 0
    assert not res.look_table["crossed"].iloc[: res.stop_n - 1].any()


def test_decrease_monitor_ignores_upward_drift():
    df = simulate_bounded_stream(BoundedSimConfig(n=2000, effect=0.5, seed=5))
    spec = MonitorSpec(kind=MetricKind.MEAN, value_col="x", lo=-1.0, hi=1.0)
    cfg = MonitorConfig(alpha=0.05, min_count=32, direction=Direction.DECREASE)
    x, _, lo, hi, _ = build_increments(df, spec)
    res = run_monitor(x, lo, hi, cfg)
    assert res.decision == "continue"


def test_build_increments_mean_with_null_mean():
    df = pd.DataFrame({"x": [0.0, 0.25, 1.0, np.nan]})
    spec = MonitorSpec(kind=MetricKind.MEAN, value_col="x", lo=0.0, hi=1.0, null_mean=0.25)
    x, _, lo, hi, warnings = build_increments(df, spec)
    assert (lo, hi) == (-0.25, 0.75)
    assert list(x) == [-0.25, 0.0, 0.75]
    assert len(warnings) == 1 and "dropped 1" in warnings[0]


def test_build_increments_difference():
    df = pd.DataFrame({"y": [1.0, 0.0, 0.5], "z": [0.0, 1.0, 0.5]})
    spec = MonitorSpec(kind=MetricKind.DIFFERENCE, y_col="y", z_col="z", lo=0.0, hi=1.0)
    x, _, lo, hi, _ = build_increments(df, spec)
    assert (lo, hi) == (-1.0, 1.0)
    assert list(x) == [1.0, -1.0, 0.0]


def test_build_increments_quantile_indicator():
    df = pd.DataFrame({"x": [1.0, 5.0, 9.0, 10.0]})
    spec = MonitorSpec(kind=MetricKind.QUANTILE, value_col="x", quantile=0.75, quantile_value=5.0)
    upper, lower, lo, hi, _ = build_increments(df, spec)
    assert (lo, hi) == (-0.25, 0.75)
    # A tie with the candidate counts below it on the upper side only.
    assert list(upper) == [-0.25, -0.25, 0.75, 0.75]
    assert list(lower) == [-0.25, 0.75, 0.75, 0.75]


def test_build_increments_rejects_out_of_range_values():
    df = pd.DataFrame({"x": [0.5, 1.5, -2.0]})
    spec = MonitorSpec(kind=MetricKind.MEAN, value_col="x", lo=-1.0, hi=1.0)
    with pytest.raises(ValueError, match="2 value"):
        build_increments(df, spec)


def test_build_increments_validates_spec():
    df = pd.DataFrame({"x": [0.5]})
    with pytest.raises(ValueError):
        build_increments(df, MonitorSpec(kind=MetricKind.MEAN, lo=0.0, hi=1.0, null_mean=2.0))
    with pytest.raises(ValueError):
        build_increments(df, MonitorSpec(kind=MetricKind.DIFFERENCE, y_col="y"))
    with pytest.raises(ValueError, match="Missing required columns"):
        build_increments(df, MonitorSpec(kind=MetricKind.MEAN, value_col="nope"))


def test_quantile_monitor_detects_wrong_candidate():
    rng = np.random.default_rng(0)
    df = pd.DataFrame({"x": rng.random(4000)})
    # P(X <= 0.9) = 0.9, far from the claimed 0.5.
    spec = MonitorSpec(kind=MetricKind.QUANTILE, value_col="x", quantile=0.5, quantile_value=0.9)
    upper, lower, lo, hi, _ = build_increments(df, spec)
    res = run_monitor(upper, lo, hi, MonitorConfig(alpha=0.01, min_count=32), lower_increments=lower)
    assert res.decision == "reject"
    assert res.final_lower_sum < 0


def test_quantile_monitor_accepts_tied_median():
    # Uniform on {0, 1, 2}: P(X < 1) = 1/3 <= 0.5 <= P(X <= 1) = 2/3.
    for seed in range(5):
        rng = np.random.default_rng(seed)
        df = pd.DataFrame({"x": rng.integers(0, 3, size=5000).astype(float)})
        spec = MonitorSpec(kind=MetricKind.QUANTILE, value_col="x", quantile=0.5, quantile_value=1.0)
        upper, lower, lo, hi, _ = build_increments(df, spec)
        res = run_monitor(upper, lo, hi, MonitorConfig(alpha=0.05, min_count=32), lower_increments=lower)

        assert res.decision == "continue"
        assert res.final_sum < 0 < res.final_lower_sum
        tab = res.look_table
        assert (tab["lower_sum"] >= tab["sum"]).all()


def test_quantile_monitor_rejects_tied_non_median():
    # P(X < 2) = 2/3 > 0.5: 2 lies above the median.
    rng = np.random.default_rng(1)
    df = pd.DataFrame({"x": rng.integers(0, 3, size=5000).astype(float)})
    spec = MonitorSpec(kind=MetricKind.QUANTILE, value_col="x", quantile=0.5, quantile_value=2.0)
    upper, lower, lo, hi, _ = build_increments(df, spec)
    res = run_monitor(upper, lo, hi, MonitorConfig(alpha=0.05, min_count=32), lower_increments=lower)
    assert res.decision == "reject"
    assert res.final_lower_sum < res.look_table["boundary_lower"].iloc[res.stop_n - 1]


def test_run_monitor_checks_lower_increments():
    with pytest.raises(ValueError, match="same length"):
        run_monitor([0.5, 0.5], -1.0, 1.0, MonitorConfig(), lower_increments=[0.5])
    with pytest.raises(ValueError):
        run_monitor([0.5], -1.0, 1.0, MonitorConfig(), lower_increments=[3.0])


def test_run_monitor_input_checks():
    cfg = MonitorConfig()
    with pytest.raises(ValueError):
        run_monitor([], -1.0, 1.0, cfg)
    with pytest.raises(ValueError):
        run_monitor([0.5, 2.0], -1.0, 1.0, cfg)
    with pytest.raises(ValueError):
        run_monitor([0.5], 0.2, 1.0, cfg)
    with pytest.raises(ValueError):
        run_monitor([0.5], -1.0, 1.0, MonitorConfig(alpha=1.5))


def test_short_stream_warns_and_continues():
    res = run_monitor([0.5] * 10, -1.0, 1.0, MonitorConfig(min_count=32))
    assert res.decision == "continue"
    assert any("min_count" in w for w in res.warnings)
    d = res.to_dict()
    assert d["look_table"]["n"] == list(range(1, 11))


def test_simulate_respects_range_and_mean():
    df = simulate_bounded_stream(
        BoundedSimConfig(n=20000, lo=0.0, hi=10.0, null_mean=3.0, distribution="beta", seed=1)
    )
    assert df["x"].between(0.0, 10.0).all()
    assert abs(df["x"].mean() - 3.0) < 0.1
    two_point = simulate_bounded_stream(BoundedSimConfig(n=100, lo=-1.0, hi=2.0, seed=1))
    assert set(np.unique(two_point["x"])) <= {-1.0, 2.0}


def test_simulate_validates_config():
    with pytest.raises(ValueError):
        simulate_bounded_stream(BoundedSimConfig(n=10, lo=0.0, hi=1.0, null_mean=0.5, effect=0.6))
    with pytest.raises(ValueError):
        simulate_bounded_stream(BoundedSimConfig(distribution="cauchy"))
