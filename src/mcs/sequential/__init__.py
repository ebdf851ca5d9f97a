"""Sequential monitoring of running sums of bounded observations.

* Mean of one bounded stream against a null mean
* Difference of two bounded streams sharing a range
* Whether a candidate value is a given quantile

The running sum is compared against the martingale confidence sequence
after every observation, so the monitor may stop at any time while keeping
its false positive rate at most alpha.
"""

from mcs.sequential.schema import (
    Direction,
    MetricKind,
    MonitorConfig,
    MonitorResult,
    MonitorSpec,
)
from mcs.sequential.preprocess import build_increments
from mcs.sequential.monitor import run_monitor, sum_boundaries
from mcs.sequential.simulate import BoundedSimConfig, simulate_bounded_stream
