import random

import pytest

from downpour.classify import ErrorKind, Outcome
from downpour.metrics import (
    AggregateStatistics,
    LatencyHistogram,
    NetErrorCounts,
    StatusClassCounts,
    HIGHEST_TRACKABLE_US,
)


def test_status_class_counts():
    s = StatusClassCounts()
    for code in (200, 204, 302, 404, 500, 503, 101):
        s.record(code)
    assert (s.c1xx, s.c2xx, s.c3xx, s.c4xx, s.c5xx, s.other) == (1, 2, 1, 1, 2, 0)


def test_status_class_out_of_range_goes_to_other():
    s = StatusClassCounts()
    for code in (0, 42, 600, 999):
        s.record(code)
    assert s.other == 4
    assert s.total() == 4


def test_net_error_counts_total():
    n = NetErrorCounts()
    n.record(ErrorKind.TIMEOUT)
    n.record(ErrorKind.TIMEOUT)
    n.record(ErrorKind.CONNECT)
    assert n.timeout == 2
    assert n.connect == 1
    assert n.total() == 3


def test_aggregates_recording_paths():
    a = AggregateStatistics()
    a.record_status(200)
    a.record_status(500)
    a.record_status(200)
    a.record_error(ErrorKind.TIMEOUT)
    a.record_latency(1500)

    assert a.status_exact == {200: 2, 500: 1}
    assert a.status_class.c2xx == 2
    assert a.status_class.c5xx == 1
    assert a.net_errors.timeout == 1
    assert a.samples == 1


def test_zero_latency_is_clamped_to_one_microsecond():
    h = LatencyHistogram()
    h.record(0)
    assert h.count == 1
    assert h.min == 1
    assert h.value_at_quantile(0.5) == 1


def test_latency_beyond_range_is_clamped():
    h = LatencyHistogram()
    h.record(HIGHEST_TRACKABLE_US * 10)
    assert h.max == HIGHEST_TRACKABLE_US


def test_empty_histogram_refuses_quantiles():
    with pytest.raises(ValueError):
        LatencyHistogram().value_at_quantile(0.5)


def test_quantiles_are_ordered_and_bounded():
    rng = random.Random(7)
    h = LatencyHistogram()
    samples = [rng.randint(1, 2_000_000) for _ in range(5000)]
    for s in samples:
        h.record(s)

    q = [h.value_at_quantile(p) for p in (0.5, 0.9, 0.95, 0.99)]
    assert h.min == min(samples)
    assert h.max == max(samples)
    assert h.min <= q[0] <= q[1] <= q[2] <= q[3] <= h.max


def test_quantiles_have_three_significant_digits():
    h = LatencyHistogram()
    for v in range(1, 100_001):
        h.record(v)
    p50 = h.value_at_quantile(0.5)
    assert abs(p50 - 50_000) / 50_000 < 0.002


def test_snapshot_is_sorted_and_detached():
    a = AggregateStatistics()
    a.record(10, Outcome.from_status(503))
    a.record(20, Outcome.from_status(200))
    a.record(30, Outcome.from_error(ErrorKind.BODY))
    snap = a.snapshot()

    assert list(snap.status_exact) == [200, 503]
    assert snap.successes == 2
    assert snap.failures == 1
    assert snap.latency.count == 3
    assert snap.latency.min == 10 and snap.latency.max == 30

    a.record(40, Outcome.from_status(200))
    assert snap.status_exact[200] == 1
    assert snap.status_class.c2xx == 1


def test_empty_snapshot_has_no_latency_values():
    snap = AggregateStatistics().snapshot()
    assert snap.latency.count == 0
    assert snap.latency.p99 is None
    d = snap.to_dict()
    assert d["net_errors"]["total"] == 0
    assert d["status_exact"] == {}
