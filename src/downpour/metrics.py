import logging
from dataclasses import dataclass, field, asdict
from typing import Any

from hdrh.histogram import HdrHistogram

from .classify import ErrorKind, Outcome

logger = logging.getLogger(__name__)

LOWEST_TRACKABLE_US = 1
HIGHEST_TRACKABLE_US = 3_600_000_000  # one hour
SIGNIFICANT_FIGURES = 3

REPORTED_QUANTILES = (0.50, 0.90, 0.95, 0.99)


# ────────────────────────────────
# Rollups
# ────────────────────────────────


@dataclass
class StatusClassCounts:
    c1xx: int = 0
    c2xx: int = 0
    c3xx: int = 0
    c4xx: int = 0
    c5xx: int = 0
    other: int = 0

    def record(self, code: int) -> None:
        cls = code // 100
        if 1 <= cls <= 5:
            attr = f"c{cls}xx"
            setattr(self, attr, getattr(self, attr) + 1)
        else:
            self.other += 1

    def total(self) -> int:
        return self.c1xx + self.c2xx + self.c3xx + self.c4xx + self.c5xx + self.other


@dataclass
class NetErrorCounts:
    timeout: int = 0
    connect: int = 0
    request: int = 0
    body: int = 0
    decode: int = 0
    other: int = 0

    def record(self, kind: ErrorKind) -> None:
        setattr(self, kind.value, getattr(self, kind.value) + 1)

    def total(self) -> int:
        return (
            self.timeout
            + self.connect
            + self.request
            + self.body
            + self.decode
            + self.other
        )


# ────────────────────────────────
# Latency
# ────────────────────────────────


class LatencyHistogram:
    """
    Microsecond latency distribution backed by an HdrHistogram.

    Quantiles carry three significant digits of precision. The exact
    minimum and maximum are kept alongside, and quantile answers are
    clamped into [min, max] because a bucket's equivalent value can sit
    slightly above the largest sample recorded into it.
    """

    def __init__(self) -> None:
        self._hist = HdrHistogram(
            LOWEST_TRACKABLE_US, HIGHEST_TRACKABLE_US, SIGNIFICANT_FIGURES
        )
        self.count = 0
        self.min: int | None = None
        self.max: int | None = None
        self._sum = 0

    def record(self, micros: int) -> None:
        value = min(max(int(micros), LOWEST_TRACKABLE_US), HIGHEST_TRACKABLE_US)
        self._hist.record_value(value)
        self.count += 1
        self._sum += value
        if self.min is None or value < self.min:
            self.min = value
        if self.max is None or value > self.max:
            self.max = value

    def value_at_quantile(self, q: float) -> int:
        if not self.count:
            raise ValueError("quantile of an empty latency histogram")
        if not 0.0 <= q <= 1.0:
            raise ValueError(f"quantile out of range: {q}")
        v = self._hist.get_value_at_percentile(q * 100.0)
        return min(max(v, self.min), self.max)

    def mean(self) -> float:
        if not self.count:
            raise ValueError("mean of an empty latency histogram")
        return self._sum / self.count

    def stddev(self) -> float:
        if not self.count:
            raise ValueError("stddev of an empty latency histogram")
        return self._hist.get_stddev()


@dataclass(frozen=True)
class LatencySummary:
    count: int
    min: int | None = None
    p50: int | None = None
    p90: int | None = None
    p95: int | None = None
    p99: int | None = None
    max: int | None = None
    mean: float | None = None
    stddev: float | None = None

    @classmethod
    def from_histogram(cls, hist: LatencyHistogram) -> "LatencySummary":
        if not hist.count:
            return cls(count=0)
        p50, p90, p95, p99 = (hist.value_at_quantile(q) for q in REPORTED_QUANTILES)
        return cls(
            count=hist.count,
            min=hist.min,
            p50=p50,
            p90=p90,
            p95=p95,
            p99=p99,
            max=hist.max,
            mean=hist.mean(),
            stddev=hist.stddev(),
        )


# ────────────────────────────────
# Aggregate
# ────────────────────────────────


@dataclass(frozen=True)
class StatsSnapshot:
    status_exact: dict[int, int]
    status_class: StatusClassCounts
    net_errors: NetErrorCounts
    latency: LatencySummary

    @property
    def successes(self) -> int:
        return sum(self.status_exact.values())

    @property
    def failures(self) -> int:
        return self.net_errors.total()

    def to_dict(self) -> dict[str, Any]:
        return {
            "status_exact": {str(k): v for k, v in self.status_exact.items()},
            "status_class": asdict(self.status_class),
            "net_errors": {**asdict(self.net_errors), "total": self.net_errors.total()},
            "latency_us": asdict(self.latency),
        }


@dataclass
class AggregateStatistics:
    """
    Mutable accumulator for one run. Not synchronised by itself: the
    dispatch engine serialises writers behind a single lock so that the
    status, class and latency views always agree on the request count.
    """

    status_exact: dict[int, int] = field(default_factory=dict)
    status_class: StatusClassCounts = field(default_factory=StatusClassCounts)
    net_errors: NetErrorCounts = field(default_factory=NetErrorCounts)
    latency: LatencyHistogram = field(default_factory=LatencyHistogram)

    def record_latency(self, micros: int) -> None:
        self.latency.record(micros)

    def record_status(self, code: int) -> None:
        self.status_exact[code] = self.status_exact.get(code, 0) + 1
        self.status_class.record(code)

    def record_error(self, kind: ErrorKind) -> None:
        self.net_errors.record(kind)

    def record(self, micros: int, outcome: Outcome) -> None:
        self.record_latency(micros)
        if outcome.error is None:
            self.record_status(outcome.status)
        else:
            self.record_error(outcome.error)

    @property
    def successes(self) -> int:
        return sum(self.status_exact.values())

    @property
    def failures(self) -> int:
        return self.net_errors.total()

    @property
    def samples(self) -> int:
        return self.latency.count

    def snapshot(self) -> StatsSnapshot:
        summary = LatencySummary.from_histogram(self.latency)
        logger.debug(
            f"Snapshot: successes={self.successes}, failures={self.failures}, "
            f"samples={summary.count}"
        )
        return StatsSnapshot(
            status_exact=dict(sorted(self.status_exact.items())),
            status_class=StatusClassCounts(**asdict(self.status_class)),
            net_errors=NetErrorCounts(**asdict(self.net_errors)),
            latency=summary,
        )
