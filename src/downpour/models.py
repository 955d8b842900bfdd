from dataclasses import dataclass
from typing import Any
from collections.abc import Callable

from .config import LoadConfig
from .durations import format_duration
from .metrics import StatsSnapshot


@dataclass(frozen=True)
class RunResult:
    url: str
    method: str
    concurrency: int
    requests_target: int | None
    duration_target_s: float | None
    timeout_s: float
    elapsed_s: float
    sent: int
    completed: int
    stats: StatsSnapshot

    @classmethod
    def from_run(
        cls,
        config: LoadConfig,
        concurrency: int,
        elapsed_s: float,
        sent: int,
        completed: int,
        stats: StatsSnapshot,
    ) -> "RunResult":
        return cls(
            url=config.url,
            method=config.method,
            concurrency=concurrency,
            requests_target=config.requests,
            duration_target_s=config.duration_s,
            timeout_s=config.timeout_s,
            elapsed_s=elapsed_s,
            sent=sent,
            completed=completed,
            stats=stats,
        )

    @property
    def throughput_rps(self) -> float | None:
        if self.elapsed_s <= 0:
            return None
        return self.completed / self.elapsed_s

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "method": self.method,
            "concurrency": self.concurrency,
            "requests_target": self.requests_target,
            "duration_target": (
                format_duration(self.duration_target_s)
                if self.duration_target_s is not None
                else None
            ),
            "timeout": format_duration(self.timeout_s),
            "elapsed_sec": self.elapsed_s,
            "sent": self.sent,
            "completed": self.completed,
            "throughput_rps": self.throughput_rps,
            **self.stats.to_dict(),
        }


# Progress callback: receives the running completed count
ProgressCallback = Callable[[int], None]

# Metrics callback: callable accepting the final result dict
MetricsCallback = Callable[[dict[str, Any]], None]
