import asyncio
import logging
from dataclasses import dataclass, field

from rich.console import Console
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TimeElapsedColumn,
    MofNCompleteColumn,
)

from .classify import Outcome, classify_error
from .config import LoadConfig
from .errors import ConfigurationError
from .metrics import AggregateStatistics
from .models import RunResult, ProgressCallback, MetricsCallback
from .transport import Transport, AiohttpTransport
from .utils import now, elapsed_micros, AtomicCounter, StopFlag, GracefulKiller

logger = logging.getLogger(__name__)


@dataclass
class SharedRunState:
    issued: AtomicCounter = field(default_factory=AtomicCounter)
    completed: AtomicCounter = field(default_factory=AtomicCounter)
    stopping: StopFlag = field(default_factory=StopFlag)
    started_at: float = field(default_factory=now)

    def deadline(self, duration_s: float | None) -> float | None:
        return None if duration_s is None else self.started_at + duration_s


class LoadRunner:
    def __init__(
        self,
        config: LoadConfig,
        transport: Transport | None = None,
        progress_callback: ProgressCallback | None = None,
        metrics_callback: MetricsCallback | None = None,
        use_progress_bar: bool = False,
        handle_signals: bool = False,
    ) -> None:
        self.config = config
        self.concurrency = max(1, config.concurrency)
        self.transport = transport
        self.progress_callback = progress_callback
        self.metrics_callback = metrics_callback
        self.use_progress_bar = use_progress_bar
        self.handle_signals = handle_signals

        # Runtime state
        self.stats = AggregateStatistics()
        self.state: SharedRunState | None = None
        self._stats_lock = asyncio.Lock()
        self._deadline: float | None = None
        self._progress: Progress | None = None
        self._task_id = None

        logger.info(
            f"Initialized load run against {config.method} {config.url}, "
            f"concurrency={self.concurrency}, requests={config.requests}, "
            f"duration_s={config.duration_s}"
        )

    @property
    def completed(self) -> int:
        return self.state.completed.load() if self.state else 0

    @property
    def sent(self) -> int:
        return self.state.issued.load() if self.state else 0

    def stop(self) -> None:
        if self.state is not None:
            self.state.stopping.set()

    # ────────────────────────────────
    # Reservation
    # ────────────────────────────────

    def _reserve(self, state: SharedRunState) -> bool:
        """Claim permission to issue one more request. False means stop."""
        limit = self.config.requests
        while True:
            if state.stopping.is_set():
                return False

            if self._deadline is not None and now() >= self._deadline:
                state.stopping.set()
                return False

            if limit is None:
                state.issued.increment()
                return True

            cur = state.issued.load()
            if cur >= limit:
                state.stopping.set()
                return False
            if state.issued.compare_and_swap(cur, cur + 1):
                return True
            # lost the race to another worker, re-check from the top

    # ────────────────────────────────
    # Worker
    # ────────────────────────────────

    async def _issue_one(self, worker_id: int) -> tuple[int, Outcome]:
        start = now()
        try:
            status = await self.transport.issue(self.config)
            outcome = Outcome.from_status(status)
        except Exception as e:
            kind = classify_error(e)
            logger.debug(f"[W{worker_id}] {type(e).__name__}: {e} -> {kind.value}")
            outcome = Outcome.from_error(kind)
        return elapsed_micros(start), outcome

    def _notify_progress(self, done: int) -> None:
        if self._progress is not None:
            self._progress.advance(self._task_id)

        every = self.config.progress_every
        if every <= 0 or done % every:
            return
        logger.info(f"progress: completed={done}")
        if self.progress_callback:
            try:
                self.progress_callback(done)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

    async def _worker(self, worker_id: int, state: SharedRunState) -> None:
        while self._reserve(state):
            micros, outcome = await self._issue_one(worker_id)

            async with self._stats_lock:
                self.stats.record(micros, outcome)

            done = state.completed.increment()
            self._notify_progress(done)

        logger.debug(f"Worker {worker_id} stopped")

    # ────────────────────────────────
    # Main Runner
    # ────────────────────────────────

    def _start_progress_bar(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=Console(stderr=True),
        )
        self._progress.start()
        self._task_id = self._progress.add_task(
            "[cyan]Pouring...", total=self.config.requests
        )

    async def run(self) -> RunResult:
        if not self.config.has_stopping_condition:
            raise ConfigurationError("You must provide either --requests or --duration")

        owns_transport = self.transport is None
        if owns_transport:
            self.transport = AiohttpTransport(self.config.timeout_s)

        state = SharedRunState()
        self.state = state
        self._deadline = state.deadline(self.config.duration_s)

        killer = GracefulKiller(state.stopping) if self.handle_signals else None
        if self.use_progress_bar:
            self._start_progress_bar()

        logger.info(f"Starting {self.concurrency} workers")
        workers = [
            asyncio.create_task(self._worker(i, state)) for i in range(self.concurrency)
        ]
        try:
            await asyncio.gather(*workers)
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            if self._progress is not None:
                self._progress.stop()
            if killer is not None:
                killer.restore()
            if owns_transport:
                await self.transport.close()

        elapsed = now() - state.started_at

        async with self._stats_lock:
            snapshot = self.stats.snapshot()

        result = RunResult.from_run(
            self.config,
            concurrency=self.concurrency,
            elapsed_s=elapsed,
            sent=state.issued.load(),
            completed=state.completed.load(),
            stats=snapshot,
        )

        if self.metrics_callback:
            self.metrics_callback(result.to_dict())

        logger.info(
            f"Run completed: sent={result.sent}, completed={result.completed}, "
            f"errors={snapshot.failures}, elapsed={elapsed:.3f}s"
        )
        return result


async def run_load(config: LoadConfig, **kwargs) -> RunResult:
    return await LoadRunner(config, **kwargs).run()
