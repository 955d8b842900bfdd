import uuid
import asyncio
import logging
from typing import Dict, List, Optional, Any
from pydantic import BaseModel, Field
from datetime import datetime, timedelta

from downpour.config import LoadConfig
from downpour.core import LoadRunner

logger = logging.getLogger(__name__)

RETENTION = timedelta(hours=24)


class RunStatus(BaseModel):
    id: str
    status: str  # "pending", "running", "completed", "failed", "cancelled"
    url: str
    method: str
    concurrency: int
    requests: Optional[int] = None
    duration_s: Optional[float] = None
    sent: int = 0
    completed: int = 0
    created_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class RunManager:
    def __init__(self, transport_factory=None):
        self.runs: Dict[str, RunStatus] = {}
        self._runners: Dict[str, LoadRunner] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._cleanup_task: Optional[asyncio.Task] = None
        self._transport_factory = transport_factory

    def start(self) -> None:
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        if self._cleanup_task is not None:
            tasks.append(self._cleanup_task)
            self._cleanup_task = None
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def create_run(self, config: LoadConfig) -> str:
        run_id = str(uuid.uuid4())
        self.runs[run_id] = RunStatus(
            id=run_id,
            status="pending",
            url=config.url,
            method=config.method,
            concurrency=config.concurrency,
            requests=config.requests,
            duration_s=config.duration_s,
        )
        transport = self._transport_factory() if self._transport_factory else None
        self._runners[run_id] = LoadRunner(config, transport=transport)
        self._tasks[run_id] = asyncio.create_task(self._run(run_id))
        return run_id

    async def _run(self, run_id: str):
        run = self.runs[run_id]
        runner = self._runners[run_id]
        run.status = "running"
        try:
            result = await runner.run()
            run.result = result.to_dict()
            run.status = "completed"
        except asyncio.CancelledError:
            run.status = "cancelled"
            raise
        except Exception as e:
            logger.error(f"Run {run_id} failed: {e}")
            run.status = "failed"
            run.error = str(e)
        finally:
            run.sent = runner.sent
            run.completed = runner.completed
            run.finished_at = datetime.now()
            self._tasks.pop(run_id, None)

    def get_run(self, run_id: str) -> Optional[RunStatus]:
        run = self.runs.get(run_id)
        runner = self._runners.get(run_id)
        if run is not None and runner is not None and run.finished_at is None:
            run.sent = runner.sent
            run.completed = runner.completed
        return run

    def list_runs(self) -> List[RunStatus]:
        return sorted(self.runs.values(), key=lambda x: x.created_at, reverse=True)

    def delete_run(self, run_id: str):
        # a running run drains its in-flight requests and finishes on its own
        runner = self._runners.pop(run_id, None)
        if runner is not None:
            runner.stop()
        self.runs.pop(run_id, None)

    def purge_finished(self, older_than: timedelta = RETENTION) -> List[str]:
        now = datetime.now()
        stale = [
            run_id
            for run_id, run in self.runs.items()
            if run.finished_at is not None and now - run.finished_at > older_than
        ]
        for run_id in stale:
            logger.info(f"Cleaning up old run: {run_id}")
            self.delete_run(run_id)
        return stale

    async def _cleanup_loop(self):
        """Periodically clean up old runs."""
        while True:
            await asyncio.sleep(3600)  # Check every hour
            self.purge_finished()
