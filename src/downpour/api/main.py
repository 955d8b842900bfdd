from contextlib import asynccontextmanager
from typing import List, Optional
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from downpour.api.jobs import RunManager, RunStatus
from downpour.config import build_config
from downpour.errors import ConfigurationError

run_manager = RunManager()


@asynccontextmanager
async def lifespan(app: FastAPI):
    run_manager.start()
    yield
    await run_manager.stop()


app = FastAPI(
    title="Downpour API",
    description="API for launching concurrent HTTP load runs",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class RunCreate(BaseModel):
    url: str
    method: str = "GET"
    concurrency: int = 4
    requests: Optional[int] = None
    duration: Optional[str] = None  # e.g. "10s"
    timeout: str = "2s"
    headers: List[str] = []  # "Key: Value"
    api_key: Optional[str] = None
    json_body: Optional[str] = None  # raw JSON text
    progress_every: int = 0


@app.post("/api/runs", response_model=dict)
async def create_run(request: RunCreate):
    try:
        config = build_config(
            url=request.url,
            method=request.method,
            concurrency=request.concurrency,
            requests=request.requests,
            duration=request.duration,
            timeout=request.timeout,
            headers=request.headers,
            api_key=request.api_key,
            json_text=request.json_body,
            progress_every=request.progress_every,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    run_id = run_manager.create_run(config)
    return {"run_id": run_id}


@app.get("/api/runs", response_model=List[RunStatus])
async def list_runs():
    return run_manager.list_runs()


@app.get("/api/runs/{run_id}", response_model=RunStatus)
async def get_run(run_id: str):
    run = run_manager.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    return run


@app.delete("/api/runs/{run_id}")
async def delete_run(run_id: str):
    run = run_manager.get_run(run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    run_manager.delete_run(run_id)
    return {"status": "deleted"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
