"""
Quick sanity run: pour a fixed number of GETs at one endpoint.
Run: uv run examples/pour_local.py
"""
import asyncio
import os

from downpour import build_config, run_load, render_report

URL = os.getenv("DOWNPOUR_URL", "https://httpbin.org/get")

async def main():
    config = build_config(
        url=URL,
        concurrency=6,
        requests=60,
        timeout=os.getenv("DOWNPOUR_TIMEOUT", "10s"),
        headers=["Accept: application/json"],
        progress_every=20,
    )
    result = await run_load(config)
    print(render_report(result))

if __name__ == "__main__":
    asyncio.run(main())
