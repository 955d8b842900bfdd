import asyncio

import pytest

from downpour.config import LoadConfig


class FakeTransport:
    """Stands in for the HTTP client: counts calls and replays scripted outcomes."""

    def __init__(self, status=200, delay=0.0, exc=None, script=None):
        self.status = status
        self.delay = delay
        self.exc = exc
        self.script = script
        self.calls = 0
        self.in_flight = 0
        self.peak_in_flight = 0
        self.closed = False

    async def issue(self, config):
        n = self.calls
        self.calls += 1
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            delay = self.delay() if callable(self.delay) else self.delay
            await asyncio.sleep(delay)
            step = self.script[n % len(self.script)] if self.script else (self.exc or self.status)
            if isinstance(step, BaseException):
                raise step
            return step
        finally:
            self.in_flight -= 1

    async def close(self):
        self.closed = True


@pytest.fixture
def make_config():
    def _make(**kwargs):
        kwargs.setdefault("url", "http://127.0.0.1/ok")
        return LoadConfig(**kwargs)

    return _make
