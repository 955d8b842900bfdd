import json
import logging
from typing import Protocol

import aiohttp

from .config import LoadConfig

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def issue(self, config: LoadConfig) -> int:
        """Perform one exchange and return the status code, or raise."""
        ...

    async def close(self) -> None: ...


class AiohttpTransport:
    """
    Issues requests through one shared aiohttp session.

    The connector has no connection cap, so the worker count is the only
    limit on concurrent exchanges. The per-request timeout covers the
    whole exchange including reading the body.
    """

    def __init__(self, timeout_s: float) -> None:
        self.timeout_s = timeout_s
        self._session: aiohttp.ClientSession | None = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            connector = aiohttp.TCPConnector(limit=0)
            timeout = aiohttp.ClientTimeout(total=self.timeout_s)
            self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
            logger.debug(f"Opened HTTP session (timeout={self.timeout_s}s)")
        return self._session

    async def issue(self, config: LoadConfig) -> int:
        session = self._ensure_session()
        headers = dict(config.headers)
        data = None
        if config.has_json_body:
            # passed as bytes because aiohttp treats json=None as "no body"
            data = json.dumps(config.json_body).encode("utf-8")
            if not any(k.lower() == "content-type" for k in headers):
                headers["Content-Type"] = "application/json"
        async with session.request(
            config.method, config.url, headers=headers, data=data
        ) as resp:
            await resp.read()
            return resp.status

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
            logger.debug("Closed HTTP session")
