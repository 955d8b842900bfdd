import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum

import aiohttp

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    REQUEST = "request"
    BODY = "body"
    DECODE = "decode"
    OTHER = "other"


@dataclass(frozen=True)
class Outcome:
    """Either a received status code or a classified error kind."""

    status: int | None = None
    error: ErrorKind | None = None

    @classmethod
    def from_status(cls, code: int) -> "Outcome":
        return cls(status=code)

    @classmethod
    def from_error(cls, kind: ErrorKind) -> "Outcome":
        return cls(error=kind)

    @property
    def ok(self) -> bool:
        return self.error is None


# ────────────────────────────────
# Predicates
# ────────────────────────────────


def _is_timeout(exc: BaseException) -> bool:
    # aiohttp.ServerTimeoutError and ConnectionTimeoutError subclass TimeoutError
    return isinstance(exc, (TimeoutError, asyncio.TimeoutError))


def _is_connect(exc: BaseException) -> bool:
    return isinstance(exc, aiohttp.ClientConnectorError)


def _is_request(exc: BaseException) -> bool:
    return isinstance(exc, (aiohttp.ClientConnectionError, aiohttp.InvalidURL))


def _is_body(exc: BaseException) -> bool:
    return isinstance(exc, aiohttp.ClientPayloadError)


def _is_decode(exc: BaseException) -> bool:
    return isinstance(
        exc, (aiohttp.ContentTypeError, json.JSONDecodeError, UnicodeDecodeError)
    )


_CHAIN = (
    (_is_timeout, ErrorKind.TIMEOUT),
    (_is_connect, ErrorKind.CONNECT),
    (_is_request, ErrorKind.REQUEST),
    (_is_body, ErrorKind.BODY),
    (_is_decode, ErrorKind.DECODE),
)


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Map a transport exception onto an ErrorKind.
    Some exceptions satisfy several predicates, so order matters:
    timeout, connect, request, body, decode, then other.
    """
    for predicate, kind in _CHAIN:
        if predicate(exc):
            return kind
    logger.debug(f"Unclassified transport error {type(exc).__name__}: {exc}")
    return ErrorKind.OTHER
