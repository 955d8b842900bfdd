import asyncio
import json

import aiohttp

from downpour.classify import ErrorKind, Outcome, classify_error


def test_timeouts_win_over_connection_errors():
    # ServerTimeoutError is both a connection error and a timeout
    assert classify_error(aiohttp.ServerTimeoutError("read timeout")) == ErrorKind.TIMEOUT
    assert classify_error(asyncio.TimeoutError()) == ErrorKind.TIMEOUT
    assert classify_error(TimeoutError()) == ErrorKind.TIMEOUT


def test_connect_failure():
    exc = aiohttp.ClientConnectorError(None, OSError(111, "Connection refused"))
    assert classify_error(exc) == ErrorKind.CONNECT


def test_request_errors():
    assert classify_error(aiohttp.ServerDisconnectedError()) == ErrorKind.REQUEST
    assert classify_error(aiohttp.ClientOSError(104, "reset")) == ErrorKind.REQUEST
    assert classify_error(aiohttp.InvalidURL("nope")) == ErrorKind.REQUEST


def test_body_error():
    assert classify_error(aiohttp.ClientPayloadError("truncated")) == ErrorKind.BODY


def test_decode_errors():
    assert classify_error(json.JSONDecodeError("bad", "{", 1)) == ErrorKind.DECODE
    exc = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
    assert classify_error(exc) == ErrorKind.DECODE


def test_everything_else_is_other():
    assert classify_error(RuntimeError("boom")) == ErrorKind.OTHER
    assert classify_error(aiohttp.ClientError()) == ErrorKind.OTHER


def test_outcome_constructors():
    ok = Outcome.from_status(204)
    assert ok.ok and ok.status == 204 and ok.error is None
    bad = Outcome.from_error(ErrorKind.BODY)
    assert not bad.ok and bad.status is None
