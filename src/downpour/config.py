import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

from dotenv import load_dotenv

from .durations import parse_duration
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

HTTP_METHODS = (
    "GET",
    "POST",
    "PUT",
    "DELETE",
    "PATCH",
    "HEAD",
    "OPTIONS",
    "TRACE",
    "CONNECT",
)

DEFAULT_CONCURRENCY = 4
DEFAULT_TIMEOUT = "2s"
DEFAULT_PROGRESS_EVERY = 1000


class _NoBody:
    def __repr__(self) -> str:
        return "NO_BODY"


# JSON `null` is a real payload, so absence needs its own marker
NO_BODY: Any = _NoBody()


@dataclass(frozen=True)
class LoadConfig:
    """Validated, immutable settings for one load run."""

    url: str
    method: str = "GET"
    concurrency: int = DEFAULT_CONCURRENCY
    requests: int | None = None
    duration_s: float | None = None
    timeout_s: float = 2.0
    headers: dict[str, str] = field(default_factory=dict)
    json_body: Any = NO_BODY
    progress_every: int = 0

    @property
    def has_stopping_condition(self) -> bool:
        return self.requests is not None or self.duration_s is not None

    @property
    def has_json_body(self) -> bool:
        return self.json_body is not NO_BODY


# ────────────────────────────────
# Field Parsers
# ────────────────────────────────


def parse_http_method(text: str) -> str | None:
    m = text.strip().upper()
    return m if m in HTTP_METHODS else None


def parse_header(text: str) -> tuple[str, str] | None:
    key, sep, value = text.partition(":")
    key = key.strip()
    if not sep or not key:
        return None
    return key, value.strip()


def _validate_url(url: str) -> str:
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"Invalid --url: {url}")
    return url.strip()


def load_json_payload(json_text: str | None, json_file: str | None) -> Any:
    if json_text is not None and json_file is not None:
        raise ConfigurationError("Provide only one of --json or --json-file.")
    if json_text is not None:
        try:
            return json.loads(json_text)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid --json: {e}") from e
    if json_file is not None:
        try:
            with open(json_file, "rb") as f:
                raw = f.read()
        except OSError as e:
            raise ConfigurationError(f"Failed to read --json-file {json_file}: {e}") from e
        try:
            return json.loads(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid JSON in --json-file {json_file}: {e}") from e
    return NO_BODY


# ────────────────────────────────
# Builder
# ────────────────────────────────


def build_config(
    url: str,
    method: str = "GET",
    concurrency: int = DEFAULT_CONCURRENCY,
    requests: int | None = None,
    duration: str | None = None,
    timeout: str = DEFAULT_TIMEOUT,
    headers: list[str] | None = None,
    api_key: str | None = None,
    json_text: str | None = None,
    json_file: str | None = None,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
) -> LoadConfig:
    """
    Validate raw user input and turn it into a LoadConfig.
    Raises ConfigurationError naming the offending flag.
    """
    url = _validate_url(url)

    verb = parse_http_method(method)
    if verb is None:
        raise ConfigurationError(f"Invalid --method: {method}")

    if requests is None and duration is None:
        raise ConfigurationError("You must provide either --requests or --duration")
    if requests is not None and requests < 0:
        raise ConfigurationError(f"Invalid --requests: {requests}")

    try:
        timeout_s = parse_duration(timeout)
    except ValueError as e:
        raise ConfigurationError(f"Invalid --timeout: {timeout}") from e
    # aiohttp reads a zero total timeout as "no timeout at all"
    if timeout_s <= 0:
        raise ConfigurationError(f"Invalid --timeout: {timeout} (must be positive)")

    duration_s = None
    if duration is not None:
        try:
            duration_s = parse_duration(duration)
        except ValueError as e:
            raise ConfigurationError(f"Invalid --duration: {duration}") from e

    header_map: dict[str, str] = {}
    for h in headers or []:
        kv = parse_header(h)
        if kv is None:
            raise ConfigurationError(
                f'Invalid --header format: {h} (expected "Key: Value")'
            )
        header_map[kv[0]] = kv[1]
    if api_key:
        header_map["Authorization"] = f"Bearer {api_key}"

    json_body = load_json_payload(json_text, json_file)

    if concurrency < 1:
        logger.debug(f"Clamping concurrency {concurrency} to 1")

    return LoadConfig(
        url=url,
        method=verb,
        concurrency=max(1, concurrency),
        requests=requests,
        duration_s=duration_s,
        timeout_s=timeout_s,
        headers=header_map,
        json_body=json_body,
        progress_every=max(0, progress_every),
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid {name}: {raw!r} (expected an integer)") from e


def env_defaults(dotenv_path: str | None = None) -> dict[str, Any]:
    """Defaults for CLI flags, read from the environment and an optional .env file."""
    load_dotenv(dotenv_path)
    return {
        "concurrency": _env_int("DOWNPOUR_CONCURRENCY", DEFAULT_CONCURRENCY),
        "timeout": os.getenv("DOWNPOUR_TIMEOUT", DEFAULT_TIMEOUT),
        "api_key": os.getenv("DOWNPOUR_API_KEY") or None,
        "progress_every": _env_int("DOWNPOUR_PROGRESS_EVERY", DEFAULT_PROGRESS_EVERY),
    }
