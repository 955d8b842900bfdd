import re

_UNITS = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_RE = re.compile(r"^(\d+)\s*(ms|s|m|h)$")


def parse_duration(text: str) -> float:
    """
    Parse a human duration like "500ms", "10s", "2m" or "1h" into seconds.
    Only whole numbers are accepted.
    """
    s = text.strip().lower()
    m = _DURATION_RE.match(s)
    if not m:
        raise ValueError(f"invalid duration: {text!r}")
    return int(m.group(1)) * _UNITS[m.group(2)]


def format_duration(seconds: float) -> str:
    ms = round(seconds * 1000)
    if ms % 3_600_000 == 0 and ms:
        return f"{ms // 3_600_000}h"
    if ms % 60_000 == 0 and ms:
        return f"{ms // 60_000}m"
    if ms % 1000 == 0:
        return f"{ms // 1000}s"
    return f"{ms}ms"
