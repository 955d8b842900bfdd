import json

from .durations import format_duration
from .models import RunResult


def _ms(micros: int) -> str:
    return f"{micros / 1000.0:.3f}"


def render_report(r: RunResult) -> str:
    lines = ["== Results =="]
    lines.append(f"url: {r.url}")
    lines.append(f"method: {r.method}")
    lines.append(f"concurrency: {r.concurrency}")
    if r.requests_target is not None:
        lines.append(f"requests_target: {r.requests_target}")
    if r.duration_target_s is not None:
        lines.append(f"duration_target: {format_duration(r.duration_target_s)}")
    lines.append(f"timeout: {format_duration(r.timeout_s)}")
    lines.append("")

    lines.append(f"elapsed_sec: {r.elapsed_s:.3f}")
    lines.append(f"sent: {r.sent}")
    lines.append(f"completed: {r.completed}")
    if r.throughput_rps is not None:
        lines.append(f"throughput_rps: {r.throughput_rps:.2f}")
    lines.append("")

    sc = r.stats.status_class
    lines.append("status_class_counts:")
    lines.append(f"  1xx: {sc.c1xx}")
    lines.append(f"  2xx: {sc.c2xx}")
    lines.append(f"  3xx: {sc.c3xx}")
    lines.append(f"  4xx: {sc.c4xx}")
    lines.append(f"  5xx: {sc.c5xx}")
    lines.append(f"  other: {sc.other}")
    lines.append("")

    lines.append("status_exact_counts:")
    for code, count in r.stats.status_exact.items():
        lines.append(f"  {code}: {count}")
    lines.append("")

    ne = r.stats.net_errors
    lines.append("network_error_counts:")
    for name in ("timeout", "connect", "request", "body", "decode", "other"):
        lines.append(f"  {name}: {getattr(ne, name)}")
    lines.append(f"  total: {ne.total()}")
    lines.append("")

    lat = r.stats.latency
    if lat.count:
        lines.append("latency_ms:")
        lines.append(f"  min: {_ms(lat.min)}")
        lines.append(f"  p50: {_ms(lat.p50)}")
        lines.append(f"  p90: {_ms(lat.p90)}")
        lines.append(f"  p95: {_ms(lat.p95)}")
        lines.append(f"  p99: {_ms(lat.p99)}")
        lines.append(f"  max: {_ms(lat.max)}")

    return "\n".join(lines) + "\n"


def render_latency_bars(r: RunResult, width: int = 40) -> str:
    lat = r.stats.latency
    if not lat.count:
        return "No latency data."

    points = [
        ("min", lat.min),
        ("p50", lat.p50),
        ("p90", lat.p90),
        ("p95", lat.p95),
        ("p99", lat.p99),
        ("max", lat.max),
    ]
    peak = lat.max
    lines = ["Latency Quantiles (ms)"]
    for label, value in points:
        bar = "#" * max(1, int((value / peak) * width)) if peak else ""
        lines.append(f"{label:>4} | {bar} {_ms(value)}")
    return "\n".join(lines)


def render_json(r: RunResult) -> str:
    return json.dumps(r.to_dict(), indent=2)
