#!/usr/bin/env python3
# cli.py — Command-line entry point for Downpour

import argparse
import asyncio
import logging
import sys

from downpour.config import build_config, env_defaults
from downpour.core import LoadRunner
from downpour.errors import ConfigurationError
from downpour.logging_config import setup_logging
from downpour.rendering import render_report, render_latency_bars, render_json


def parse_args(argv=None):
    defaults = env_defaults()

    parser = argparse.ArgumentParser(
        prog="downpour",
        description="🌧️ Downpour: concurrent HTTP load generator for a single endpoint",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Target
    parser.add_argument("--url", required=True, help="Target endpoint URL")
    parser.add_argument("--method", default="GET", help="HTTP method")
    parser.add_argument(
        "--header",
        dest="headers",
        action="append",
        default=[],
        help="Repeatable request header, e.g. --header 'Key: Value'",
    )
    parser.add_argument(
        "--api-key",
        default=defaults["api_key"],
        help="Adds 'Authorization: Bearer <token>'",
    )
    parser.add_argument("--json", dest="json_text", default=None, help="Inline JSON payload")
    parser.add_argument("--json-file", default=None, help="JSON payload file path")

    # Budget & Concurrency
    parser.add_argument(
        "--concurrency",
        type=int,
        default=defaults["concurrency"],
        help="Number of parallel workers",
    )
    parser.add_argument(
        "--requests",
        type=int,
        default=None,
        help="Run exactly N requests total (across all workers)",
    )
    parser.add_argument(
        "--duration",
        default=None,
        help="Run for a duration like 500ms, 10s, 2m, 1h",
    )
    parser.add_argument(
        "--timeout",
        default=defaults["timeout"],
        help="Per-request timeout like 500ms, 2s",
    )
    parser.add_argument(
        "--progress-every",
        type=int,
        default=defaults["progress_every"],
        help="Log progress every N completions (0 disables)",
    )

    # Output
    parser.add_argument(
        "--output",
        choices=("text", "json"),
        default="text",
        help="Report format",
    )
    parser.add_argument(
        "--no-progress-bar",
        action="store_true",
        help="Disable the live progress bar",
    )

    # Logging & Debugging
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug-level logging",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional file to write logs to (e.g., downpour.log)",
    )

    return parser.parse_args(argv)


async def run(argv=None) -> int:
    try:
        args = parse_args(argv)
    except ConfigurationError as e:
        setup_logging()
        logging.error(str(e))
        return 2

    log_level = "DEBUG" if args.debug else "INFO"
    setup_logging(level=log_level, log_file=args.log_file)

    try:
        config = build_config(
            url=args.url,
            method=args.method,
            concurrency=args.concurrency,
            requests=args.requests,
            duration=args.duration,
            timeout=args.timeout,
            headers=args.headers,
            api_key=args.api_key,
            json_text=args.json_text,
            json_file=args.json_file,
            progress_every=args.progress_every,
        )
    except ConfigurationError as e:
        logging.error(str(e))
        return 2

    runner = LoadRunner(
        config,
        use_progress_bar=not args.no_progress_bar and sys.stderr.isatty(),
        handle_signals=True,
    )
    result = await runner.run()

    if args.output == "json":
        print(render_json(result))
    else:
        print(render_report(result), end="")
        if result.stats.latency.count:
            print()
            print(render_latency_bars(result))
    return 0


def main():
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
