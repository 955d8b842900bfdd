# downpour/logging_config.py
import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that get chatty at DEBUG while thousands of requests are in flight
NOISY_LOGGERS = ("aiohttp", "asyncio", "hdrh", "uvicorn.access")


def setup_logging(level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """
    Route run logs to stderr so stdout carries only the report, optionally
    mirroring them into log_file.

    At DEBUG the per-request failure lines from downpour are wanted, but the
    HTTP stack's own debug output is not, so third-party loggers are held at
    WARNING regardless of the requested level.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if root.hasHandlers():
        root.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    root.addHandler(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        root.info(f"Logging to file: {log_file}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    def log_uncaught(exc_type, exc_value, exc_traceback):
        # Ctrl-C is handled by the run's stop flag, keep the default trace for it
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        root.critical("Run aborted by uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = log_uncaught

    return root
