"""structlog on top of stdlib logging, with JSON lines written under ``<home>/logs``.

Layout::

    logs/meatspace.log               every INFO+ event of the ``meatspace`` tree
    logs/error.log                   ERROR+ only
    logs/subscriptions/<slug>.log    one file per pulled subscription
"""

from __future__ import annotations

import logging
import logging.config
import os
import re
from pathlib import Path
from typing import Any, Iterable
from urllib.parse import urlparse

import structlog
from pythonjsonlogger import jsonlogger

ROOT_LOGGER = "meatspace"
MAIN_LOG = "meatspace.log"
ERROR_LOG = "error.log"
SUBSCRIPTION_LOG_DIR = "subscriptions"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Directory the stdlib handlers currently write to; ``None`` until configured.
_configured_dir: Path | None = None


def log_dir() -> Path:
    env_root = os.environ.get("MEATSPACE_HOME")
    if env_root:
        return Path(env_root).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def subscription_slug(url: str) -> str:
    """Filesystem-safe name for a subscription URL."""

    parsed = urlparse(url)
    raw = f"{parsed.netloc}{parsed.path}" if parsed.netloc else url
    return re.sub(r"[^0-9A-Za-z_.-]+", "_", raw).strip("_") or "subscription"


def subscription_log_path(url: str) -> Path:
    return log_dir() / SUBSCRIPTION_LOG_DIR / f"{subscription_slug(url)}.log"


def _file_handler(path: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "encoding": "utf-8",
        "formatter": "json",
    }


def _stdlib_config(directory: Path, level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "fmt": JSON_FORMAT,
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json",
                "stream": "ext://sys.stderr",
            },
            "main_file": _file_handler(directory / MAIN_LOG, "INFO"),
            "error_file": _file_handler(directory / ERROR_LOG, "ERROR"),
        },
        "loggers": {
            ROOT_LOGGER: {
                "handlers": ["console", "main_file", "error_file"],
                "level": level,
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return the application logger.

    Safe to call repeatedly. Handlers are rebuilt only when the log directory
    moved, i.e. ``MEATSPACE_HOME`` changed since the previous call.
    """

    global _configured_dir
    directory = log_dir()
    (directory / SUBSCRIPTION_LOG_DIR).mkdir(parents=True, exist_ok=True)

    if _configured_dir != directory:
        level = "DEBUG" if verbose else "INFO"
        logging.config.dictConfig(_stdlib_config(directory, level))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _configured_dir = directory
    return structlog.get_logger(ROOT_LOGGER)


def subscription_logger(url: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound to one subscription; its events also land in that subscription's file."""

    configure_logging(verbose)
    path = subscription_log_path(url)
    py_logger = logging.getLogger(f"{ROOT_LOGGER}.subscription.{subscription_slug(url)}")

    stale = [
        handler
        for handler in py_logger.handlers
        if isinstance(handler, logging.FileHandler) and handler.baseFilename != str(path)
    ]
    for handler in stale:
        py_logger.removeHandler(handler)
        handler.close()
    if not py_logger.handlers:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(jsonlogger.JsonFormatter(JSON_FORMAT))
        handler.setLevel(logging.INFO)
        py_logger.addHandler(handler)

    return structlog.get_logger(py_logger.name).bind(subscription=url)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


def available_subscription_logs() -> Iterable[Path]:
    directory = log_dir() / SUBSCRIPTION_LOG_DIR
    if not directory.exists():
        return []
    return sorted(directory.glob("*.log"))


__all__ = [
    "available_subscription_logs",
    "configure_logging",
    "log_dir",
    "subscription_log_path",
    "subscription_logger",
    "subscription_slug",
    "tail_log",
]
