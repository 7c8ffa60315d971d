"""
Logging for report runs.

ScoringLogger wraps one named logger with:
- a single timestamp format with millisecond precision
- key=value suffixes, e.g. "Skipping safety fetch [domain=safety batch=2]"
- tracked warnings, so a report can list every degraded domain at the end
- time_batch(), which logs how long scoring a candidate set took

Engine modules log through plain `logging.getLogger(__name__)`; the CLI
calls configure_global_logging() so both share the same format.
"""

import logging
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import IO, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


class MillisecondsFormatter(logging.Formatter):
    """Formatter rendering asctime as 'YYYY-mm-dd HH:MM:SS.mmm'."""

    default_time_format = "%Y-%m-%d %H:%M:%S"
    default_msec_format = "%s.%03d"


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level '{name}'")
    return level


def _attach_handler(
    target: logging.Logger, destination: Union[IO[str], Path], level: int
) -> logging.Handler:
    if isinstance(destination, Path):
        handler: logging.Handler = logging.FileHandler(destination, encoding="utf-8")
    else:
        handler = logging.StreamHandler(destination)
    handler.setLevel(level)
    handler.setFormatter(MillisecondsFormatter(LOG_FORMAT))
    target.addHandler(handler)
    return handler


def _with_fields(message: str, fields: dict) -> str:
    if not fields:
        return message
    return f"{message} [{' '.join(f'{k}={v}' for k, v in fields.items())}]"


class ScoringLogger:
    """Structured logger for one report run."""

    def __init__(
        self,
        name: str = "townscore",
        log_level: str = "INFO",
        log_file: Optional[str] = None,
        log_dir: Optional[Path] = None,
    ):
        """
        Args:
            name: Logger name
            log_level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Optional file name; the file always receives DEBUG
            log_dir: Directory for log_file (defaults to ./logs)
        """
        level = _level(log_level)
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if log_file else level)
        self.logger.propagate = False
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        _attach_handler(self.logger, sys.stdout, level)
        if log_file:
            directory = log_dir or Path.cwd() / "logs"
            directory.mkdir(parents=True, exist_ok=True)
            _attach_handler(self.logger, directory / log_file, logging.DEBUG)
            self.debug("File logging enabled", path=directory / log_file)

        self.warnings: list[dict] = []

    def _log(self, level: int, message: str, fields: dict, **kwargs) -> str:
        text = _with_fields(message, fields)
        # stacklevel 3: report the caller of debug()/info()/..., not this helper
        self.logger.log(level, text, stacklevel=3, **kwargs)
        return text

    def debug(self, message: str, **fields):
        self._log(logging.DEBUG, message, fields)

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, fields)

    def warning(self, message: str, **fields):
        """Log a warning and keep it for get_warning_summary()."""
        text = self._log(logging.WARNING, message, fields)
        self.warnings.append({"message": text, "timestamp": datetime.now().isoformat(), "data": fields})

    def error(self, message: str, exception: Optional[Exception] = None, **fields):
        if exception is not None:
            fields = {**fields, "exception": f"{type(exception).__name__}: {exception}"}
        self._log(logging.ERROR, message, fields, exc_info=exception)

    def log_domain_skipped(self, domain: str, batch: int, reason: str):
        """A data domain was short-circuited by the fetch breaker for this batch."""
        self.warning(f"Skipping {domain} fetch", domain=domain, batch=batch, reason=reason)

    @contextmanager
    def time_batch(self, operation: str, area_count: int):
        """Time one scoring batch; failures are logged and re-raised.

        Usage:
            with log.time_batch("score_cities", len(areas)):
                results = score_cities(...)
        """
        started = time.perf_counter()
        self.debug(f"Starting {operation}", areas=area_count)
        try:
            yield
        except Exception as e:
            elapsed = round(time.perf_counter() - started, 3)
            self.error(f"Failed {operation}", exception=e, areas=area_count, duration_seconds=elapsed)
            raise
        elapsed = round(time.perf_counter() - started, 3)
        self.info(f"Completed {operation}", areas=area_count, duration_seconds=elapsed)

    def get_warning_summary(self) -> dict:
        return {"total_warnings": len(self.warnings), "warnings": list(self.warnings)}

    def clear_tracking(self):
        """Forget tracked warnings (between report runs)."""
        self.warnings = []


_default_logger: Optional[ScoringLogger] = None


def get_logger(name: str = "townscore", log_level: str = "INFO", log_file: Optional[str] = None) -> ScoringLogger:
    """Shared ScoringLogger, created on first use with the given settings."""
    global _default_logger
    if _default_logger is None:
        _default_logger = ScoringLogger(name=name, log_level=log_level, log_file=log_file)
    return _default_logger


def configure_global_logging(log_level: str = "INFO"):
    """Route the root logger to stderr in the scoring log format.

    Call early in CLI startup so engine module loggers match ScoringLogger.
    """
    root = logging.getLogger()
    level = _level(log_level)
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    _attach_handler(root, sys.stderr, level)
