"""Logging and per-operation metrics for the Shift Notes server.

Every lifecycle operation is timed and counted by outcome. Failures are
bucketed by the status category the error carries (``not_found``,
``internal_error``, ...), so internal failures that may have left an orphaned
file or record stand apart from ordinary misses.
"""
import functools
import inspect
import json
import logging
import time
import uuid
from collections import Counter, defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

SHIFTNOTES_HOME = Path.home() / ".shiftnotes"
LOG_FILE_NAME = "shiftnotes.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

F = TypeVar("F", bound=Callable[..., Any])


def configure_logging(
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.INFO,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    console: bool = True,
) -> Path:
    """Send the ``shiftnotes`` logger hierarchy to a rotating log file.

    Args:
        log_dir: Directory for the log file. Defaults to ~/.shiftnotes/logs/
        level: Level applied to the logger and its handlers
        max_bytes: Size at which the file is rotated
        backup_count: Rotated files to keep
        console: Also log to stderr (stdout carries the MCP stream)

    Returns:
        The log directory
    """
    log_path = Path(log_dir) if log_dir else SHIFTNOTES_HOME / "logs"
    log_path.mkdir(parents=True, exist_ok=True)

    package_logger = logging.getLogger("shiftnotes")
    package_logger.setLevel(level)

    handlers: list = [
        RotatingFileHandler(
            log_path / LOG_FILE_NAME,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    package_logger.info(f"Logging to {log_path / LOG_FILE_NAME}")
    return log_path


def failure_status(error: BaseException) -> str:
    """Status category of a failure; boundary errors carry their own."""
    return getattr(error, "status", None) or type(error).__name__


@dataclass
class OperationStats:
    """Running totals for one operation name."""

    calls: int = 0
    total_ms: float = 0.0
    slowest_ms: float = 0.0
    failures: Counter = field(default_factory=Counter)
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None

    def as_dict(self) -> Dict[str, Any]:
        failed = sum(self.failures.values())
        return {
            "count": self.calls,
            "success_count": self.calls - failed,
            "error_count": failed,
            "errors_by_status": dict(self.failures),
            "avg_duration_ms": round(self.total_ms / self.calls, 2) if self.calls else 0.0,
            "max_duration_ms": round(self.slowest_ms, 2),
            "last_error": self.last_error,
            "last_error_time": self.last_error_at.isoformat() if self.last_error_at else None,
        }


class MetricsCollector:
    """Thread-safe per-operation counters.

    Nothing is written to disk until save_metrics() is called; the entry
    point does that once at exit.
    """

    def __init__(self, metrics_file: Optional[Union[str, Path]] = None):
        self.metrics_file = Path(metrics_file) if metrics_file else SHIFTNOTES_HOME / "metrics.json"
        self._stats: Dict[str, OperationStats] = defaultdict(OperationStats)
        self._lock = Lock()
        self._started_at = datetime.now(timezone.utc)

    def record_operation(
        self,
        operation: str,
        duration_ms: float,
        status: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Record one call. ``status`` is None for a success."""
        with self._lock:
            stats = self._stats[operation]
            stats.calls += 1
            stats.total_ms += duration_ms
            stats.slowest_ms = max(stats.slowest_ms, duration_ms)
            if status is not None:
                stats.failures[status] += 1
                stats.last_error = error
                stats.last_error_at = datetime.now(timezone.utc)

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {name: stats.as_dict() for name, stats in self._stats.items()}

    def get_summary(self) -> Dict[str, Any]:
        with self._lock:
            total = sum(s.calls for s in self._stats.values())
            by_status: Counter = Counter()
            for stats in self._stats.values():
                by_status.update(stats.failures)
            failed = sum(by_status.values())
            return {
                "uptime_seconds": (datetime.now(timezone.utc) - self._started_at).total_seconds(),
                "total_operations": total,
                "total_errors": failed,
                "errors_by_status": dict(by_status),
                "overall_success_rate": (total - failed) / total if total else 1.0,
            }

    def save_metrics(self) -> bool:
        """Write a JSON snapshot next to the logs.

        Returns:
            True if saved, False if the file could not be written.
        """
        snapshot = {
            "started_at": self._started_at.isoformat(),
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "summary": self.get_summary(),
            "operations": self.get_metrics(),
        }
        temp_file = self.metrics_file.with_suffix(".tmp")
        try:
            self.metrics_file.parent.mkdir(parents=True, exist_ok=True)
            temp_file.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
            temp_file.replace(self.metrics_file)
        except OSError as e:
            logger.error(f"Failed to save metrics to {self.metrics_file}: {e}")
            return False
        return True


# Process-wide collector read by the sn_status tool
metrics = MetricsCollector()


@contextmanager
def timed_operation(operation: str, **context: Any) -> Iterator[Dict[str, Any]]:
    """Time a block, log it under a short correlation id and record the outcome.

    The yielded dict collects result details (result_count, ...) for the
    closing log line.
    """
    correlation_id = uuid.uuid4().hex[:8]
    details: Dict[str, Any] = {}
    context_str = ", ".join(f"{k}={v}" for k, v in context.items())
    logger.debug(f"[{correlation_id}] START {operation} ({context_str})")

    started = time.perf_counter()
    status: Optional[str] = None
    error_msg: Optional[str] = None
    try:
        yield details
    except Exception as e:
        status = failure_status(e)
        error_msg = str(e)
        raise
    finally:
        duration_ms = (time.perf_counter() - started) * 1000
        metrics.record_operation(operation, duration_ms, status, error_msg)
        outcome = "OK" if status is None else f"{status}: {error_msg}"
        details_str = ", ".join(f"{k}={v}" for k, v in details.items())
        logger.debug(
            f"[{correlation_id}] END {operation} ({context_str}) "
            f"{duration_ms:.2f}ms [{outcome}] {details_str}"
        )


_TRACED_CONTEXT_KEYS = ("note_id", "account_id")


def traced(operation_name: Optional[str] = None) -> Callable[[F], F]:
    """Run a lifecycle method inside timed_operation.

    Note and account ids are picked out of the call whether they are passed
    positionally or by keyword.
    """
    def decorator(func: F) -> F:
        op_name = operation_name or func.__name__
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                arguments = signature.bind_partial(*args, **kwargs).arguments
            except TypeError:
                arguments = kwargs
            context = {k: arguments[k] for k in _TRACED_CONTEXT_KEYS if k in arguments}

            with timed_operation(op_name, **context) as op:
                result = func(*args, **kwargs)
                if isinstance(result, list):
                    op["result_count"] = len(result)
                return result

        return wrapper  # type: ignore
    return decorator
