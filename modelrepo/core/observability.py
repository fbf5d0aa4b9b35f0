"""
Observability module for modelrepo.

Provides:
- Structured logging with JSON format and correlation IDs
- Correlation ID context propagation
- Prometheus metrics for terminal operations applied by repositories

Usage:
    from modelrepo.core.observability import (
        configure_logging,
        set_correlation_id,
        get_logger,
        operation_metrics,
    )
"""

import json
import logging
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

from modelrepo.core.config import Settings, settings

# ============================================================================
# Context Variables
# ============================================================================

# Correlation ID - links all logs for a single unit of work
_correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """Generate a unique correlation ID."""
    return str(uuid.uuid4())


def get_correlation_id() -> str:
    """Get the current correlation ID from context."""
    return _correlation_id_ctx.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id_ctx.set(correlation_id)


# ============================================================================
# Structured Logging Configuration
# ============================================================================

# Attributes present on every LogRecord; anything else came from `extra=`.
_RESERVED_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs as JSON with standard fields:
    - timestamp: ISO 8601 format
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - logger: Logger name
    - message: Log message
    - correlation_id: Correlation ID (if set)
    - extra: Any additional context from logging.extra
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        log_entry["file"] = record.pathname
        log_entry["line"] = record.lineno
        log_entry["function"] = record.funcName

        extra_keys = {
            k: v for k, v in record.__dict__.items() if k not in _RESERVED_RECORD_ATTRS
        }
        if extra_keys:
            log_entry["extra"] = extra_keys

        return json.dumps(log_entry, default=str)


def configure_structured_logging(level: str = "INFO") -> None:
    """
    Configure root logger with structured JSON formatting.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(handler)


def configure_logging(config: Settings | None = None) -> None:
    """Configure logging from settings (structured JSON or plain text)."""
    config = config or settings
    if config.observability_structured_logs:
        configure_structured_logging(config.app_log_level)
        return

    logging.basicConfig(
        level=getattr(logging, config.app_log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger (typically for __name__ of the module)."""
    return logging.getLogger(name)


# ============================================================================
# Prometheus Metrics
# ============================================================================

# Use a custom registry to avoid conflicts with the host application's metrics
_registry = CollectorRegistry()


class Metrics:
    """Metrics for repository operations."""

    def __init__(self, registry: CollectorRegistry) -> None:
        self.registry = registry

        self.operations_total = Counter(
            "modelrepo_operations_total",
            "Total terminal operations applied by repositories",
            ["repository", "operation", "status"],
            registry=self.registry,
        )

        self.operation_duration_seconds = Histogram(
            "modelrepo_operation_duration_seconds",
            "Terminal operation duration in seconds",
            ["repository", "operation"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=self.registry,
        )


metrics = Metrics(_registry)


class OperationMetrics:
    """
    Tracks timing and outcome of terminal operations.

    Usage:
        with operation_metrics.track("UserRepository", "count"):
            result = builder.count()
    """

    def __init__(self, metrics_instance: Metrics | None = None) -> None:
        self.metrics = metrics_instance or metrics

    @contextmanager
    def track(self, repository: str, operation: str) -> Iterator[None]:
        if not settings.metrics_enabled:
            yield
            return

        start = time.perf_counter()
        status = "success"
        try:
            yield
        except Exception:
            status = "error"
            raise
        finally:
            self.metrics.operation_duration_seconds.labels(
                repository=repository, operation=operation
            ).observe(time.perf_counter() - start)
            self.metrics.operations_total.labels(
                repository=repository, operation=operation, status=status
            ).inc()


operation_metrics = OperationMetrics()


def metrics_payload() -> bytes:
    """Return all modelrepo metrics in Prometheus text exposition format."""
    return generate_latest(_registry)
