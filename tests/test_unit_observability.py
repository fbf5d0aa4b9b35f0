"""
Unit tests for observability features.

Tests cover:
- Structured logging with JSON format
- Correlation ID context
- Logging configuration from settings
- Operation metrics exposition
"""

import json
import logging
import re
import sys
from unittest.mock import MagicMock

import pytest

from modelrepo.core.config import Settings
from modelrepo.core.observability import (
    StructuredFormatter,
    configure_logging,
    configure_structured_logging,
    generate_correlation_id,
    get_correlation_id,
    metrics,
    metrics_payload,
    operation_metrics,
    set_correlation_id,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def clear_correlation_id():
    yield
    set_correlation_id("")


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="modelrepo.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationId:
    def test_generate_returns_uuid(self):
        uuid_pattern = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")

        assert uuid_pattern.match(generate_correlation_id())

    def test_set_and_get(self, clear_correlation_id):
        set_correlation_id("corr-1")

        assert get_correlation_id() == "corr-1"


class TestStructuredFormatter:
    def test_formats_json_with_standard_fields(self):
        entry = json.loads(StructuredFormatter().format(_record("dispatch")))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "modelrepo.test"
        assert entry["message"] == "dispatch"
        assert entry["line"] == 10
        assert "correlation_id" not in entry

    def test_includes_correlation_id(self, clear_correlation_id):
        set_correlation_id("corr-2")

        entry = json.loads(StructuredFormatter().format(_record()))

        assert entry["correlation_id"] == "corr-2"

    def test_includes_extra_fields(self):
        record = _record(repository="UserRepository", operations=["count"])

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["extra"] == {"repository": "UserRepository", "operations": ["count"]}

    def test_includes_exception(self):
        record = _record()
        try:
            raise LookupError("missing")
        except LookupError:
            record.exc_info = sys.exc_info()

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["exception"] == {"type": "LookupError", "message": "missing"}


class TestConfigureLogging:
    def test_structured(self, restore_root_logger):
        configure_structured_logging("DEBUG")

        assert restore_root_logger.level == logging.DEBUG
        assert isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)

    def test_from_settings_plain(self, restore_root_logger):
        configure_logging(
            Settings(_env_file=None, observability_structured_logs=False, app_log_level="WARNING")
        )

        assert restore_root_logger.level == logging.WARNING
        assert not any(
            isinstance(h.formatter, StructuredFormatter) for h in restore_root_logger.handlers
        )

    def test_from_settings_structured(self, restore_root_logger):
        configure_logging(Settings(_env_file=None, observability_structured_logs=True))

        assert isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)


class TestOperationMetrics:
    def test_track_records_duration_and_count(self):
        labels = {"repository": "TrackedRepo", "operation": "get", "status": "success"}
        before = metrics.registry.get_sample_value("modelrepo_operations_total", labels) or 0.0

        with operation_metrics.track("TrackedRepo", "get"):
            pass

        after = metrics.registry.get_sample_value("modelrepo_operations_total", labels)
        assert after == before + 1
        assert "modelrepo_operation_duration_seconds_bucket" in metrics_payload().decode()

    def test_custom_metrics_instance(self):
        from modelrepo.core.observability import OperationMetrics

        fake = MagicMock()
        tracker = OperationMetrics(fake)

        with tracker.track("Repo", "count"):
            pass

        fake.operations_total.labels.assert_called_once_with(
            repository="Repo", operation="count", status="success"
        )
