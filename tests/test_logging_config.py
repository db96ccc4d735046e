"""Tests for logging configuration."""

import json
import logging

from elb_roll.config import LoggingConfig
from elb_roll.logging_config import JSONFormatter, TextFormatter, configure_logging
from elb_roll.models import LogContext


def _record(msg="test", args=()):
    return logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=args, exc_info=None,
    )


class TestJSONFormatter:
    def test_formats_as_json(self):
        output = JSONFormatter().format(_record("hello %s", ("world",)))
        parsed = json.loads(output)
        assert parsed["message"] == "hello world"
        assert parsed["level"] == "INFO"
        assert "timestamp" in parsed

    def test_includes_context_fields(self):
        record = _record()
        ctx = LogContext(instance_id="i-123", region="us-east-1", lane="blue", load_balancer="web-elb")
        for key, value in ctx.extra.items():
            setattr(record, key, value)
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["instance_id"] == "i-123"
        assert parsed["region"] == "us-east-1"
        assert parsed["lane"] == "blue"
        assert parsed["load_balancer"] == "web-elb"
        assert "phase" not in parsed

    def test_serialises_lists(self):
        record = _record()
        record.load_balancers = ["a", "b"]  # type: ignore
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["load_balancers"] == ["a", "b"]


class TestTextFormatter:
    def test_appends_context_pairs(self):
        record = _record("Checking instance state")
        record.instance_id = "i-123"  # type: ignore
        record.load_balancer = "web-elb"  # type: ignore
        output = TextFormatter().format(record)
        assert "Checking instance state" in output
        assert output.endswith("(instance_id=i-123 load_balancer=web-elb)")

    def test_no_context_no_suffix(self):
        output = TextFormatter().format(_record("plain"))
        assert output.endswith("plain")


class TestConfigureLogging:
    def test_json_format(self):
        configure_logging(LoggingConfig(level="DEBUG", format="json"))
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert any(isinstance(h.formatter, JSONFormatter) for h in root.handlers)

    def test_text_format(self):
        configure_logging(LoggingConfig(level="WARNING", format="text"))
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert any(isinstance(h.formatter, TextFormatter) for h in root.handlers)

    def test_single_handler_after_reconfigure(self):
        configure_logging(LoggingConfig())
        configure_logging(LoggingConfig())
        assert len(logging.getLogger().handlers) == 1

    def test_suppresses_noisy_loggers(self):
        configure_logging(LoggingConfig())
        assert logging.getLogger("botocore").level >= logging.WARNING
        assert logging.getLogger("urllib3").level >= logging.WARNING
