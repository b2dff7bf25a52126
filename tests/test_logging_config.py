"""
Tests for the logging configuration.
"""

import json
import logging
from decimal import Decimal

from erp_ledger.config import Settings
from erp_ledger.logging_config import JsonFormatter, get_logging_config


def make_record(**extra):
    record = logging.LogRecord(
        name="erp_ledger.services.posting_rules",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="accounting_impact_not_recorded",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:

    def test_extra_fields_are_nested(self):
        line = JsonFormatter().format(make_record(tenant_id=1, document_ref="FAC-1"))
        payload = json.loads(line)

        assert payload["level"] == "WARNING"
        assert payload["message"] == "accounting_impact_not_recorded"
        assert payload["extra"] == {"tenant_id": 1, "document_ref": "FAC-1"}

    def test_unserializable_extra_is_stringified(self):
        payload = json.loads(JsonFormatter().format(make_record(total=Decimal("1180.00"))))

        assert payload["extra"]["total"] == "1180.00"


class TestGetLoggingConfig:

    def test_json_format_uses_json_formatter(self):
        settings = Settings()
        settings.LOG_FORMAT = "json"

        config = get_logging_config(settings)

        assert config["formatters"]["default"]["()"].endswith("JsonFormatter")

    def test_console_format_and_level(self):
        settings = Settings()
        settings.LOG_FORMAT = "console"
        settings.LOG_LEVEL = "DEBUG"

        config = get_logging_config(settings)

        assert "format" in config["formatters"]["default"]
        assert config["loggers"]["erp_ledger"]["level"] == "DEBUG"
