"""
Structured logging tests - message layout and payload sanitization.
"""

import logging

from datashare.util.logging import StructuredLogger, sanitize_payload


class TestStructuredLogger:
    """Test log line layout."""

    def test_log_operation_format(self, caplog):
        structured = StructuredLogger("datashare.test")
        with caplog.at_level(logging.INFO, logger="datashare.test"):
            structured.log_operation("invoke.publishData", "success", {"payload_size": 0})

        assert "Operation: invoke.publishData, Status: success, Details: {'payload_size': 0}" in caplog.text

    def test_failed_invocations_log_as_warning(self, caplog):
        structured = StructuredLogger("datashare.test.failed")
        with caplog.at_level(logging.INFO, logger="datashare.test.failed"):
            structured.log_invocation("publishData", "failed", {"error": "AlreadyExists"})

        assert caplog.records[-1].levelno == logging.WARNING

    def test_ledger_operations_are_debug(self, caplog):
        structured = StructuredLogger("datashare.test.debug")
        structured.set_debug(True)
        with caplog.at_level(logging.DEBUG, logger="datashare.test.debug"):
            structured.log_ledger_operation("get", "d1", "absent")

        assert caplog.records[-1].levelno == logging.DEBUG
        assert "ledger.get" in caplog.text


class TestSanitizePayload:
    """Test redaction of dataset content and replies."""

    def test_redacts_sensitive_fields(self):
        assert sanitize_payload({"name": "d1", "content": "secret", "reply": "token"}) == {
            "name": "d1",
            "content": "[REDACTED]",
            "reply": "[REDACTED]",
        }

    def test_reveal_sensitive(self):
        assert sanitize_payload({"content": "c"}, reveal_sensitive=True) == {"content": "c"}

    def test_truncates_long_strings(self):
        assert sanitize_payload("x" * 150) == "x" * 100 + "..."

    def test_nested_lists(self):
        assert sanitize_payload([{"reply": "r"}, 1]) == [{"reply": "[REDACTED]"}, 1]
