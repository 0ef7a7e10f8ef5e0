"""
Structured logging for contract invocations and ledger operations.
Every line follows the "Operation: X, Status: Y, Details: {...}" layout so audit tooling can grep it.
"""

import logging
from typing import Any, Dict, List

SENSITIVE_FIELDS = ['content', 'reply', 'value', 'payload']


class StructuredLogger:
    """Structured logger for contract invocations, ledger access and rich queries."""

    def __init__(self, name: str = "datashare"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def set_debug(self, enabled: bool) -> None:
        """Switch between DEBUG and INFO verbosity."""
        self.logger.setLevel(logging.DEBUG if enabled else logging.INFO)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None, level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_invocation(self, function: str, status: str, details: Dict[str, Any] = None):
        """Log the start, success or failure of a contract invocation."""
        level = logging.WARNING if status == "failed" else logging.INFO
        self.log_operation(f"invoke.{function}", status, sanitize_payload(details) if details else None, level)

    def log_ledger_operation(self, operation: str, key: str, status: str = "success", details: Dict[str, Any] = None):
        """Log a ledger read, write or delete."""
        log_details = {"key": key}
        if details:
            log_details.update(details)

        self.log_operation(f"ledger.{operation}", status, log_details, logging.DEBUG)

    def log_query(self, selector: Dict[str, Any], result_count: int, status: str = "success"):
        """Log a rich query against the attribute index."""
        log_details = {
            "selector": selector,
            "result_count": result_count
        }
        self.log_operation("ledger.query", status, log_details, logging.DEBUG)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for audit logging."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload


# Global logger instance
logger = StructuredLogger()
