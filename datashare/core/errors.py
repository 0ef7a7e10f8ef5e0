"""
Contract error kinds. Each invocation ends with a payload or exactly one of these.
"""


class LedgerError(Exception):
    """Raised by a ledger adapter when the host itself fails (not for absent keys)."""


class RecordDecodeError(ValueError):
    """Raised when stored bytes are not a recognisable record."""


class ContractError(Exception):
    """Base class for errors surfaced to the invocation caller."""

    kind = "ContractError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(ContractError):
    kind = "InvalidArgument"


class AlreadyExists(ContractError):
    kind = "AlreadyExists"


class NotFound(ContractError):
    kind = "NotFound"


class QueryFailed(ContractError):
    kind = "QueryFailed"


class AdapterError(ContractError):
    kind = "AdapterError"


class DeleteFailed(ContractError):
    kind = "DeleteFailed"


class UnknownFunction(ContractError):
    kind = "UnknownFunction"
