"""
Data-sharing contract - publish datasets, request access, resolve requests.

Each operation takes the invocation's LedgerTransaction and its positional
string arguments, and returns the payload bytes or raises a ContractError.
The contract keeps no state between invocations; everything it needs is
read back from the ledger.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from .config import reference_check_strict
from .errors import (
    AdapterError,
    AlreadyExists,
    ContractError,
    DeleteFailed,
    InvalidArgument,
    LedgerError,
    NotFound,
    RecordDecodeError,
    UnknownFunction,
)
from .ledger import LedgerAdapter, LedgerTransaction
from .query import encode_query_records, pending_requests_for
from .schema import (
    LedgerRecord,
    decode_record,
    new_data_record,
    new_request_record,
    new_response_record,
)
from ..util.logging import logger

ORDINALS = ["1st", "2nd", "3rd", "4th", "5th"]


@dataclass
class InvocationResult:
    status: int
    payload: bytes = b""
    message: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == 200

    @classmethod
    def success(cls, payload: bytes = b"") -> "InvocationResult":
        return cls(status=200, payload=payload or b"")

    @classmethod
    def failure(cls, error: ContractError) -> "InvocationResult":
        return cls(status=500, message=error.message, error=error.kind)


def _require_args(args: Sequence[str], count: int, exact: bool = True) -> None:
    if (exact and len(args) != count) or len(args) < count:
        raise InvalidArgument(f"Incorrect number of arguments. Expecting {count}")

    for i in range(count):
        if not isinstance(args[i], str) or len(args[i]) == 0:
            raise InvalidArgument(f"{ORDINALS[i]} argument must be a non-empty string")
        try:
            args[i].encode("utf-8")
        except UnicodeEncodeError:
            raise InvalidArgument(f"{ORDINALS[i]} argument must be valid UTF-8")


def _read(ledger: LedgerTransaction, key: str, what: str) -> Optional[bytes]:
    try:
        return ledger.get(key)
    except LedgerError as e:
        raise AdapterError(f"Failed to get {what}: {e}") from e


def _write(ledger: LedgerTransaction, key: str, record: LedgerRecord) -> None:
    try:
        ledger.put(key, record.to_bytes())
    except LedgerError as e:
        raise AdapterError(f"Failed to put '{key}': {e}") from e


def _check_reference(value: Optional[bytes], key: str, expected_kind: str) -> None:
    """Enforce that key holds a record of expected_kind when strict checks are on."""
    if not reference_check_strict():
        return

    if value is None:
        raise NotFound(f"Referenced {expected_kind} does not exist: {key}")
    try:
        kind = decode_record(value).kind
    except RecordDecodeError:
        kind = None
    if kind != expected_kind:
        raise NotFound(f"Referenced key is not a {expected_kind} record: {key}")


def init(ledger: LedgerTransaction, args: List[str]) -> bytes:
    return b""


def publish_data(ledger: LedgerTransaction, args: List[str]) -> bytes:
    """Create a Data record. Create-only: an existing key is never overwritten."""
    _require_args(args, 5)
    name, content, date, time, owner = args

    if _read(ledger, name, "data") is not None:
        raise AlreadyExists(f"This data already exists: {name}")

    _write(ledger, name, new_data_record(name, content, date, time, owner))
    return b""


def show_data_info(ledger: LedgerTransaction, args: List[str]) -> bytes:
    """Return the raw stored bytes at a key, whatever kind of record it holds."""
    _require_args(args, 1)
    name = args[0]

    value = _read(ledger, name, "state")
    if value is None:
        raise NotFound(f"Record does not exist: {name}")
    return value


def show_pending_requests(ledger: LedgerTransaction, args: List[str]) -> bytes:
    _require_args(args, 1, exact=False)
    owner = args[0].lower()

    return encode_query_records(pending_requests_for(ledger, owner))


def request_data(ledger: LedgerTransaction, args: List[str]) -> bytes:
    """Create or overwrite a pending Request. The referenced data need not exist."""
    _require_args(args, 3)
    name, data_ref, requestor = args

    existing = _read(ledger, data_ref, "data")
    if existing is None:
        logger.warning(f"Request '{name}' references missing data '{data_ref}'")
    _check_reference(existing, data_ref, "data")

    _write(ledger, name, new_request_record(name, data_ref, requestor))
    return b""


def handle_request(ledger: LedgerTransaction, args: List[str]) -> bytes:
    """Resolve a Request: write the Response and retire the Request in one commit."""
    _require_args(args, 3)
    name, request_ref, reply = args

    existing = _read(ledger, request_ref, "request")
    if existing is None:
        logger.warning(f"Response '{name}' resolves missing request '{request_ref}'")
    _check_reference(existing, request_ref, "request")

    _write(ledger, name, new_response_record(name, request_ref, reply))
    try:
        ledger.delete(request_ref)
    except LedgerError as e:
        raise DeleteFailed(f"Failed to delete request: {e}") from e
    return b""


FUNCTIONS: Dict[str, Callable[[LedgerTransaction, List[str]], bytes]] = {
    "init": init,
    "publishData": publish_data,
    "showDataInfo": show_data_info,
    "showPendingRequests": show_pending_requests,
    "requestData": request_data,
    "handleRequest": handle_request,
}


def invoke(ledger: LedgerAdapter, function: str, args: Sequence[str], commit: bool = True) -> InvocationResult:
    """Run one contract function as a single unit of work.

    Writes are committed together when the function succeeds and commit is
    true; otherwise they are discarded. Errors are returned, never raised.
    """
    handler = FUNCTIONS.get(function)
    if handler is None:
        logger.log_invocation(str(function), "failed", {"error": UnknownFunction.kind})
        return InvocationResult.failure(UnknownFunction("Received unknown function invocation"))

    logger.log_invocation(function, "started", {"arg_count": len(args)})
    tx = ledger.transaction()

    try:
        payload = handler(tx, list(args))
    except ContractError as e:
        tx.discard()
        logger.log_invocation(function, "failed", {"error": e.kind, "message": e.message})
        return InvocationResult.failure(e)

    if not commit:
        tx.discard()
    else:
        try:
            tx.commit()
        except LedgerError as e:
            tx.discard()
            error = AdapterError(f"Failed to commit: {e}")
            logger.log_invocation(function, "failed", {"error": error.kind, "message": error.message})
            return InvocationResult.failure(error)

    logger.log_invocation(function, "success", {"payload_size": len(payload)})
    return InvocationResult.success(payload)
