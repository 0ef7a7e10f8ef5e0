"""
HTTP surface for the data-sharing contract.
Invocations commit; queries run the same functions and discard their writes.
"""

import json
from typing import Any, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from .schemas import (
    ErrorResponse,
    HealthResponse,
    InvokeRequest,
    InvokeResponse,
    PendingRequest,
    PendingRequestsResponse,
)
from ..core.config import VERSION, debug_enabled, get_ledger, get_ledger_backend, validate_config
from ..core.contract import InvocationResult, invoke
from ..core.errors import LedgerError
from ..core.ledger import LedgerAdapter
from ..util.logging import logger

ERROR_STATUS_CODES = {
    "InvalidArgument": 400,
    "UnknownFunction": 400,
    "NotFound": 404,
    "AlreadyExists": 409,
}

logger.set_debug(debug_enabled())

# Initialize the FastAPI application
app = FastAPI(
    title="Data Sharing Ledger API",
    version=VERSION,
    description="Publish dataset metadata, request access and resolve requests on a key-value ledger",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

_ledger: Optional[LedgerAdapter] = None


def get_ledger_dependency() -> LedgerAdapter:
    """Shared ledger adapter, built from configuration on first use."""
    global _ledger
    if _ledger is None:
        _ledger = get_ledger()
    return _ledger


def _decode_payload(payload: bytes) -> Any:
    if not payload:
        return None
    try:
        return json.loads(payload.decode("utf-8"))
    except ValueError:
        return payload.decode("utf-8", errors="replace")


def _error_response(result: InvocationResult) -> JSONResponse:
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(result.error, 500),
        content=ErrorResponse(error_type=result.error, message=result.message).model_dump()
    )


def _invoke_response(result: InvocationResult):
    if not result.ok:
        return _error_response(result)
    return InvokeResponse(status=result.status, payload=_decode_payload(result.payload), message=result.message)


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint(ledger: LedgerAdapter = Depends(get_ledger_dependency)):
    """Check system health."""
    db_health = ledger.healthy()
    try:
        record_count = ledger.count()
    except LedgerError as e:
        logger.error(f"Health check could not count records: {e}")
        db_health = False
        record_count = 0

    return HealthResponse(
        status="healthy" if db_health else "unhealthy",
        version=VERSION,
        backend=get_ledger_backend(),
        db_health=db_health,
        record_count=record_count,
        config_issues=validate_config()
    )


@app.post("/invoke", response_model=InvokeResponse, responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
def invoke_endpoint(req: InvokeRequest, ledger: LedgerAdapter = Depends(get_ledger_dependency)):
    """Invoke a contract function and commit its writes."""
    return _invoke_response(invoke(ledger, req.function, req.args))


@app.post("/query", response_model=InvokeResponse, responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
def query_endpoint(req: InvokeRequest, ledger: LedgerAdapter = Depends(get_ledger_dependency)):
    """Evaluate a contract function without committing anything."""
    return _invoke_response(invoke(ledger, req.function, req.args, commit=False))


@app.get("/records/{name}")
def get_record_endpoint(name: str, ledger: LedgerAdapter = Depends(get_ledger_dependency)):
    """Get the record stored under name, whatever its kind."""
    result = invoke(ledger, "showDataInfo", [name], commit=False)
    if not result.ok:
        return _error_response(result)
    return _decode_payload(result.payload)


@app.get("/owners/{owner}/pending-requests", response_model=PendingRequestsResponse)
def pending_requests_endpoint(owner: str, ledger: LedgerAdapter = Depends(get_ledger_dependency)):
    """List pending requests against every dataset owned by owner."""
    result = invoke(ledger, "showPendingRequests", [owner], commit=False)
    if not result.ok:
        return _error_response(result)

    return PendingRequestsResponse(
        owner=owner.lower(),
        requests=[PendingRequest(**item) for item in _decode_payload(result.payload)]
    )
