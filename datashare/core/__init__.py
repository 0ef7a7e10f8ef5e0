"""
Contract core - record model, ledger adapters, query composer and operations.
"""

# Package initialization for core module
from .contract import FUNCTIONS, InvocationResult, invoke
from .errors import (
    AdapterError,
    AlreadyExists,
    ContractError,
    DeleteFailed,
    InvalidArgument,
    LedgerError,
    NotFound,
    QueryFailed,
    RecordDecodeError,
    UnknownFunction,
)
from .ledger import InMemoryLedger, LedgerAdapter, LedgerTransaction, SqliteLedger
from .schema import DataRecord, RequestRecord, ResponseRecord, decode_record, encode_record

__all__ = [
    'FUNCTIONS',
    'InvocationResult',
    'invoke',
    'AdapterError',
    'AlreadyExists',
    'ContractError',
    'DeleteFailed',
    'InvalidArgument',
    'LedgerError',
    'NotFound',
    'QueryFailed',
    'RecordDecodeError',
    'UnknownFunction',
    'InMemoryLedger',
    'LedgerAdapter',
    'LedgerTransaction',
    'SqliteLedger',
    'DataRecord',
    'RequestRecord',
    'ResponseRecord',
    'decode_record',
    'encode_record'
]
