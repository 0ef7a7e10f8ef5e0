"""
Query composer - attribute selectors and the owner -> pending-request join.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List

from .errors import LedgerError, QueryFailed, RecordDecodeError
from .ledger import LedgerTransaction
from .schema import DOC_TYPE_FIELD, decode_record
from ..util.logging import logger


@dataclass
class QueryRecord:
    key: str
    record: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {"Key": self.key, "Record": self.record}


def build_selector(doc_type: str, **fields: str) -> str:
    """Build a rich query string matching doc_type and every given field."""
    selector = {DOC_TYPE_FIELD: doc_type}
    selector.update(fields)
    return json.dumps({"selector": selector}, sort_keys=True)


def data_by_owner_query(owner: str) -> str:
    return build_selector("data", owner=owner)


def requests_for_data_query(data_key: str) -> str:
    return build_selector("request", datatxid=data_key)


def _run_query(ledger: LedgerTransaction, query: str) -> list:
    try:
        return list(ledger.get_query_result(query))
    except LedgerError as e:
        raise QueryFailed(str(e)) from e


def owned_data_keys(ledger: LedgerTransaction, owner: str) -> List[str]:
    """Keys of every Data record owned by owner, in index order."""
    return [key for key, _ in _run_query(ledger, data_by_owner_query(owner))]


def pending_requests_for(ledger: LedgerTransaction, owner: str) -> List[QueryRecord]:
    """All pending requests against data owned by owner.

    The index filters one record kind at a time, so this runs one query for
    the owner's Data keys and then one query per key for its Requests. Any
    query failure aborts the whole listing.
    """
    data_keys = owned_data_keys(ledger, owner)
    logger.debug(f"Pending-request join for owner '{owner}' over {len(data_keys)} dataset(s)")

    results = []
    for data_key in data_keys:
        for key, value in _run_query(ledger, requests_for_data_query(data_key)):
            try:
                record = decode_record(value)
            except RecordDecodeError as e:
                raise QueryFailed(f"Index returned undecodable record at '{key}': {e}") from e
            results.append(QueryRecord(key=key, record=record.to_dict()))

    return results


def encode_query_records(records: List[QueryRecord]) -> bytes:
    """Serialize join results as a JSON array of {Key, Record} objects."""
    return json.dumps([r.to_dict() for r in records], separators=(",", ":")).encode("utf-8")
