"""
Record model - the three record kinds sharing one ledger key space.
Every stored value is a JSON object tagged with "docType" so that index scans
returning raw bytes for mixed keys can be decoded without a schema registry.
"""

from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import RecordDecodeError

DOC_TYPE_FIELD = "docType"


class LedgerRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_bytes(self) -> bytes:
        """Serialize with wire field names, in declaration order."""
        return self.model_dump_json(by_alias=True).encode("utf-8")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class DataRecord(LedgerRecord):
    """Metadata describing a dataset owned by one party. Immutable once published."""

    kind: Literal["data"] = Field("data", alias=DOC_TYPE_FIELD)
    name: str
    content: str
    date: str
    time: str
    owner: str


class RequestRecord(LedgerRecord):
    """A pending access request. Its presence under its key is its state."""

    kind: Literal["request"] = Field("request", alias=DOC_TYPE_FIELD)
    name: str
    data_ref: str = Field(alias="datatxid")
    requestor: str


class ResponseRecord(LedgerRecord):
    """Terminal resolution of a request."""

    kind: Literal["response"] = Field("response", alias=DOC_TYPE_FIELD)
    name: str
    request_ref: str = Field(alias="requesttxid")
    reply: str


Record = Annotated[
    Union[DataRecord, RequestRecord, ResponseRecord],
    Field(discriminator="kind"),
]

_record_adapter = TypeAdapter(Record)


def new_data_record(name: str, content: str, date: str, time: str, owner: str) -> DataRecord:
    """Build a Data record, lowercasing date, time and owner."""
    return DataRecord(
        name=name,
        content=content,
        date=date.lower(),
        time=time.lower(),
        owner=owner.lower()
    )


def new_request_record(name: str, data_ref: str, requestor: str) -> RequestRecord:
    """Build a Request record, lowercasing the requestor identity."""
    return RequestRecord(name=name, data_ref=data_ref, requestor=requestor.lower())


def new_response_record(name: str, request_ref: str, reply: str) -> ResponseRecord:
    return ResponseRecord(name=name, request_ref=request_ref, reply=reply)


def encode_record(record: LedgerRecord) -> bytes:
    return record.to_bytes()


def decode_record(raw: Union[bytes, str]) -> Union[DataRecord, RequestRecord, ResponseRecord]:
    """Decode stored bytes by reading the docType tag, then the kind-specific fields."""
    try:
        return _record_adapter.validate_json(raw)
    except ValidationError as e:
        raise RecordDecodeError(f"Undecodable record: {e.error_count()} validation error(s)") from e
