"""
Request and response models for the HTTP surface.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class InvokeRequest(BaseModel):
    function: str
    args: List[str] = Field(default_factory=list)

    @field_validator('function')
    @classmethod
    def function_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('function cannot be empty')
        return v


class InvokeResponse(BaseModel):
    status: int
    payload: Optional[Any] = None
    message: str = ""


class ErrorResponse(BaseModel):
    error_type: str
    message: str


class PendingRequest(BaseModel):
    Key: str
    Record: Dict[str, Any]


class PendingRequestsResponse(BaseModel):
    owner: str
    requests: List[PendingRequest]


class HealthResponse(BaseModel):
    status: str
    version: str
    backend: str
    db_health: bool
    record_count: int
    config_issues: List[str] = Field(default_factory=list)
