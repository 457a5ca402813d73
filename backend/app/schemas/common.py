"""
Storefront Backend — Shared Response Envelopes
================================================

What:  The success and error envelopes every JSON endpoint returns.
Why:   Clients parse one shape everywhere:
           success → {"status": "Success", "data": ..., "message"?: ...}
           failure → {"status": "Failed", "statusCode": ..., "message": ...}
How:   Field names are snake_case in Python and camelCase on the wire via the
       to_camel alias generator (FastAPI serializes response models by alias).
"""

from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base for API models: camelCase on the wire, snake_case or camelCase accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DataResponse(CamelModel, Generic[DataT]):
    """Success envelope carrying a payload."""

    status: str = Field(default="Success")
    data: DataT


class MessageResponse(CamelModel):
    """Success envelope for operations that only report an outcome."""

    status: str = Field(default="Success")
    message: str


class MessageDataResponse(CamelModel, Generic[DataT]):
    """Success envelope with both a message and a payload (login, update)."""

    status: str = Field(default="Success")
    message: str
    data: DataT


class ErrorResponse(CamelModel):
    """
    Error envelope produced by the global exception handlers.

    Example:
        {
            "status": "Failed",
            "statusCode": 400,
            "error": "validation_error",
            "message": "User email already taken",
            "details": {"field": "email"},
            "requestId": "1f2e3d4c"
        }
    """

    status: str = Field(default="Failed")
    status_code: int = Field(description="HTTP status of the response")
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None)
    request_id: Optional[str] = Field(default=None)


class HealthResponse(CamelModel):
    status: str = Field(description="healthy, degraded or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uploader: str = Field(description="available, unavailable or circuit_open")
    uptime_seconds: float
