"""Shared schema base and the response envelopes used by every endpoint."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base for API schemas: snake_case in Python, camelCase on the wire (both accepted on input)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope: {status, message, data}."""

    status: int = Field(..., description="HTTP status code")
    message: str = Field(default="Success")
    data: DataT | None = None


class ErrorResponse(BaseModel):
    """Failure envelope: {status, message, errors?}."""

    status: int = Field(..., description="HTTP status code")
    message: str
    errors: list[Any] | None = Field(
        default=None,
        description="Validation details, when available",
    )
