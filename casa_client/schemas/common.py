"""Shared response envelope and model bases."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Uniform result of every client and service call.

    ``status_code`` is None when no HTTP response was received at all
    (DNS, connect, timeout), which callers use to tell network failures
    from server-side errors.
    """
    success: bool
    data: T | None = None
    error: str | None = None
    status_code: int | None = None
    fallback: bool = False

    @classmethod
    def ok(cls, data: Any = None, *, status_code: int | None = None) -> "ApiResponse":
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, error: str, *, status_code: int | None = None) -> "ApiResponse":
        return cls(success=False, error=error, status_code=status_code)


class CamelModel(BaseModel):
    """View-model serialized with camelCase keys, populated by field name.

    Numeric ids, zip codes and phone numbers from the backend are accepted
    for string fields.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)

    def to_view(self) -> dict[str, Any]:
        """camelCase dict with unset optional parts omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)
