"""
Base schema classes with common fields and configurations.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "BaseSchema",
    "CamelSchema",
    "APIResponse",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    All application-facing schemas inherit from this to ensure
    consistent behaviour (attribute loading, whitespace handling, etc.).
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        # Keep enums as Enum instances to retain full type information;
        # callers can still access `.value` if needed.
        use_enum_values=False,
        arbitrary_types_allowed=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class CamelSchema(BaseSchema):
    """
    Schema exchanged with clients.

    Fields are snake_case in Python and camelCase on the wire; input accepts
    either spelling.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict:
        """JSON-compatible camelCase dictionary."""
        return self.model_dump(mode="json", by_alias=True)


T = TypeVar("T")


class APIResponse(CamelSchema, Generic[T]):
    """Envelope for successful API responses."""

    success: bool = Field(default=True, description="Always true for successful responses")
    message: Optional[str] = Field(default=None, description="Human-readable status message")
    data: Optional[T] = Field(default=None, description="Response payload")
