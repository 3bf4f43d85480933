"""Pydantic-based schema declarations for plugins.

Every plugin declares the shape of rows it reads or writes. Built-in
plugins accept arbitrary columns, so they declare DynamicRowSchema.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T", bound="PluginSchema")


class PluginSchema(BaseModel):
    """Base class for plugin input/output schemas.

    Plugins define schemas by subclassing:

        class PersonSchema(PluginSchema):
            name: str
            age: int

    Extra fields are ignored; rows may carry more fields than a schema names.
    """

    model_config = ConfigDict(
        extra="ignore",
        strict=False,
        frozen=False,
    )

    def to_row(self) -> dict[str, Any]:
        """Convert schema instance to row dict."""
        return self.model_dump()

    @classmethod
    def from_row(cls: type[T], row: dict[str, Any]) -> T:
        """Create schema instance from row dict."""
        return cls.model_validate(row)


class DynamicRowSchema(PluginSchema):
    """Dynamic schema - any columns, determined at runtime."""

    model_config = ConfigDict(extra="allow")
