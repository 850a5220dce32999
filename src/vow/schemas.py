"""Shared pydantic base for persisted entities.

Documents are stored and served with camelCase keys and epoch-millisecond
timestamps; that shape is the public wire contract.
"""

from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from vow.errors import StorageError


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, serializes camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Document(CamelModel):
    """An entity persisted inside a collection snapshot."""

    @classmethod
    def from_document(cls, doc: Any) -> Self:  # noqa: ANN401
        """Parse a stored document; a malformed one means the store is corrupt."""
        try:
            return cls.model_validate(doc)
        except PydanticValidationError as exc:
            msg = f"Corrupt {cls.__name__} document: {exc.error_count()} validation error(s)"
            raise StorageError(msg) from exc

    def to_document(self) -> dict[str, Any]:
        """Serialize for storage and for the wire; unset optional fields are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
