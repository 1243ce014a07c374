"""Wire types exchanged with the Quipubase service.

Plain data-transfer shapes: nothing here is persisted or owned locally,
every value is built from (or sent to) the remote service per call.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Event(str, Enum):
    """Event tag carried by every dispatch and pub/sub message."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    QUERY = "query"
    STOP = "stop"


class JsonSchema(BaseModel):
    """Minimal JSON-schema descriptor.

    ``type`` is a free-form label: inferred schemas may carry runtime type
    names such as ``"number"`` or ``"undefined"``.
    """

    title: str | None = None
    description: str | None = None
    type: str | None = None
    properties: dict[str, JsonSchema] | None = None
    required: list[str] | None = None
    enum: list[Any] | None = None
    items: JsonSchema | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize without unset fields, recursively."""
        return self.model_dump(mode="json", exclude_none=True)


JsonSchema.model_rebuild()


class ActionRequest(BaseModel):
    """Body of a dispatch call: an event tag plus optional id/data."""

    event: Event
    id: str | None = None
    data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize only the fields the caller set.

        ``create`` sends ``data`` even when it is null; ``read`` sends no
        ``data`` key at all.
        """
        return self.model_dump(mode="json", exclude_unset=True)


class Status(BaseModel):
    """Generic result/error envelope."""

    code: int
    message: str
    id: str | None = None
    definition: JsonSchema | None = None


class CollectionType(BaseModel):
    """A remote collection: its id and the schema describing its documents."""

    id: str
    definition: JsonSchema


class SSEEvent(BaseModel, Generic[T]):
    """One decoded message from a collection's event stream."""

    data: T
    event: Event


def to_jsonable(value: Any) -> Any:
    """Convert models to plain JSON-ready values; pass anything else through."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value
