from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: list[dict] = Field(default_factory=list)


class RecordOut(BaseModel):
    record: dict[str, Any]


class ItemsOut(BaseModel):
    items: list[dict[str, Any]]


class MutationOut(BaseModel):
    """A write result plus the reloaded list, so the console can re-render."""
    record: dict[str, Any] | None = None
    items: list[dict[str, Any]] = Field(default_factory=list)
