from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class FormOpenIn(BaseModel):
    record_id: Optional[str] = None


class FieldsIn(BaseModel):
    values: dict[str, Any]


class TabIn(BaseModel):
    tab: str


class ArrayItemIn(BaseModel):
    values: dict[str, Any] = Field(default_factory=dict)


class MoveIn(BaseModel):
    direction: Literal["up", "down"]


class FormSessionOut(BaseModel):
    id: str
    entity: str
    state: str
    record_id: Optional[str] = None
    active_tab: str
    tabs: list[str]
    draft: dict[str, Any]


class SubmitOut(BaseModel):
    record: dict[str, Any]
    items: list[dict[str, Any]]
