from __future__ import annotations

import copy
import inspect
import logging
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional

from app.services.backend import BackendError
from app.services.controllers import Controller
from app.services.entities import ORDER_KEY, ArrayField
from app.services.errors import InvalidFormState, OperationFailed, ValidationFailed
from app.services.storage import UploadedFile, get_policy, upload_asset


log = logging.getLogger(__name__)


class FormState(str, Enum):
    CLOSED = "closed"
    OPEN_CREATE = "open_create"
    OPEN_EDIT = "open_edit"


@dataclass
class FormSession:
    """Serializable form state; stored between requests by the draft store."""
    entity: str
    state: FormState = FormState.CLOSED
    draft: dict[str, Any] = field(default_factory=dict)
    record_id: Optional[str] = None
    active_tab: str = "general"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FormSession":
        return cls(
            entity=data["entity"],
            state=FormState(data.get("state", FormState.CLOSED.value)),
            draft=dict(data.get("draft") or {}),
            record_id=data.get("record_id"),
            active_tab=data.get("active_tab") or "general",
            id=data["id"],
        )


def renumber(items: list[dict[str, Any]]) -> None:
    for i, item in enumerate(items):
        item[ORDER_KEY] = i + 1


class FormController:
    """
    Create/edit form for one entity.

    closed --open_create--> open_create --submit ok--> closed
    closed --open_edit----> open_edit   --submit ok--> closed
    any open state --cancel--> closed

    A failed submit keeps the form open with the draft intact.
    """

    def __init__(
        self,
        controller: Controller,
        session: FormSession | None = None,
        *,
        on_success: Callable[[dict[str, Any]], Awaitable[None] | None] | None = None,
    ):
        self.controller = controller
        self.shape = controller.shape
        self.session = session or FormSession(entity=self.shape.key)
        self.on_success = on_success

    @property
    def state(self) -> FormState:
        return self.session.state

    @property
    def draft(self) -> dict[str, Any]:
        return self.session.draft

    @property
    def is_open(self) -> bool:
        return self.session.state != FormState.CLOSED

    def _require_open(self) -> None:
        if not self.is_open:
            raise InvalidFormState("Form açık değil")

    # -- open / close --------------------------------------------------

    def open_create(self) -> FormSession:
        self.session.state = FormState.OPEN_CREATE
        self.session.draft = self.controller.new_draft()
        self.session.record_id = None
        self.session.active_tab = self.shape.tabs[0]
        return self.session

    def open_edit(self, record: Mapping[str, Any]) -> FormSession:
        self.session.state = FormState.OPEN_EDIT
        self.session.draft = self.controller.edit_draft(copy.deepcopy(dict(record)))
        self.session.record_id = record.get("id")
        self.session.active_tab = self.shape.tabs[0]
        return self.session

    def cancel(self) -> FormSession:
        self.session.state = FormState.CLOSED
        self.session.draft = {}
        self.session.record_id = None
        self.session.active_tab = self.shape.tabs[0]
        return self.session

    # -- editing -------------------------------------------------------

    def set_field(self, name: str, value: Any) -> None:
        self._require_open()
        self.session.draft[name] = value

    def set_fields(self, values: Mapping[str, Any]) -> None:
        self._require_open()
        self.session.draft.update(values)

    def set_tab(self, tab: str) -> None:
        self._require_open()
        if tab not in self.shape.tabs:
            raise ValidationFailed(f"Bilinmeyen sekme: {tab}", details=[{"tab": tab, "allowed": list(self.shape.tabs)}])
        self.session.active_tab = tab

    def _array(self, name: str) -> tuple[ArrayField, list[dict[str, Any]]]:
        self._require_open()
        try:
            array_field = self.shape.array(name)
        except KeyError:
            raise ValidationFailed(f"Bilinmeyen liste alanı: {name}", details=[{"field": name}])
        items = self.session.draft.get(name)
        if not isinstance(items, list):
            items = []
            self.session.draft[name] = items
        return array_field, items

    def _index(self, items: list, index: int) -> None:
        if index < 0 or index >= len(items):
            raise ValidationFailed("Geçersiz sıra numarası", details=[{"index": index, "size": len(items)}])

    def add_array_item(self, name: str, values: Mapping[str, Any] | None = None) -> dict[str, Any]:
        array_field, items = self._array(name)
        if array_field.fixed:
            raise InvalidFormState(f"{name} listesine öğe eklenemez")
        item = {**array_field.template, **(values or {})}
        items.append(item)
        if array_field.ordered:
            renumber(items)
        return item

    def update_array_item(self, name: str, index: int, values: Mapping[str, Any]) -> dict[str, Any]:
        _, items = self._array(name)
        self._index(items, index)
        items[index] = {**items[index], **values}
        return items[index]

    def remove_array_item(self, name: str, index: int) -> None:
        array_field, items = self._array(name)
        if array_field.fixed:
            raise InvalidFormState(f"{name} listesinden öğe silinemez")
        self._index(items, index)
        items.pop(index)
        if array_field.ordered:
            renumber(items)

    def move_array_item(self, name: str, index: int, direction: str) -> None:
        """
        Swap the item with its neighbour. Moving the first item up or the
        last item down is a no-op.
        """
        array_field, items = self._array(name)
        self._index(items, index)
        if direction not in ("up", "down"):
            raise ValidationFailed("Geçersiz yön", details=[{"direction": direction}])

        target = index - 1 if direction == "up" else index + 1
        if 0 <= target < len(items):
            items[index], items[target] = items[target], items[index]
        if array_field.ordered:
            renumber(items)

    # -- uploads -------------------------------------------------------

    async def upload_and_attach(self, target: str, file: UploadedFile) -> str:
        """
        Upload the file and write its stored path into the draft. Nothing in
        the draft changes when validation or the upload fails.
        """
        self._require_open()
        try:
            upload = self.shape.upload(target)
        except KeyError:
            raise ValidationFailed(f"Bilinmeyen yükleme alanı: {target}", details=[{"target": target}])

        try:
            stored = await upload_asset(self.controller.client, get_policy(upload.policy), file)
        except BackendError as e:
            raise OperationFailed("Görsel yüklenirken bir hata oluştu") from e

        if upload.append:
            self.add_array_item(upload.field, {
                **upload.item_extra,
                upload.item_path_key: stored,
                upload.item_alt_key: file.filename,
            })
        else:
            self.session.draft[upload.field] = stored
        return stored

    # -- submit --------------------------------------------------------

    async def submit(self) -> dict[str, Any]:
        self._require_open()
        self.shape.check_required(self.session.draft)

        if self.session.state == FormState.OPEN_EDIT:
            result = await self.controller.update(self.session.record_id, self.session.draft)
        else:
            result = await self.controller.create(self.session.draft)

        log.info("form submitted entity=%s state=%s", self.shape.key, self.session.state.value)
        self.cancel()

        if self.on_success is not None:
            ret = self.on_success(result)
            if inspect.isawaitable(ret):
                await ret
        return result
