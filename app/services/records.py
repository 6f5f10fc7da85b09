from __future__ import annotations

import logging
from typing import Any, Mapping

from app.services.backend import BackendClient, BackendError
from app.services.entities import EntityShape
from app.services.errors import (
    ConfirmationRequired,
    LimitExceeded,
    OperationFailed,
    RecordNotFound,
    ValidationFailed,
)
from app.services.slugs import fold_turkish
from app.services.storage import remove_asset


log = logging.getLogger(__name__)


class RecordController:
    """
    List state and CRUD for one admin entity.

    Every mutation is followed by a reload, so `items` always reflects the
    backend after a successful call. Backend failures surface as
    OperationFailed with a message the console shows as-is.
    """

    def __init__(self, client: BackendClient, shape: EntityShape):
        self.client = client
        self.shape = shape
        self.items: list[dict[str, Any]] = []
        self.is_loading = False

    # -- messages ------------------------------------------------------

    @property
    def _load_failed(self) -> str:
        return f"{self.shape.label_plural} yüklenirken bir hata oluştu"

    @property
    def _save_failed(self) -> str:
        return f"{self.shape.label} kaydedilirken bir hata oluştu"

    @property
    def _delete_failed(self) -> str:
        return f"{self.shape.label} silinirken bir hata oluştu"

    # -- reads ---------------------------------------------------------

    async def load(self) -> list[dict[str, Any]]:
        self.is_loading = True
        try:
            rows = await self.client.query(
                self.shape.table,
                select=self.shape.select,
                order=self.shape.order,
            )
        except BackendError as e:
            raise OperationFailed(self._load_failed) from e
        finally:
            self.is_loading = False

        self.items = rows
        return rows

    async def get(self, id: str) -> dict[str, Any]:
        try:
            rows = await self.client.query(
                self.shape.table,
                filters={"id": id},
                select=self.shape.select,
                limit=1,
            )
        except BackendError as e:
            raise OperationFailed(self._load_failed) from e
        if not rows:
            raise RecordNotFound(f"{self.shape.label} bulunamadı")
        return rows[0]

    async def load_detail(self, id: str) -> dict[str, Any]:
        return await self.get(id)

    def search(self, term: str | None) -> list[dict[str, Any]]:
        """Case- and Turkish-accent-insensitive filter over the loaded items."""
        needle = fold_turkish((term or "").strip())
        if not needle:
            return list(self.items)
        out = []
        for item in self.items:
            haystack = " ".join(str(item.get(f) or "") for f in self.shape.search_fields)
            if needle in fold_turkish(haystack):
                out.append(item)
        return out

    # -- writes --------------------------------------------------------

    async def create(self, draft: Mapping[str, Any]) -> dict[str, Any]:
        self.shape.check_required(draft)
        row = self.shape.to_row(draft)
        await self._check_caps(row)

        try:
            row = await self.prepare_create(row, draft)
            created = await self.client.insert(self.shape.table, row)
            await self.after_save(created["id"], draft, created=True)
        except BackendError as e:
            raise OperationFailed(self._save_failed) from e

        log.info("%s created id=%s", self.shape.key, created.get("id"))
        await self.load()
        return created

    async def update(self, id: str, draft: Mapping[str, Any]) -> dict[str, Any]:
        self.shape.check_required(draft, partial=True)
        row = self.shape.to_row(draft, partial=True)
        await self._check_caps(row, exclude_id=id)

        try:
            row = await self.prepare_update(id, row, draft)
            if row:
                await self.client.update(self.shape.table, id, row)
            await self.after_save(id, draft, created=False)
        except BackendError as e:
            raise OperationFailed(self._save_failed) from e

        log.info("%s updated id=%s fields=%s", self.shape.key, id, sorted(row))
        await self.load()
        return {"id": id, **row}

    async def delete(self, id: str, *, confirmed: bool = False) -> None:
        if not confirmed:
            raise ConfirmationRequired(
                f"Bu {self.shape.label.lower()} kaydını silmek istediğinizden emin misiniz?",
                details=[{"id": id}],
            )

        record = await self.get(id)

        for path in self.shape.asset_paths(record):
            await remove_asset(self.client, path)

        try:
            await self.before_delete(record)
            await self.client.delete(self.shape.table, id)
        except BackendError as e:
            raise OperationFailed(self._delete_failed) from e

        log.info("%s deleted id=%s", self.shape.key, id)
        await self.load()

    async def toggle_flag(self, id: str, field: str) -> bool:
        record = await self.get(id)
        value = not bool(record.get(field))
        await self.set_flag(id, field, value)
        return value

    async def set_flag(self, id: str, field: str, value: bool) -> None:
        if field not in self.shape.flags:
            raise ValidationFailed(f"{field} alanı değiştirilemez", details=[{"field": field}])

        cap = self.shape.flag_caps.get(field)
        if value and cap is not None:
            active = await self._count_flag(field, exclude_id=id)
            if active >= cap.limit:
                raise LimitExceeded(cap.message, details=[{"field": field, "limit": cap.limit}])

        try:
            await self.client.update(self.shape.table, id, {field: value})
        except BackendError as e:
            raise OperationFailed("Durum güncellenirken bir hata oluştu") from e

        log.info("%s flag id=%s %s=%s", self.shape.key, id, field, value)
        await self.load()

    # -- hooks for specialised controllers -----------------------------

    def new_draft(self) -> dict[str, Any]:
        return self.shape.defaults()

    def edit_draft(self, record: Mapping[str, Any]) -> dict[str, Any]:
        return {**self.shape.defaults(), **record}

    async def prepare_create(self, row: dict[str, Any], draft: Mapping[str, Any]) -> dict[str, Any]:
        return row

    async def prepare_update(self, id: str, row: dict[str, Any], draft: Mapping[str, Any]) -> dict[str, Any]:
        return row

    async def after_save(self, id: str, draft: Mapping[str, Any], *, created: bool) -> None:
        return None

    async def before_delete(self, record: Mapping[str, Any]) -> None:
        return None

    # -- helpers -------------------------------------------------------

    async def _count_flag(self, field: str, *, exclude_id: str | None = None) -> int:
        filters: dict[str, Any] = {field: True}
        if exclude_id:
            filters["id"] = ("neq", exclude_id)
        try:
            rows = await self.client.query(self.shape.table, filters=filters, select="id")
        except BackendError as e:
            raise OperationFailed("Durum güncellenirken bir hata oluştu") from e
        return len(rows)

    async def _check_caps(self, row: Mapping[str, Any], *, exclude_id: str | None = None) -> None:
        for field, cap in self.shape.flag_caps.items():
            if not row.get(field):
                continue
            if await self._count_flag(field, exclude_id=exclude_id) >= cap.limit:
                raise LimitExceeded(cap.message, details=[{"field": field, "limit": cap.limit}])
