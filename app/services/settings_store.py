from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from app.services.backend import BackendClient, BackendError
from app.services.entities import SINGLETON_ID, EntityShape, UploadTarget
from app.services.errors import ConfirmationRequired, OperationFailed, ValidationFailed
from app.services.storage import UploadedFile, get_policy, remove_asset, upload_asset


log = logging.getLogger(__name__)


class SingletonSettings:
    """
    A site-settings table that holds exactly one row (hero, logo, map,
    featured section, opportunity page).

    Saves upsert the fixed singleton row and then remove any other rows, so
    the table never holds more than one record after a successful save.
    An empty table is seeded with the record model's defaults on load.

    create/update mirror RecordController so the form flow can submit to
    either kind of controller.
    """

    def __init__(self, client: BackendClient, shape: EntityShape):
        self.client = client
        self.shape = shape
        self.items: list[dict[str, Any]] = []
        self.is_loading = False

    @property
    def current(self) -> dict[str, Any]:
        return self.items[0] if self.items else {}

    async def load(self) -> dict[str, Any]:
        self.is_loading = True
        try:
            rows = await self.client.query(self.shape.table, order="created_at.desc")
            if not rows:
                await self.client.upsert(
                    self.shape.table,
                    {"id": SINGLETON_ID, **self.shape.defaults()},
                    "id",
                )
                log.info("%s seeded with defaults", self.shape.key)
                rows = await self.client.query(self.shape.table, order="created_at.desc")
        except BackendError as e:
            raise OperationFailed(f"{self.shape.label} yüklenirken bir hata oluştu") from e
        finally:
            self.is_loading = False

        # Legacy tables may hold several rows; the fixed row wins, else the newest
        current = next((r for r in rows if r.get("id") == SINGLETON_ID), rows[0] if rows else {})
        self.items = [current] if current else []
        return current

    async def save(self, draft: Mapping[str, Any], *, check_required: bool = True) -> dict[str, Any]:
        merged = {**self.current, **draft}
        if check_required:
            self.shape.check_required(merged)
        row = self.shape.to_row(merged)
        row["id"] = SINGLETON_ID
        row["updated_at"] = datetime.now(timezone.utc).isoformat()

        try:
            await self.client.upsert(self.shape.table, row, "id")
            await self.client.delete_where(self.shape.table, {"id": ("neq", SINGLETON_ID)})
        except BackendError as e:
            raise OperationFailed(f"{self.shape.label} kaydedilirken bir hata oluştu") from e

        log.info("%s saved", self.shape.key)
        return await self.load()

    async def create(self, draft: Mapping[str, Any]) -> dict[str, Any]:
        return await self.save(draft)

    async def update(self, id: str, draft: Mapping[str, Any]) -> dict[str, Any]:
        return await self.save(draft)

    def new_draft(self) -> dict[str, Any]:
        return {**self.shape.defaults(), **self.current}

    def edit_draft(self, record: Mapping[str, Any]) -> dict[str, Any]:
        return {**self.shape.defaults(), **record}

    async def replace_image(self, target: str, file: UploadedFile) -> dict[str, Any]:
        """
        Upload a new image for `target`, point the record at it, then remove
        the previous file. A failed upload leaves the record untouched.
        """
        upload = self._target(target)
        if not self.items:
            await self.load()
        previous = self.current.get(upload.field)

        try:
            stored = await upload_asset(self.client, get_policy(upload.policy), file)
        except BackendError as e:
            raise OperationFailed("Görsel yüklenirken bir hata oluştu") from e

        saved = await self.save({upload.field: stored}, check_required=False)
        if previous and previous != stored:
            await remove_asset(self.client, previous)
        return saved

    async def clear_image(self, target: str, *, confirmed: bool = False) -> dict[str, Any]:
        if not confirmed:
            raise ConfirmationRequired("Görseli silmek istediğinizden emin misiniz?")
        upload = self._target(target)
        if not self.items:
            await self.load()
        previous = self.current.get(upload.field)

        saved = await self.save({upload.field: self.shape.defaults().get(upload.field)}, check_required=False)
        await remove_asset(self.client, previous)
        return saved

    def _target(self, target: str) -> UploadTarget:
        try:
            return self.shape.upload(target)
        except KeyError:
            raise ValidationFailed(f"Bilinmeyen görsel alanı: {target}", details=[{"target": target}])
