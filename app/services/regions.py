from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from app.services.backend import BackendClient, BackendError
from app.services.entities import REGION_IMAGES
from app.services.errors import OperationFailed, ValidationFailed
from app.services.storage import UploadedFile, get_policy, remove_asset, upload_asset


log = logging.getLogger(__name__)


@dataclass
class RegionGroup:
    region: str
    tours: list[dict[str, Any]] = field(default_factory=list)
    image_path: str | None = None
    expanded: bool = True

    @property
    def active_count(self) -> int:
        return sum(1 for t in self.tours if t.get("destination_status"))


def group_tours_by_region(
    tours: Iterable[Mapping[str, Any]],
    region_images: Iterable[Mapping[str, Any]] = (),
    *,
    collapsed: Iterable[str] = (),
) -> list[RegionGroup]:
    """
    Group tours by their region, keeping regions in first-seen order.
    Tours without a region are skipped; they have no destination page.
    """
    images = {r.get("region"): r.get("image_path") for r in region_images}
    closed = set(collapsed)
    groups: dict[str, RegionGroup] = {}

    for tour in tours:
        region = (tour.get("region") or "").strip()
        if not region:
            continue
        group = groups.get(region)
        if group is None:
            group = RegionGroup(region=region, image_path=images.get(region), expanded=region not in closed)
            groups[region] = group
        group.tours.append(dict(tour))

    return list(groups.values())


class RegionImages:
    """One image per region, keyed by region name."""

    def __init__(self, client: BackendClient):
        self.client = client
        self.items: list[dict[str, Any]] = []

    async def load(self) -> list[dict[str, Any]]:
        try:
            self.items = await self.client.query(REGION_IMAGES.table, order=REGION_IMAGES.order)
        except BackendError as e:
            raise OperationFailed("Bölge görselleri yüklenirken bir hata oluştu") from e
        return self.items

    def image_for(self, region: str) -> str | None:
        for row in self.items:
            if row.get("region") == region:
                return row.get("image_path")
        return None

    async def attach(self, region: str, file: UploadedFile) -> str:
        region = (region or "").strip()
        if not region:
            raise ValidationFailed("Bölge seçilmedi", details=[{"field": "region"}])

        if not self.items:
            await self.load()
        previous = self.image_for(region)

        try:
            stored = await upload_asset(self.client, get_policy("region"), file)
            await self.client.upsert(
                REGION_IMAGES.table,
                {
                    "region": region,
                    "image_path": stored,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                },
                "region",
            )
        except BackendError as e:
            raise OperationFailed("Görsel yüklenirken bir hata oluştu") from e

        if previous and previous != stored:
            await remove_asset(self.client, previous)

        log.info("region image set region=%s path=%s", region, stored)
        await self.load()
        return stored
