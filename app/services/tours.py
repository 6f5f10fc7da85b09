from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from app.services.backend import BackendClient, BackendError
from app.services.entities import MONTHS, ORDER_KEY, TOURS, ArrayField, EntityShape
from app.services.errors import OperationFailed, ValidationFailed
from app.services.records import RecordController
from app.services.slugs import slugify, with_timestamp
from app.services.storage import remove_asset


log = logging.getLogger(__name__)

PRICE_COLUMNS = {"USD": "price_usd", "EUR": "price_eur", "TRY": "price_try"}


def _number(value: Any) -> float:
    if value is None or value == "":
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"Geçersiz sayı: {value}")


def normalize_weather(rows: Iterable[Mapping[str, Any]] | None, *, strict: bool = True) -> list[dict[str, Any]]:
    """
    Always twelve rows, JAN..DEC, one per month.

    strict=True rejects unknown months and duplicates (editing); strict=False
    keeps the first row seen per month and ignores the rest (reading legacy
    data).
    """
    by_month: dict[str, Mapping[str, Any]] = {}
    for row in rows or []:
        month = str(row.get("month") or "").strip().upper()[:3]
        if month not in MONTHS:
            if strict:
                raise ValidationFailed(f"Geçersiz ay: {row.get('month')}", details=[{"field": "weather"}])
            continue
        if month in by_month:
            if strict:
                raise ValidationFailed(
                    f"{month} ayı için birden fazla hava durumu kaydı var",
                    details=[{"field": "weather", "month": month}],
                )
            continue
        by_month[month] = row

    out = []
    for month in MONTHS:
        row = by_month.get(month) or {}
        out.append({
            "month": month,
            "temperature": _number(row.get("temperature")),
            "rainfall": _number(row.get("rainfall")),
            "is_best_period": bool(row.get("is_best_period")),
        })
    return out


def apply_currency_columns(item: Mapping[str, Any]) -> dict[str, Any]:
    """
    Keep price_usd/price_eur/price_try consistent with (price, currency):
    the selected currency's column carries the price, the others are zero.
    """
    out = dict(item)
    currency = out.get("currency") or "USD"
    if currency not in PRICE_COLUMNS:
        raise ValidationFailed(f"Geçersiz para birimi: {currency}", details=[{"field": "currency"}])
    price = _number(out.get("price"))
    out["price"] = price
    for code, column in PRICE_COLUMNS.items():
        out[column] = price if code == currency else 0
    return out


def child_rows(array: ArrayField, items: list[dict[str, Any]], tour_id: str) -> list[dict[str, Any]]:
    rows = []
    for i, item in enumerate(items):
        row = {k: v for k, v in item.items() if k not in ("id", "tour_id", "created_at")}
        if array.ordered:
            row[ORDER_KEY] = i + 1
        if array.name == "dates_prices":
            row = apply_currency_columns(row)
        row["tour_id"] = tour_id
        rows.append(row)
    return rows


class TourController(RecordController):
    """
    Tours own seven child collections. Saves replace each collection
    wholesale (delete by tour_id, then insert), and the weather collection is
    normalized to twelve months on every save.
    """

    def __init__(self, client: BackendClient, shape: EntityShape = TOURS):
        super().__init__(client, shape)

    def new_draft(self) -> dict[str, Any]:
        draft = super().new_draft()
        draft["weather"] = normalize_weather([])
        return draft

    def edit_draft(self, record: Mapping[str, Any]) -> dict[str, Any]:
        draft = super().edit_draft(record)
        draft["weather"] = normalize_weather(draft.get("weather"), strict=False)
        return draft

    async def load_detail(self, id: str) -> dict[str, Any]:
        tour = await self.get(id)
        try:
            for array in self.shape.child_arrays:
                rows = await self.client.query(
                    array.child_table,
                    filters={"tour_id": id},
                    order=f"{ORDER_KEY}.asc" if array.ordered else None,
                )
                tour[array.name] = rows
        except BackendError as e:
            raise OperationFailed(self._load_failed) from e

        tour["weather"] = normalize_weather(tour.get("weather"), strict=False)
        return tour

    async def _unique_slug(self, slug: str, *, exclude_id: str | None = None) -> str:
        filters: dict[str, Any] = {"slug": slug}
        if exclude_id:
            filters["id"] = ("neq", exclude_id)
        taken = await self.client.query(self.shape.table, filters=filters, select="id", limit=1)
        return with_timestamp(slug) if taken else slug

    async def prepare_create(self, row: dict[str, Any], draft: Mapping[str, Any]) -> dict[str, Any]:
        slug = slugify(row.get("slug") or row.get("title") or "")
        row["slug"] = await self._unique_slug(slug)
        return row

    async def prepare_update(self, id: str, row: dict[str, Any], draft: Mapping[str, Any]) -> dict[str, Any]:
        # A title change alone keeps the published slug
        if "slug" in row:
            slug = slugify(row["slug"]) or slugify(row.get("title") or "")
            if slug:
                row["slug"] = await self._unique_slug(slug, exclude_id=id)
            else:
                row.pop("slug")
        return row

    async def after_save(self, id: str, draft: Mapping[str, Any], *, created: bool) -> None:
        data = self.shape.coerce(draft, partial=True)

        for array in self.shape.child_arrays:
            if array.name == "weather":
                continue
            if array.name not in data:
                continue
            await self._replace_children(array, id, data[array.name])

        # Weather is rewritten even when the draft omits it so legacy tours
        # with missing months end up with all twelve after any save.
        weather = self.shape.array("weather")
        if "weather" in data:
            rows = normalize_weather(data["weather"])
        else:
            existing = [] if created else await self.client.query(
                weather.child_table, filters={"tour_id": id}
            )
            rows = normalize_weather(existing, strict=False)
        await self._replace_children(weather, id, rows)

    async def _replace_children(self, array: ArrayField, tour_id: str, items: list[dict[str, Any]]) -> None:
        await self.client.delete_where(array.child_table, {"tour_id": tour_id})
        rows = child_rows(array, items, tour_id)
        if rows:
            await self.client.insert_many(array.child_table, rows)
        log.debug("tour %s %s replaced (%d rows)", tour_id, array.name, len(rows))

    async def before_delete(self, record: Mapping[str, Any]) -> None:
        tour_id = record["id"]
        images = await self.client.query("tour_images", filters={"tour_id": tour_id}, select="storage_path")
        for image in images:
            await remove_asset(self.client, image.get("storage_path"))

        for array in self.shape.child_arrays:
            await self.client.delete_where(array.child_table, {"tour_id": tour_id})
