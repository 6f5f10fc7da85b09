from __future__ import annotations

from typing import Any, Mapping

from app.services.backend import BackendClient
from app.services.entities import BLOG_POSTS, EntityShape
from app.services.records import RecordController
from app.services.slugs import slugify, with_timestamp


def make_tag(name: str) -> dict[str, str]:
    name = (name or "").strip()
    return {"name": name, "slug": slugify(name)}


def _fill_slugs(row: dict[str, Any]) -> dict[str, Any]:
    if "category_name" in row and not row.get("category_slug"):
        row["category_slug"] = slugify(row["category_name"])
    if "tags" in row:
        row["tags"] = [
            {"name": t["name"], "slug": t.get("slug") or slugify(t["name"])}
            for t in row["tags"]
            if (t.get("name") or "").strip()
        ]
    return row


class BlogController(RecordController):
    """
    Blog posts keep tags, sections and content images inline as JSON.
    A new post always gets a timestamp suffix on its slug, so two posts with
    the same title never collide.
    """

    def __init__(self, client: BackendClient, shape: EntityShape = BLOG_POSTS):
        super().__init__(client, shape)

    async def prepare_create(self, row: dict[str, Any], draft: Mapping[str, Any]) -> dict[str, Any]:
        base = slugify(row.get("slug") or "") or slugify(row.get("title") or "")
        row["slug"] = with_timestamp(base)
        return _fill_slugs(row)

    async def prepare_update(self, id: str, row: dict[str, Any], draft: Mapping[str, Any]) -> dict[str, Any]:
        if "slug" in row:
            slug = slugify(row["slug"])
            if slug:
                row["slug"] = slug
            else:
                row.pop("slug")
        return _fill_slugs(row)
