from typing import Any, Iterable, Mapping

from fastapi import UploadFile

from app.services.backend import BackendClient
from app.services.entities import EntityShape
from app.services.storage import OPPORTUNITY_MAX_BYTES, UploadedFile, resolve_public_url

# Largest size any upload policy accepts; one extra byte is read to detect overflow
MAX_UPLOAD_READ_BYTES = OPPORTUNITY_MAX_BYTES


async def read_upload(file: UploadFile) -> UploadedFile:
    data = await file.read(MAX_UPLOAD_READ_BYTES + 1)
    return UploadedFile(
        filename=file.filename or "",
        content_type=file.content_type or "",
        data=data,
    )


def with_urls(client: BackendClient, shape: EntityShape, rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Add a `<field>_url` public URL next to each stored image path."""
    out = []
    for row in rows:
        item = dict(row)
        for name in shape.asset_fields:
            item[f"{name}_url"] = resolve_public_url(client, item.get(name))
        for array_name, key in shape.asset_items:
            item[array_name] = [
                {**entry, "url": resolve_public_url(client, entry.get(key))}
                for entry in item.get(array_name) or []
            ]
        out.append(item)
    return out
