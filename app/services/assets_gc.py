from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.core.config import settings
from app.services.backend import BackendClient, BackendError
from app.services.entities import all_entities
from app.services.storage import POLICIES, is_absolute_url, split_stored_path


log = logging.getLogger(__name__)

# Child-table columns that hold stored paths, besides the entity shapes' own
EXTRA_REFERENCES: tuple[tuple[str, str], ...] = (
    ("tour_images", "storage_path"),
)


@dataclass
class SweepReport:
    scanned: int = 0
    referenced: int = 0
    deleted: list[str] = field(default_factory=list)
    kept_recent: int = 0
    failed: list[str] = field(default_factory=list)


def sweep_locations() -> list[tuple[str, str]]:
    """(bucket, folder) pairs that uploads can write to."""
    seen: list[tuple[str, str]] = []
    for policy in POLICIES.values():
        loc = (policy.bucket or settings.site_bucket, policy.category)
        if loc not in seen:
            seen.append(loc)
    return seen


async def collect_referenced(client: BackendClient) -> set[tuple[str, str]]:
    refs: set[tuple[str, str]] = set()

    def add(value) -> None:
        if isinstance(value, str) and value and not is_absolute_url(value):
            refs.add(split_stored_path(value))

    for shape in all_entities():
        if not shape.asset_fields and not shape.asset_items:
            continue
        rows = await client.query(shape.table)
        for row in rows:
            for path in shape.asset_paths(row):
                add(path)

    for table, column in EXTRA_REFERENCES:
        for row in await client.query(table, select=column):
            add(row.get(column))

    return refs


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


async def sweep_orphaned_assets(
    client: BackendClient,
    *,
    grace_seconds: int,
    now: datetime | None = None,
    dry_run: bool = False,
) -> SweepReport:
    """
    Delete uploaded files no record points to.

    Files younger than grace_seconds are kept: they may belong to a form that
    is still open. Files without a creation time are never deleted.
    """
    now = now or datetime.now(timezone.utc)
    report = SweepReport()
    refs = await collect_referenced(client)
    report.referenced = len(refs)

    for bucket, folder in sweep_locations():
        for entry in await client.list_files(bucket, folder):
            if entry.get("id") is None:
                continue  # folder placeholder
            key = f"{folder}/{entry['name']}" if folder else entry["name"]
            report.scanned += 1

            if (bucket, key) in refs:
                continue

            created = _parse_ts(entry.get("created_at"))
            if created is None or (now - created).total_seconds() < grace_seconds:
                report.kept_recent += 1
                continue

            if dry_run:
                report.deleted.append(f"{bucket}/{key}")
                continue

            try:
                await client.delete_file(bucket, key)
            except BackendError:
                log.exception("orphan delete failed bucket=%s key=%s", bucket, key)
                report.failed.append(f"{bucket}/{key}")
                continue
            report.deleted.append(f"{bucket}/{key}")

    log.info(
        "asset sweep scanned=%d referenced=%d deleted=%d kept_recent=%d failed=%d dry_run=%s",
        report.scanned, report.referenced, len(report.deleted), report.kept_recent, len(report.failed), dry_run,
    )
    return report
