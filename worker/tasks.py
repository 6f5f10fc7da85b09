import asyncio
import logging
from dataclasses import asdict

from app.core.config import settings
from app.services.assets_gc import sweep_orphaned_assets as sweep
from app.services.backend import BackendClient
from worker.celery_app import celery

log = logging.getLogger(__name__)


async def _sweep(dry_run: bool) -> dict:
    client = BackendClient(
        base_url=settings.backend_url,
        api_key=settings.backend_api_key.get_secret_value(),
        timeout_seconds=settings.backend_timeout_seconds,
    )
    try:
        report = await sweep(client, grace_seconds=settings.orphan_grace_seconds, dry_run=dry_run)
    finally:
        await client.aclose()
    return asdict(report)


@celery.task(name="worker.tasks.sweep_orphaned_assets")
def sweep_orphaned_assets(dry_run: bool = False) -> dict:
    return asyncio.run(_sweep(dry_run))
