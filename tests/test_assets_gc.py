from datetime import datetime, timezone

import pytest

from app.services.assets_gc import sweep_locations, sweep_orphaned_assets

OLD = "2024-01-01T00:00:00+00:00"
NOW = datetime(2024, 3, 1, tzinfo=timezone.utc)


def test_sweep_locations_cover_site_and_blog_buckets():
    locations = sweep_locations()
    assert ("site-images", "hero") in locations
    assert ("site-images", "tour-images/gallery") in locations
    assert ("blog-post-images", "") in locations
    assert len(locations) == len(set(locations))


@pytest.mark.asyncio
async def test_sweep_deletes_only_old_unreferenced_files(backend):
    backend.seed("services", {"name": "Rehber", "image_path": "services/kept.png"})
    backend.seed("tour_images", {"tour_id": "t1", "storage_path": "tour-images/gallery/kept.png"})
    backend.seed("blog_posts", {"title": "b", "hero_image": "blog-post-images/kept.png", "content_images": []})

    backend.seed_file("site-images", "services/kept.png", created_at=OLD)
    backend.seed_file("site-images", "services/orphan.png", created_at=OLD)
    backend.seed_file("site-images", "tour-images/gallery/kept.png", created_at=OLD)
    backend.seed_file("site-images", "tour-images/gallery/fresh.png", created_at="2024-02-29T23:00:00+00:00")
    backend.seed_file("blog-post-images", "kept.png", created_at=OLD)
    backend.seed_file("blog-post-images", "orphan.png", created_at=OLD)

    report = await sweep_orphaned_assets(backend, grace_seconds=24 * 3600, now=NOW)

    assert sorted(report.deleted) == ["blog-post-images/orphan.png", "site-images/services/orphan.png"]
    assert report.kept_recent == 1
    assert set(backend.files) == {
        ("site-images", "services/kept.png"),
        ("site-images", "tour-images/gallery/kept.png"),
        ("site-images", "tour-images/gallery/fresh.png"),
        ("blog-post-images", "kept.png"),
    }


@pytest.mark.asyncio
async def test_dry_run_deletes_nothing(backend):
    backend.seed_file("site-images", "hero/orphan.png", created_at=OLD)

    report = await sweep_orphaned_assets(backend, grace_seconds=60, now=NOW, dry_run=True)

    assert report.deleted == ["site-images/hero/orphan.png"]
    assert ("site-images", "hero/orphan.png") in backend.files


@pytest.mark.asyncio
async def test_failed_delete_is_reported(backend):
    backend.seed_file("site-images", "hero/orphan.png", created_at=OLD)
    backend.fail_on.add(("delete_file", "*"))

    report = await sweep_orphaned_assets(backend, grace_seconds=60, now=NOW)

    assert report.failed == ["site-images/hero/orphan.png"]
    assert report.deleted == []
