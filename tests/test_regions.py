import pytest

from app.services.errors import ValidationFailed
from app.services.regions import RegionImages, group_tours_by_region
from fakes import image


def test_groups_keep_first_seen_order():
    tours = [
        {"id": "1", "region": "Ege", "destination_status": True},
        {"id": "2", "region": "Karadeniz", "destination_status": False},
        {"id": "3", "region": "Ege", "destination_status": False},
        {"id": "4", "region": ""},
    ]
    groups = group_tours_by_region(tours, [{"region": "Ege", "image_path": "region-images/ege.png"}])

    assert [g.region for g in groups] == ["Ege", "Karadeniz"]
    assert [t["id"] for t in groups[0].tours] == ["1", "3"]
    assert groups[0].image_path == "region-images/ege.png"
    assert groups[0].active_count == 1
    assert groups[1].image_path is None


def test_collapsed_regions():
    groups = group_tours_by_region([{"region": "Ege"}, {"region": "Akdeniz"}], collapsed=["Akdeniz"])
    assert [(g.region, g.expanded) for g in groups] == [("Ege", True), ("Akdeniz", False)]


@pytest.mark.asyncio
async def test_attach_replaces_region_image(backend):
    images = RegionImages(backend)

    first = await images.attach("Ege", image("ege-1.png"))
    second = await images.attach("Ege", image("ege-2.png"))

    rows = backend.rows("region_images")
    assert len(rows) == 1
    assert rows[0]["image_path"] == second
    assert second.startswith("region-images/ege-2-")
    assert ("site-images", first) not in backend.files
    assert images.image_for("Ege") == second


@pytest.mark.asyncio
async def test_attach_requires_region(backend):
    with pytest.raises(ValidationFailed):
        await RegionImages(backend).attach(" ", image())
