from fastapi import APIRouter, Depends, File, Query, UploadFile

from app.api.v1.deps import read_upload, with_urls
from app.core.clients import get_backend
from app.schemas.destinations import RegionGroupOut, RegionImageOut
from app.services.auth import require_session
from app.services.backend import BackendClient
from app.services.entities import TOURS
from app.services.regions import RegionImages, group_tours_by_region
from app.services.storage import resolve_public_url
from app.services.tours import TourController

router = APIRouter(prefix="/destinations", dependencies=[Depends(require_session)])


async def _groups(client: BackendClient, tours: TourController, collapsed: list[str]) -> list[RegionGroupOut]:
    images = RegionImages(client)
    await images.load()
    groups = group_tours_by_region(tours.items, images.items, collapsed=collapsed)
    return [
        RegionGroupOut(
            region=g.region,
            image_path=g.image_path,
            image_url=resolve_public_url(client, g.image_path),
            expanded=g.expanded,
            active_count=g.active_count,
            tours=with_urls(client, TOURS, g.tours),
        )
        for g in groups
    ]


@router.get("", response_model=list[RegionGroupOut])
async def list_destinations(
    collapsed: list[str] = Query(default=[]),
    client: BackendClient = Depends(get_backend),
) -> list[RegionGroupOut]:
    tours = TourController(client)
    await tours.load()
    return await _groups(client, tours, collapsed)


@router.post("/{region}/image", response_model=RegionImageOut)
async def upload_region_image(
    region: str,
    file: UploadFile = File(...),
    client: BackendClient = Depends(get_backend),
) -> RegionImageOut:
    images = RegionImages(client)
    stored = await images.attach(region, await read_upload(file))
    return RegionImageOut(region=region, image_path=stored, image_url=resolve_public_url(client, stored))


@router.post("/tours/{tour_id}/status", response_model=list[RegionGroupOut])
async def toggle_destination_status(
    tour_id: str,
    collapsed: list[str] = Query(default=[]),
    client: BackendClient = Depends(get_backend),
) -> list[RegionGroupOut]:
    tours = TourController(client)
    await tours.toggle_flag(tour_id, "destination_status")
    return await _groups(client, tours, collapsed)
