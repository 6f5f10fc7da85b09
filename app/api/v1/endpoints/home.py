from fastapi import APIRouter, Depends

from app.api.v1.deps import with_urls
from app.core.clients import get_backend
from app.schemas.common import MutationOut
from app.services.auth import require_session
from app.services.backend import BackendClient
from app.services.entities import POPULAR_TOUR_LIMIT, TOURS
from app.services.tours import TourController

router = APIRouter(prefix="/home", dependencies=[Depends(require_session)])


def popular_only(ctl: TourController) -> list[dict]:
    return with_urls(ctl.client, TOURS, [t for t in ctl.items if t.get("popular_tour")])


@router.get("/popular-tours")
async def list_popular_tours(client: BackendClient = Depends(get_backend)) -> dict:
    ctl = TourController(client)
    await ctl.load()
    popular = popular_only(ctl)
    return {
        "limit": POPULAR_TOUR_LIMIT,
        "selected": len(popular),
        "items": popular,
        "tours": with_urls(client, TOURS, ctl.items),
    }


@router.post("/popular-tours/{tour_id}", response_model=MutationOut)
async def toggle_popular_tour(tour_id: str, client: BackendClient = Depends(get_backend)) -> MutationOut:
    ctl = TourController(client)
    value = await ctl.toggle_flag(tour_id, "popular_tour")
    return MutationOut(record={"id": tour_id, "popular_tour": value}, items=popular_only(ctl))
