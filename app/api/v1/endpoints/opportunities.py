from fastapi import APIRouter, Depends

from app.api.v1.deps import with_urls
from app.core.clients import get_backend
from app.schemas.common import ItemsOut, MutationOut
from app.services.auth import require_session
from app.services.backend import BackendClient
from app.services.entities import TOURS
from app.services.tours import TourController

router = APIRouter(prefix="/opportunities", dependencies=[Depends(require_session)])


@router.get("", response_model=ItemsOut)
async def list_opportunity_tours(client: BackendClient = Depends(get_backend)) -> ItemsOut:
    ctl = TourController(client)
    await ctl.load()
    return ItemsOut(items=with_urls(client, TOURS, [t for t in ctl.items if t.get("opportunity_tour")]))


@router.post("/{tour_id}", response_model=MutationOut)
async def toggle_opportunity_tour(tour_id: str, client: BackendClient = Depends(get_backend)) -> MutationOut:
    ctl = TourController(client)
    value = await ctl.toggle_flag(tour_id, "opportunity_tour")
    return MutationOut(
        record={"id": tour_id, "opportunity_tour": value},
        items=with_urls(client, TOURS, [t for t in ctl.items if t.get("opportunity_tour")]),
    )
