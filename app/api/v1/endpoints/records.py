from typing import Any

from fastapi import APIRouter, Body, Depends

from app.api.v1.deps import with_urls
from app.core.clients import get_backend
from app.schemas.common import ItemsOut, MutationOut, RecordOut
from app.services.auth import require_session
from app.services.backend import BackendClient
from app.services.controllers import build_controller
from app.services.entities import get_entity
from app.services.records import RecordController


def build_records_router(entity: str, prefix: str) -> APIRouter:
    """
    List/detail/create/update/delete/flag routes for one entity.
    Every write answers with the reloaded list.
    """
    shape = get_entity(entity)
    router = APIRouter(prefix=prefix, dependencies=[Depends(require_session)])

    def get_controller(client: BackendClient = Depends(get_backend)) -> RecordController:
        return build_controller(client, entity)

    def items_of(ctl: RecordController) -> list[dict[str, Any]]:
        return with_urls(ctl.client, shape, ctl.items)

    @router.get("", response_model=ItemsOut)
    async def list_records(q: str | None = None, ctl: RecordController = Depends(get_controller)) -> ItemsOut:
        await ctl.load()
        return ItemsOut(items=with_urls(ctl.client, shape, ctl.search(q)))

    @router.get("/{record_id}", response_model=RecordOut)
    async def get_record(record_id: str, ctl: RecordController = Depends(get_controller)) -> RecordOut:
        record = await ctl.load_detail(record_id)
        return RecordOut(record=with_urls(ctl.client, shape, [record])[0])

    @router.post("", response_model=MutationOut, status_code=201)
    async def create_record(
        payload: dict[str, Any] = Body(...),
        ctl: RecordController = Depends(get_controller),
    ) -> MutationOut:
        record = await ctl.create(payload)
        return MutationOut(record=record, items=items_of(ctl))

    @router.put("/{record_id}", response_model=MutationOut)
    async def update_record(
        record_id: str,
        payload: dict[str, Any] = Body(...),
        ctl: RecordController = Depends(get_controller),
    ) -> MutationOut:
        record = await ctl.update(record_id, payload)
        return MutationOut(record=record, items=items_of(ctl))

    @router.delete("/{record_id}", response_model=MutationOut)
    async def delete_record(
        record_id: str,
        confirm: bool = False,
        ctl: RecordController = Depends(get_controller),
    ) -> MutationOut:
        await ctl.delete(record_id, confirmed=confirm)
        return MutationOut(items=items_of(ctl))

    @router.post("/{record_id}/flags/{field}", response_model=MutationOut)
    async def toggle_record_flag(
        record_id: str,
        field: str,
        ctl: RecordController = Depends(get_controller),
    ) -> MutationOut:
        value = await ctl.toggle_flag(record_id, field)
        return MutationOut(record={"id": record_id, field: value}, items=items_of(ctl))

    return router


tours_router = build_records_router("tours", "/tours")
blog_router = build_records_router("blog_posts", "/blog-posts")
tour_types_router = build_records_router("tour_types", "/tour-types")
services_router = build_records_router("services", "/services")
partners_router = build_records_router("partners", "/partners")
stats_router = build_records_router("stats", "/stats")
map_locations_router = build_records_router("map_locations", "/map-locations")
agencies_router = build_records_router("agencies", "/agencies")
profiles_router = build_records_router("profiles", "/profiles")
