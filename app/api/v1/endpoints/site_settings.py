from typing import Any

from fastapi import APIRouter, Body, Depends, File, UploadFile

from app.api.v1.deps import read_upload, with_urls
from app.core.clients import get_backend
from app.schemas.common import RecordOut
from app.services.auth import require_session
from app.services.backend import BackendClient
from app.services.entities import get_entity
from app.services.settings_store import SingletonSettings


def build_settings_router(entity: str, prefix: str) -> APIRouter:
    shape = get_entity(entity)
    router = APIRouter(prefix=prefix, dependencies=[Depends(require_session)])

    def get_store(client: BackendClient = Depends(get_backend)) -> SingletonSettings:
        return SingletonSettings(client, shape)

    def out(store: SingletonSettings, record: dict[str, Any]) -> RecordOut:
        return RecordOut(record=with_urls(store.client, shape, [record])[0])

    @router.get("", response_model=RecordOut)
    async def get_settings(store: SingletonSettings = Depends(get_store)) -> RecordOut:
        return out(store, await store.load())

    @router.put("", response_model=RecordOut)
    async def save_settings(
        payload: dict[str, Any] = Body(...),
        store: SingletonSettings = Depends(get_store),
    ) -> RecordOut:
        await store.load()
        return out(store, await store.save(payload))

    @router.post("/images/{target}", response_model=RecordOut)
    async def replace_settings_image(
        target: str,
        file: UploadFile = File(...),
        store: SingletonSettings = Depends(get_store),
    ) -> RecordOut:
        uploaded = await read_upload(file)
        return out(store, await store.replace_image(target, uploaded))

    @router.delete("/images/{target}", response_model=RecordOut)
    async def clear_settings_image(
        target: str,
        confirm: bool = False,
        store: SingletonSettings = Depends(get_store),
    ) -> RecordOut:
        return out(store, await store.clear_image(target, confirmed=confirm))

    return router


hero_router = build_settings_router("hero", "/home/hero")
logo_router = build_settings_router("logo", "/home/logo")
map_router = build_settings_router("map", "/home/map")
featured_router = build_settings_router("featured_section", "/home/featured")
opportunity_settings_router = build_settings_router("opportunity_settings", "/opportunities/settings")
