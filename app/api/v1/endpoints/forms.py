import logging

from fastapi import APIRouter, Depends, File, UploadFile

from app.api.v1.deps import read_upload, with_urls
from app.core.clients import get_backend, get_draft_store
from app.schemas.forms import (
    ArrayItemIn,
    FieldsIn,
    FormOpenIn,
    FormSessionOut,
    MoveIn,
    SubmitOut,
    TabIn,
)
from app.services.auth import require_session
from app.services.backend import BackendClient
from app.services.controllers import build_controller
from app.services.drafts import DraftStore
from app.services.errors import RecordNotFound, ValidationFailed
from app.services.forms import FormController, FormSession
from app.services.settings_store import SingletonSettings

log = logging.getLogger(__name__)
router = APIRouter(prefix="/forms", dependencies=[Depends(require_session)])


def _controller(client: BackendClient, entity: str):
    try:
        return build_controller(client, entity)
    except KeyError:
        raise ValidationFailed(f"Bilinmeyen içerik türü: {entity}", details=[{"entity": entity}])


def _out(form: FormController) -> FormSessionOut:
    s = form.session
    return FormSessionOut(
        id=s.id,
        entity=s.entity,
        state=s.state.value,
        record_id=s.record_id,
        active_tab=s.active_tab,
        tabs=list(form.shape.tabs),
        draft=s.draft,
    )


async def _load_form(draft_id: str, client: BackendClient, drafts: DraftStore) -> FormController:
    session = await drafts.get(draft_id)
    if session is None:
        raise RecordNotFound("Form bulunamadı veya süresi doldu")
    return FormController(_controller(client, session.entity), session)


@router.post("/{entity}", response_model=FormSessionOut, status_code=201)
async def open_form(
    entity: str,
    payload: FormOpenIn,
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> FormSessionOut:
    ctl = _controller(client, entity)
    form = FormController(ctl, FormSession(entity=ctl.shape.key))

    if isinstance(ctl, SingletonSettings):
        form.open_edit(await ctl.load())
    elif payload.record_id:
        form.open_edit(await ctl.load_detail(payload.record_id))
    else:
        form.open_create()

    await drafts.put(form.session)
    return _out(form)


@router.get("/drafts/{draft_id}", response_model=FormSessionOut)
async def get_form(
    draft_id: str,
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> FormSessionOut:
    return _out(await _load_form(draft_id, client, drafts))


@router.patch("/drafts/{draft_id}/fields", response_model=FormSessionOut)
async def set_form_fields(
    draft_id: str,
    payload: FieldsIn,
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> FormSessionOut:
    form = await _load_form(draft_id, client, drafts)
    form.set_fields(payload.values)
    await drafts.put(form.session)
    return _out(form)


@router.put("/drafts/{draft_id}/tab", response_model=FormSessionOut)
async def set_form_tab(
    draft_id: str,
    payload: TabIn,
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> FormSessionOut:
    form = await _load_form(draft_id, client, drafts)
    form.set_tab(payload.tab)
    await drafts.put(form.session)
    return _out(form)


@router.post("/drafts/{draft_id}/arrays/{field}", response_model=FormSessionOut)
async def add_form_array_item(
    draft_id: str,
    field: str,
    payload: ArrayItemIn,
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> FormSessionOut:
    form = await _load_form(draft_id, client, drafts)
    form.add_array_item(field, payload.values)
    await drafts.put(form.session)
    return _out(form)


@router.patch("/drafts/{draft_id}/arrays/{field}/{index}", response_model=FormSessionOut)
async def update_form_array_item(
    draft_id: str,
    field: str,
    index: int,
    payload: ArrayItemIn,
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> FormSessionOut:
    form = await _load_form(draft_id, client, drafts)
    form.update_array_item(field, index, payload.values)
    await drafts.put(form.session)
    return _out(form)


@router.delete("/drafts/{draft_id}/arrays/{field}/{index}", response_model=FormSessionOut)
async def remove_form_array_item(
    draft_id: str,
    field: str,
    index: int,
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> FormSessionOut:
    form = await _load_form(draft_id, client, drafts)
    form.remove_array_item(field, index)
    await drafts.put(form.session)
    return _out(form)


@router.post("/drafts/{draft_id}/arrays/{field}/{index}/move", response_model=FormSessionOut)
async def move_form_array_item(
    draft_id: str,
    field: str,
    index: int,
    payload: MoveIn,
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> FormSessionOut:
    form = await _load_form(draft_id, client, drafts)
    form.move_array_item(field, index, payload.direction)
    await drafts.put(form.session)
    return _out(form)


@router.post("/drafts/{draft_id}/uploads/{target}", response_model=FormSessionOut)
async def upload_form_image(
    draft_id: str,
    target: str,
    file: UploadFile = File(...),
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> FormSessionOut:
    form = await _load_form(draft_id, client, drafts)
    await form.upload_and_attach(target, await read_upload(file))
    await drafts.put(form.session)
    return _out(form)


@router.post("/drafts/{draft_id}/submit", response_model=SubmitOut)
async def submit_form(
    draft_id: str,
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> SubmitOut:
    form = await _load_form(draft_id, client, drafts)
    # A failed submit raises before the draft is discarded
    record = await form.submit()
    await drafts.delete(draft_id)
    return SubmitOut(record=record, items=with_urls(client, form.shape, form.controller.items))


@router.delete("/drafts/{draft_id}", status_code=204)
async def cancel_form(
    draft_id: str,
    client: BackendClient = Depends(get_backend),
    drafts: DraftStore = Depends(get_draft_store),
) -> None:
    form = await _load_form(draft_id, client, drafts)
    form.cancel()
    await drafts.delete(draft_id)
    log.info("form cancelled entity=%s", form.shape.key)
