import pytest

from app.services.entities import HERO, SERVICES
from app.services.errors import FileTooLarge, InvalidFormState, OperationFailed, ValidationFailed
from app.services.forms import FormController, FormSession, FormState
from app.services.records import RecordController
from app.services.settings_store import SingletonSettings
from app.services.tours import TourController
from fakes import image


def tour_form(backend, **kwargs) -> FormController:
    return FormController(TourController(backend), **kwargs)


def fill_required(form: FormController, tour_type_id: str) -> None:
    form.set_fields({
        "title": "Karadeniz Yaylaları",
        "region": "Karadeniz",
        "duration": "5 Gün",
        "tour_type_id": tour_type_id,
    })


def test_open_create_starts_from_defaults(backend):
    form = tour_form(backend)
    assert form.state == FormState.CLOSED

    form.open_create()

    assert form.state == FormState.OPEN_CREATE
    assert form.draft["title"] == ""
    assert len(form.draft["weather"]) == 12
    assert form.session.active_tab == "general"


def test_editing_a_closed_form_is_rejected(backend):
    form = tour_form(backend)
    with pytest.raises(InvalidFormState):
        form.set_field("title", "x")


def test_open_edit_copies_record(backend):
    record = {"id": "t1", "title": "Ege", "highlights": [{"content": "Efes", "display_order": 1}]}
    form = tour_form(backend)

    form.open_edit(record)
    form.update_array_item("highlights", 0, {"content": "Bodrum"})

    assert form.state == FormState.OPEN_EDIT
    assert form.session.record_id == "t1"
    assert record["highlights"][0]["content"] == "Efes"


def test_tabs(backend):
    form = tour_form(backend)
    form.open_create()
    form.set_tab("prices")
    assert form.session.active_tab == "prices"
    with pytest.raises(ValidationFailed):
        form.set_tab("unknown")


def test_array_add_move_remove_keeps_order_contiguous(backend):
    form = tour_form(backend)
    form.open_create()
    for text in ("A", "B", "C"):
        form.add_array_item("highlights", {"content": text})

    form.move_array_item("highlights", 2, "up")
    assert [(h["content"], h["display_order"]) for h in form.draft["highlights"]] == [("A", 1), ("C", 2), ("B", 3)]

    form.remove_array_item("highlights", 0)
    assert [(h["content"], h["display_order"]) for h in form.draft["highlights"]] == [("C", 1), ("B", 2)]


def test_move_at_edges_is_noop(backend):
    form = tour_form(backend)
    form.open_create()
    form.add_array_item("highlights", {"content": "A"})
    form.add_array_item("highlights", {"content": "B"})

    form.move_array_item("highlights", 0, "up")
    form.move_array_item("highlights", 1, "down")

    assert [h["content"] for h in form.draft["highlights"]] == ["A", "B"]


def test_index_out_of_range(backend):
    form = tour_form(backend)
    form.open_create()
    with pytest.raises(ValidationFailed):
        form.remove_array_item("highlights", 0)


def test_weather_rows_are_fixed(backend):
    form = tour_form(backend)
    form.open_create()
    with pytest.raises(InvalidFormState):
        form.add_array_item("weather")
    with pytest.raises(InvalidFormState):
        form.remove_array_item("weather", 0)
    form.update_array_item("weather", 6, {"temperature": 31})
    assert form.draft["weather"][6]["month"] == "JUL"


def test_date_price_template(backend):
    form = tour_form(backend)
    form.open_create()
    item = form.add_array_item("dates_prices")
    assert item["price_category"] == "Standart"
    assert item["currency"] == "USD"
    assert item["display_order"] == 1


@pytest.mark.asyncio
async def test_submit_with_missing_fields_stays_open(backend):
    form = tour_form(backend)
    form.open_create()
    form.set_field("title", "Sadece başlık")

    with pytest.raises(ValidationFailed):
        await form.submit()

    assert form.state == FormState.OPEN_CREATE
    assert form.draft["title"] == "Sadece başlık"
    assert backend.calls == []


@pytest.mark.asyncio
async def test_submit_create_closes_and_calls_on_success(backend, tour_type):
    seen = []

    async def on_success(result):
        seen.append(result["id"])

    form = tour_form(backend, on_success=on_success)
    form.open_create()
    fill_required(form, tour_type["id"])
    form.add_array_item("highlights", {"content": "Ayder"})

    result = await form.submit()

    assert form.state == FormState.CLOSED
    assert form.draft == {}
    assert seen == [result["id"]]
    assert backend.rows("tour_highlights")[0]["content"] == "Ayder"


@pytest.mark.asyncio
async def test_submit_backend_failure_keeps_draft(backend, tour_type):
    backend.fail_on.add(("insert", "tours"))
    form = tour_form(backend)
    form.open_create()
    fill_required(form, tour_type["id"])

    with pytest.raises(OperationFailed):
        await form.submit()

    assert form.state == FormState.OPEN_CREATE
    assert form.draft["title"] == "Karadeniz Yaylaları"


@pytest.mark.asyncio
async def test_submit_edit_updates_record(backend):
    row = backend.seed("services", {"name": "Transfer", "display_order": 1})[0]
    ctl = RecordController(backend, SERVICES)
    form = FormController(ctl)

    form.open_edit(row)
    form.set_field("name", "Havalimanı Transferi")
    await form.submit()

    assert backend.rows("services")[0]["name"] == "Havalimanı Transferi"
    assert len(backend.rows("services")) == 1


@pytest.mark.asyncio
async def test_upload_sets_scalar_field(backend):
    form = tour_form(backend)
    form.open_create()

    stored = await form.upload_and_attach("hero", image("Kapak.png"))

    assert stored.startswith("tour-images/hero/kapak-")
    assert form.draft["hero_image_path"] == stored


@pytest.mark.asyncio
async def test_upload_appends_gallery_item(backend):
    form = tour_form(backend)
    form.open_create()

    await form.upload_and_attach("gallery", image("a.png"))
    await form.upload_and_attach("map", image("harita.png"))

    images = form.draft["images"]
    assert [(i["image_type"], i["display_order"]) for i in images] == [("gallery", 1), ("map", 2)]
    assert images[0]["alt_text"] == "a.png"
    assert images[1]["storage_path"].startswith("tour-images/map/harita-")


@pytest.mark.asyncio
async def test_failed_upload_leaves_draft_unchanged(backend):
    form = FormController(SingletonSettings(backend, HERO))
    form.open_edit({"id": "x", "title": "Hoş Geldiniz", "subtitle": "s", "image_path": "hero/old.png"})

    with pytest.raises(FileTooLarge):
        await form.upload_and_attach("image", image(size=6 * 1024 * 1024))
    assert form.draft["image_path"] == "hero/old.png"

    backend.fail_on.add(("upload", "*"))
    with pytest.raises(OperationFailed) as e:
        await form.upload_and_attach("image", image())
    assert e.value.message == "Görsel yüklenirken bir hata oluştu"
    assert form.draft["image_path"] == "hero/old.png"


@pytest.mark.asyncio
async def test_singleton_form_submit_saves_one_row(backend):
    store = SingletonSettings(backend, HERO)
    form = FormController(store)
    form.open_edit(await store.load())
    form.set_field("title", "Yaz Kampanyası")

    await form.submit()

    rows = backend.rows("hero_settings")
    assert len(rows) == 1
    assert rows[0]["title"] == "Yaz Kampanyası"


def test_cancel_discards_draft(backend):
    form = tour_form(backend)
    form.open_create()
    form.set_field("title", "x")
    form.cancel()
    assert form.state == FormState.CLOSED
    assert form.draft == {}


def test_session_round_trips_through_dict():
    session = FormSession(entity="tours", state=FormState.OPEN_EDIT, draft={"title": "Ege"}, record_id="t1")
    restored = FormSession.from_dict(session.to_dict())
    assert restored == session
