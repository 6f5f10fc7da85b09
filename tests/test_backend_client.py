import json

import httpx
import pytest

from app.services.backend import BackendClient, BackendError


def make_client(handler) -> tuple[BackendClient, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = BackendClient(
        base_url="http://backend.test/",
        api_key="service-key",
        transport=httpx.MockTransport(_record),
    )
    return client, seen


def test_requires_url_and_key():
    with pytest.raises(ValueError):
        BackendClient(base_url="", api_key="k")
    with pytest.raises(ValueError):
        BackendClient(base_url="http://backend.test", api_key="")


@pytest.mark.asyncio
async def test_query_encodes_filters_order_and_auth_headers():
    client, seen = make_client(lambda r: httpx.Response(200, json=[{"id": "t1"}]))

    rows = await client.query(
        "tours",
        filters={"region": "Ege", "popular_tour": True, "id": ("neq", "x"), "tour_type_id": None},
        order="created_at.desc",
        limit=5,
    )

    assert rows == [{"id": "t1"}]
    req = seen[0]
    assert req.method == "GET"
    assert req.url.path == "/rest/v1/tours"
    assert req.url.params["region"] == "eq.Ege"
    assert req.url.params["popular_tour"] == "eq.true"
    assert req.url.params["id"] == "neq.x"
    assert req.url.params["tour_type_id"] == "is.null"
    assert req.url.params["order"] == "created_at.desc"
    assert req.url.params["limit"] == "5"
    assert req.headers["apikey"] == "service-key"
    assert req.headers["authorization"] == "Bearer service-key"
    await client.aclose()


@pytest.mark.asyncio
async def test_in_filter_quotes_values():
    client, seen = make_client(lambda r: httpx.Response(200, json=[]))
    await client.query("tours", filters={"id": ("in", ["a", "b"])})
    assert seen[0].url.params["id"] == 'in.("a","b")'
    await client.aclose()


@pytest.mark.asyncio
async def test_insert_asks_for_representation():
    client, seen = make_client(lambda r: httpx.Response(201, json=[{"id": "new", "title": "Ege"}]))

    created = await client.insert("tours", {"title": "Ege"})

    assert created == {"id": "new", "title": "Ege"}
    assert seen[0].method == "POST"
    assert seen[0].headers["prefer"] == "return=representation"
    assert json.loads(seen[0].content) == [{"title": "Ege"}]
    await client.aclose()


@pytest.mark.asyncio
async def test_upsert_sends_conflict_key():
    client, seen = make_client(lambda r: httpx.Response(201))
    await client.upsert("region_images", {"region": "Ege", "image_path": "region-images/a.png"}, "region")
    assert seen[0].url.params["on_conflict"] == "region"
    assert "resolution=merge-duplicates" in seen[0].headers["prefer"]
    await client.aclose()


@pytest.mark.asyncio
async def test_delete_where_refuses_empty_filters():
    client, seen = make_client(lambda r: httpx.Response(204))
    with pytest.raises(ValueError):
        await client.delete_where("tours", {})
    assert seen == []
    await client.aclose()


@pytest.mark.asyncio
async def test_http_error_raises_backend_error_with_message():
    client, _ = make_client(lambda r: httpx.Response(409, json={"message": "duplicate key value"}))

    with pytest.raises(BackendError) as e:
        await client.insert("tours", {"title": "Ege"})

    assert e.value.result.error_code == "HTTP_409"
    assert e.value.result.error_message == "duplicate key value"
    await client.aclose()


@pytest.mark.asyncio
async def test_connection_error_becomes_backend_error():
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    client, _ = make_client(boom)
    with pytest.raises(BackendError) as e:
        await client.query("tours")
    assert e.value.result.error_code == "REQUEST_ERROR"
    await client.aclose()


@pytest.mark.asyncio
async def test_storage_calls():
    client, seen = make_client(lambda r: httpx.Response(200, json=[]))

    await client.upload_file("site-images", "hero/a b.png", b"data", content_type="image/png", overwrite=True)
    await client.delete_file("site-images", "hero/a b.png")
    await client.list_files("site-images", "hero")

    upload, delete, listing = seen
    assert upload.url.raw_path == b"/storage/v1/object/site-images/hero/a%20b.png"
    assert upload.headers["x-upsert"] == "true"
    assert upload.headers["content-type"] == "image/png"
    assert upload.content == b"data"

    assert delete.method == "DELETE"
    assert json.loads(delete.content) == {"prefixes": ["hero/a b.png"]}

    assert listing.url.path == "/storage/v1/object/list/site-images"
    assert json.loads(listing.content)["prefix"] == "hero"
    await client.aclose()


def test_public_url():
    client = BackendClient(base_url="http://backend.test", api_key="k")
    assert client.public_url("site-images", "hero/a.png") == "http://backend.test/storage/v1/object/public/site-images/hero/a.png"
