import pytest

from app.services.errors import FileTooLarge, UploadRejected
from app.services.storage import (
    MB,
    build_storage_path,
    check_upload,
    get_policy,
    remove_asset,
    resolve_public_url,
    split_stored_path,
    upload_asset,
)
from fakes import image


def test_build_storage_path_slugifies_and_lowercases_extension():
    path = build_storage_path("hero", "Kapadokya Günbatımı.JPG", now_ms=1718000000000)
    assert path == "hero/kapadokya-gunbatimi-1718000000000.jpg"


def test_build_storage_path_nested_folder_and_no_extension():
    assert build_storage_path("tour-images/gallery", "foto", now_ms=7) == "tour-images/gallery/foto-7"
    assert build_storage_path("services", "!!!.png", now_ms=7) == "services/file-7.png"


def test_check_upload_rejects_non_image_before_size():
    policy = get_policy("logo")
    with pytest.raises(UploadRejected) as e:
        check_upload(policy, image("doc.pdf", size=3 * MB, content_type="application/pdf"))
    assert not isinstance(e.value, FileTooLarge)
    assert e.value.message == "Lütfen geçerli bir görsel dosyası seçin"


def test_check_upload_size_limits_per_policy():
    with pytest.raises(FileTooLarge) as e:
        check_upload(get_policy("logo"), image(size=2 * MB + 1))
    assert "2MB" in e.value.message

    check_upload(get_policy("hero"), image(size=2 * MB + 1))
    check_upload(get_policy("opportunity"), image("a.webp", size=9 * MB))

    with pytest.raises(FileTooLarge):
        check_upload(get_policy("hero"), image(size=5 * MB + 1))


def test_opportunity_policy_checks_extension():
    with pytest.raises(UploadRejected):
        check_upload(get_policy("opportunity"), image("vector.svg", content_type="image/svg+xml"))


def test_check_upload_empty_file():
    with pytest.raises(UploadRejected) as e:
        check_upload(get_policy("hero"), image(size=0))
    assert e.value.message == "Lütfen bir görsel seçin"


@pytest.mark.asyncio
async def test_upload_asset_site_bucket_and_blog_bucket(backend):
    stored = await upload_asset(backend, get_policy("services"), image("Rehber.png"), now_ms=42)
    assert stored == "services/rehber-42.png"
    assert ("site-images", "services/rehber-42.png") in backend.files

    blog = await upload_asset(backend, get_policy("blog-hero"), image("Kapak.png"), now_ms=42)
    assert blog == "blog-post-images/kapak-42.png"
    assert ("blog-post-images", "kapak-42.png") in backend.files


@pytest.mark.asyncio
async def test_upload_asset_validates_before_network(backend):
    with pytest.raises(FileTooLarge):
        await upload_asset(backend, get_policy("logo"), image(size=3 * MB))
    assert backend.calls_to("upload") == []


@pytest.mark.asyncio
async def test_remove_asset_tolerates_storage_failure(backend):
    backend.seed_file("site-images", "hero/a.png")
    backend.fail_on.add(("delete_file", "*"))
    assert await remove_asset(backend, "hero/a.png") is False
    assert await remove_asset(backend, None) is False


def test_resolve_public_url(backend):
    assert resolve_public_url(backend, None) == ""
    assert resolve_public_url(backend, "") == ""
    assert resolve_public_url(backend, "https://cdn.test/x.png") == "https://cdn.test/x.png"
    assert resolve_public_url(backend, "hero/a.png") == "http://backend.test/storage/v1/object/public/site-images/hero/a.png"
    assert resolve_public_url(backend, "blog-author-images/a.png").endswith("/blog-author-images/a.png")


def test_split_stored_path():
    assert split_stored_path("blog-content-images/x.png") == ("blog-content-images", "x.png")
    assert split_stored_path("tour-images/hero/x.png") == ("site-images", "tour-images/hero/x.png")
