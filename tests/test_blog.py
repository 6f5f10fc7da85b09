import pytest

from app.services.blog import BlogController, make_tag
from app.services.errors import ValidationFailed


def post_draft(**overrides) -> dict:
    draft = {
        "title": "Kapadokya'da 3 Gün",
        "excerpt": "Balonlar, vadiler ve yeraltı şehirleri.",
        "category_name": "Gezi Rehberi",
        "author_name": "Ayşe Yılmaz",
        "author_title": "Editör",
    }
    draft.update(overrides)
    return draft


def test_make_tag():
    assert make_tag(" Doğa Yürüyüşü ") == {"name": "Doğa Yürüyüşü", "slug": "doga-yuruyusu"}


@pytest.mark.asyncio
async def test_new_post_slug_always_gets_timestamp(backend):
    ctl = BlogController(backend)

    await ctl.create(post_draft())
    await ctl.create(post_draft())

    slugs = [p["slug"] for p in backend.rows("blog_posts")]
    assert all(s.startswith("kapadokya-da-3-gun-") for s in slugs)
    assert all(s.rsplit("-", 1)[1].isdigit() for s in slugs)


@pytest.mark.asyncio
async def test_explicit_slug_is_kept_as_base(backend):
    ctl = BlogController(backend)
    await ctl.create(post_draft(slug="Özel Bağlantı"))
    assert backend.rows("blog_posts")[0]["slug"].startswith("ozel-baglanti-")


@pytest.mark.asyncio
async def test_category_and_tag_slugs_are_filled(backend):
    ctl = BlogController(backend)
    await ctl.create(post_draft(tags=[{"name": "Balon Turu"}, {"name": "  "}]))

    post = backend.rows("blog_posts")[0]
    assert post["category_slug"] == "gezi-rehberi"
    assert post["tags"] == [{"name": "Balon Turu", "slug": "balon-turu"}]


@pytest.mark.asyncio
async def test_update_keeps_slug_and_sections(backend):
    ctl = BlogController(backend)
    created = await ctl.create(post_draft())
    slug = backend.rows("blog_posts")[0]["slug"]

    await ctl.update(created["id"], {
        "content_sections": [{"type": "heading", "content": "Gün 1"}, {"type": "paragraph", "content": "Göreme"}],
    })

    post = backend.rows("blog_posts")[0]
    assert post["slug"] == slug
    assert [s["type"] for s in post["content_sections"]] == ["heading", "paragraph"]


@pytest.mark.asyncio
async def test_unknown_section_type_is_rejected(backend):
    ctl = BlogController(backend)
    with pytest.raises(ValidationFailed):
        await ctl.create(post_draft(content_sections=[{"type": "video", "content": "x"}]))
    assert backend.rows("blog_posts") == []


@pytest.mark.asyncio
async def test_delete_removes_blog_bucket_files(backend):
    backend.seed_file("blog-post-images", "kapak-1.png")
    backend.seed_file("blog-content-images", "ic-1.png")
    row = backend.seed("blog_posts", {
        **post_draft(),
        "hero_image": "blog-post-images/kapak-1.png",
        "content_images": [{"path": "blog-content-images/ic-1.png", "alt": "ic"}],
    })[0]

    await BlogController(backend).delete(row["id"], confirmed=True)

    assert backend.files == {}
    assert backend.rows("blog_posts") == []
