import pytest

from app.core.crypto import verify_password
from app.services.errors import ValidationFailed
from app.services.users import AgencyController


def agency(**overrides) -> dict:
    draft = {
        "acenta_ismi": "Ege Tur",
        "isim": "Mehmet",
        "soyisim": "Kaya",
        "email": "Mehmet@EgeTur.test",
        "password": "gizli-sifre",
    }
    draft.update(overrides)
    return draft


@pytest.mark.asyncio
async def test_create_stores_password_hash_only(backend):
    ctl = AgencyController(backend)

    await ctl.create(agency())

    row = backend.rows("acentalar")[0]
    assert row["email"] == "mehmet@egetur.test"
    assert "password" not in row
    assert verify_password("gizli-sifre", row["password_hash"])
    assert "password_hash" not in ctl.items[0]


@pytest.mark.asyncio
async def test_create_requires_password(backend):
    ctl = AgencyController(backend)
    with pytest.raises(ValidationFailed):
        await ctl.create(agency(password="123"))
    assert backend.rows("acentalar") == []


@pytest.mark.asyncio
async def test_update_keeps_email_and_rehashes_password(backend):
    ctl = AgencyController(backend)
    created = await ctl.create(agency())
    old_hash = backend.rows("acentalar")[0]["password_hash"]

    await ctl.update(created["id"], {"email": "baska@test", "sehir": "İzmir", "password": "yeni-sifre"})

    row = backend.rows("acentalar")[0]
    assert row["email"] == "mehmet@egetur.test"
    assert row["sehir"] == "İzmir"
    assert row["password_hash"] != old_hash
    assert verify_password("yeni-sifre", row["password_hash"])

    detail = await ctl.load_detail(created["id"])
    assert "password_hash" not in detail
