from __future__ import annotations

from typing import Any, Mapping

from app.core.crypto import hash_password
from app.services.backend import BackendClient
from app.services.entities import AGENCIES, EntityShape
from app.services.errors import ValidationFailed
from app.services.records import RecordController


MIN_PASSWORD_LENGTH = 6


class AgencyController(RecordController):
    """
    Agency accounts. A password is required on create and stored only as a
    scrypt hash; the email is the login name and is not changed on update.
    """

    def __init__(self, client: BackendClient, shape: EntityShape = AGENCIES):
        super().__init__(client, shape)

    async def load(self) -> list[dict[str, Any]]:
        rows = await super().load()
        self.items = [{k: v for k, v in r.items() if k != "password_hash"} for r in rows]
        return self.items

    async def create(self, draft: Mapping[str, Any]) -> dict[str, Any]:
        created = await super().create(draft)
        created.pop("password_hash", None)
        return created

    async def load_detail(self, id: str) -> dict[str, Any]:
        record = await self.get(id)
        record.pop("password_hash", None)
        return record

    async def prepare_create(self, row: dict[str, Any], draft: Mapping[str, Any]) -> dict[str, Any]:
        password = draft.get("password") or ""
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(
                f"Şifre en az {MIN_PASSWORD_LENGTH} karakter olmalıdır",
                details=[{"field": "password", "reason": "too_short"}],
            )
        row["email"] = row["email"].strip().lower()
        row["password_hash"] = hash_password(password)
        return row

    async def prepare_update(self, id: str, row: dict[str, Any], draft: Mapping[str, Any]) -> dict[str, Any]:
        row.pop("email", None)
        password = draft.get("password")
        if password:
            if len(password) < MIN_PASSWORD_LENGTH:
                raise ValidationFailed(
                    f"Şifre en az {MIN_PASSWORD_LENGTH} karakter olmalıdır",
                    details=[{"field": "password", "reason": "too_short"}],
                )
            row["password_hash"] = hash_password(password)
        return row
