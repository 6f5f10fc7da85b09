from __future__ import annotations

import json

import redis.asyncio as redis

from app.services.forms import FormSession


class DraftStore:
    """Open form sessions in Redis, expiring after ttl_seconds of inactivity."""

    def __init__(self, redis_url: str, *, ttl_seconds: int):
        self.r = redis.from_url(redis_url, decode_responses=True)
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(draft_id: str) -> str:
        return f"form_draft:{draft_id}"

    async def get(self, draft_id: str) -> FormSession | None:
        raw = await self.r.get(self._key(draft_id))
        if raw is None:
            return None
        return FormSession.from_dict(json.loads(raw))

    async def put(self, session: FormSession) -> None:
        payload = json.dumps(session.to_dict(), ensure_ascii=False, default=str)
        await self.r.set(self._key(session.id), payload, ex=self.ttl_seconds)

    async def delete(self, draft_id: str) -> None:
        await self.r.delete(self._key(draft_id))

    async def aclose(self) -> None:
        await self.r.aclose()
