from app.core.config import settings
from app.services.backend import BackendClient
from app.services.drafts import DraftStore

_backend: BackendClient | None = None
_drafts: DraftStore | None = None


def get_backend() -> BackendClient:
    global _backend
    if _backend is None:
        _backend = BackendClient(
            base_url=settings.backend_url,
            api_key=settings.backend_api_key.get_secret_value(),
            timeout_seconds=settings.backend_timeout_seconds,
        )
    return _backend


def get_draft_store() -> DraftStore:
    global _drafts
    if _drafts is None:
        _drafts = DraftStore(settings.redis_url, ttl_seconds=settings.draft_ttl_seconds)
    return _drafts


async def close_clients() -> None:
    global _backend, _drafts
    if _backend is not None:
        await _backend.aclose()
        _backend = None
    if _drafts is not None:
        await _drafts.aclose()
        _drafts = None
