import os

from cryptography.fernet import Fernet

# Settings are read at import time
os.environ.setdefault("BACKEND_URL", "http://backend.test")
os.environ.setdefault("BACKEND_API_KEY", "test-service-key")
os.environ.setdefault("SESSION_SECRET_KEY", Fernet.generate_key().decode("utf-8"))
os.environ.setdefault("ADMIN_EMAIL", "admin@example.com")
os.environ.setdefault("ADMIN_PASSWORD", "correct-horse")
os.environ["OTLP_ENDPOINT"] = ""

import httpx  # noqa: E402
import pytest  # noqa: E402

from app.core.clients import get_backend, get_draft_store  # noqa: E402
from app.main import app  # noqa: E402
from app.services.auth import issue_session  # noqa: E402
from fakes import InMemoryBackend, InMemoryDraftStore  # noqa: E402


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def drafts() -> InMemoryDraftStore:
    return InMemoryDraftStore()


@pytest.fixture
def tour_type(backend):
    return backend.seed("tour_type_settings", {"type": "kultur", "header_title": "Kültür Turları"})[0]


@pytest.fixture
def auth_headers() -> dict:
    token, _ = issue_session("admin@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(backend, drafts):
    """
    HTTP client wired to the in-memory backend and draft store.
    """
    app.dependency_overrides[get_backend] = lambda: backend
    app.dependency_overrides[get_draft_store] = lambda: drafts

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
