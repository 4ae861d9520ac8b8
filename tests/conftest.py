"""
Shared fixtures for the ShowPlot API tests.

Settings are read once at import time, so the environment is pointed at a
throwaway SQLite database before anything from ``showplot`` is imported.
"""

import asyncio
import io
import os
import sys
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

ROOT = Path(__file__).parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

_DB_DIR = tempfile.mkdtemp(prefix="showplot-tests-")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/showplot.db"
os.environ["RUN_DB_CREATE_ALL"] = "1"
os.environ["SESSION_SECRET"] = "test-session-secret-with-enough-length"
os.environ["GOOGLE_CLIENT_ID"] = "test-client.apps.googleusercontent.com"
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["CORS_ORIGIN"] = "http://localhost:5173,https://showplot.example"
os.environ["ENVIRONMENT"] = "test"
os.environ["DB_RETRY_SECONDS"] = "0.1"
for _key in ("DIST_DIR", "CHANNEL_DEFAULTS_CSV", "EXPORT_TITLE", "COOKIE_SECURE"):
    os.environ.pop(_key, None)

from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402

from showplot import models  # noqa: E402,F401
from showplot import users  # noqa: E402
from showplot.database import Base, async_session_maker, engine  # noqa: E402
from showplot.main import app  # noqa: E402
from showplot.services import editing  # noqa: E402


# ============================================================================
# Google identities
# ============================================================================

GOOGLE_CLAIMS = {
    "user-token": {
        "sub": "google-user-1",
        "email": "una@example.com",
        "name": "Una User",
        "picture": "https://example.com/una.png",
    },
    "other-token": {
        "sub": "google-user-2",
        "email": "otto@example.com",
        "name": "Otto Other",
        "picture": "",
    },
    "admin-token": {
        "sub": "google-admin",
        "email": "Admin@Example.com",
        "name": "Ada Admin",
        "picture": "",
    },
    "no-sub-token": {"email": "ghost@example.com"},
}


def fake_verify(credential: str) -> dict:
    try:
        return dict(GOOGLE_CLAIMS[credential])
    except KeyError:
        raise ValueError("Wrong number of segments in token")


# ============================================================================
# Database
# ============================================================================


async def _reset_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest_asyncio.fixture
async def db():
    """Fresh schema and a session for service-level tests."""
    await _reset_schema()
    async with async_session_maker() as session:
        yield session


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def client(monkeypatch):
    """TestClient over a fresh schema with Google verification faked."""
    asyncio.run(_reset_schema())
    monkeypatch.setattr(users, "verify_google_id_token", fake_verify)
    monkeypatch.setattr(editing, "SESSIONS", editing.EditSessionStore())
    with TestClient(app) as c:
        yield c


def sign_in(client: TestClient, token: str = "user-token") -> dict:
    res = client.post("/api/auth/google", json={"credential": token})
    assert res.status_code == 200, res.text
    return res.json()["user"]


@pytest.fixture
def user_client(client):
    sign_in(client, "user-token")
    return client


@pytest.fixture
def admin_client(client):
    sign_in(client, "admin-token")
    return client


# ============================================================================
# Files
# ============================================================================


def png_bytes(mode: str = "RGBA", size=(4, 3)) -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size).save(buf, format="PNG")
    return buf.getvalue()


SVG_BYTES = b'<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"><rect width="10" height="10"/></svg>'


def upload_asset(client: TestClient, *, name="Kick Drum", category="Drums", section="Kit", data=None, filename="kick.png", content_type="image/png"):
    res = client.post(
        "/api/admin/assets",
        files={"file": (filename, data if data is not None else png_bytes(), content_type)},
        data={"name": name, "category": category, "section": section},
    )
    assert res.status_code == 201, res.text
    return res.json()
