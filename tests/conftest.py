"""Shared pytest fixtures.

Hey future me - every test gets its OWN in-memory SQLite database (StaticPool keeps
the single connection alive for the lifetime of the engine). Nothing leaks between tests.

API tests must seed data through `client.portal.call(...)` - aiosqlite connections are
bound to the event loop that created them, and TestClient runs the app on its own loop.
"""

import uuid
from collections.abc import AsyncGenerator, Callable, Iterator
from datetime import timedelta

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from rankify.config import Settings
from rankify.config.settings import DatabaseSettings, SpotifySettings
from rankify.domain.entities import utc_now
from rankify.infrastructure.integrations import SpotifyCatalogClient
from rankify.infrastructure.persistence import Database, SessionRepository
from rankify.main import create_app


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database=DatabaseSettings(
            url="sqlite+aiosqlite:///:memory:",
            create_tables_on_startup=True,
        ),
        spotify=SpotifySettings(client_id="test-client", client_secret="test-secret"),
    )


@pytest.fixture
async def db(settings: Settings) -> AsyncGenerator[Database, None]:
    database = Database(settings)
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
async def session(db: Database) -> AsyncGenerator[AsyncSession, None]:
    async with db.session_scope() as s:
        yield s


# --- API fixtures -------------------------------------------------------------------------


def spotify_handler(request: httpx.Request) -> httpx.Response:
    """Default fake Spotify: hands out a token and returns one album for any search."""
    if request.url.path.endswith("/api/token"):
        return httpx.Response(200, json={"access_token": "app-token", "expires_in": 3600})
    if request.url.path.endswith("/search"):
        return httpx.Response(
            200,
            json={
                "albums": {
                    "items": [
                        {
                            "id": "al1",
                            "name": "OK Computer",
                            "artists": [{"id": "ar1", "name": "Radiohead"}],
                            "images": [{"url": "https://img.example/al1.jpg"}],
                            "release_date": "1997-05-21",
                            "total_tracks": 12,
                        }
                    ]
                }
            },
        )
    return httpx.Response(404, json={"error": {"status": 404, "message": "Not found"}})


@pytest.fixture
def catalog_client(settings: Settings) -> SpotifyCatalogClient:
    return SpotifyCatalogClient(settings.spotify, transport=httpx.MockTransport(spotify_handler))


@pytest.fixture
def app(settings: Settings, catalog_client: SpotifyCatalogClient) -> FastAPI:
    return create_app(settings, catalog_client=catalog_client)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


async def _seed_session(db: Database, user_id: str, expires_in: timedelta) -> str:
    session_id = f"sess-{uuid.uuid4()}"
    async with db.session_scope() as session:
        await SessionRepository(session).add(session_id, user_id, utc_now() + expires_in)
    return session_id


@pytest.fixture
def login(client: TestClient) -> Callable[..., dict[str, str]]:
    """Create a session row for user_id and return the Authorization header for it."""

    def _login(user_id: str, expires_in: timedelta = timedelta(hours=1)) -> dict[str, str]:
        session_id = client.portal.call(_seed_session, client.app.state.db, user_id, expires_in)
        return {"Authorization": f"Bearer {session_id}"}

    return _login
