"""
Common test fixtures and configuration for playlistwatch tests.
"""
import tempfile
from pathlib import Path
from typing import Callable, List

import httpx
import pytest

from playlistwatch import config
from playlistwatch.database import SnapshotDatabase
from playlistwatch.events import EventBus, EventKind
from playlistwatch.playlist_client import PlaylistClient

from tests.fixtures.sample_data import PLAYLIST_URL, SAMPLE_PLAYLIST, FakeClock


@pytest.fixture
def temp_config_dir():
    """Create a temporary directory for config files during tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture(autouse=True)
def mock_user_config_dir(temp_config_dir, monkeypatch):
    """Point the config module at a temporary directory and reload defaults."""
    monkeypatch.setattr(config, "USER_CONFIG_DIR", temp_config_dir)
    monkeypatch.setattr(config, "CONFIG_FILE_PATH", temp_config_dir / "config.ini")
    config.load_config()


@pytest.fixture
def sample_playlist() -> str:
    return SAMPLE_PLAYLIST


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def snapshot_db(temp_config_dir):
    """A file-backed snapshot database in the temp directory."""
    db = SnapshotDatabase(temp_config_dir / "test.db")
    yield db
    db.close()


@pytest.fixture
def event_recorder():
    """Subscribe to every event kind on a bus and record what arrives."""

    def attach(bus: EventBus) -> List:
        received: List = []
        for kind in EventKind:
            bus.subscribe(kind, received.append)
        return received

    return attach


@pytest.fixture
def make_http_client() -> Callable[..., PlaylistClient]:
    """Build a PlaylistClient whose HTTP layer is an httpx.MockTransport."""

    def factory(handler=None, url: str = PLAYLIST_URL) -> PlaylistClient:
        if handler is None:
            def handler(request: httpx.Request) -> httpx.Response:
                return httpx.Response(200, text=SAMPLE_PLAYLIST)
        transport = httpx.MockTransport(handler)
        return PlaylistClient(
            url=url, timeout=5.0, client=httpx.AsyncClient(transport=transport)
        )

    return factory
