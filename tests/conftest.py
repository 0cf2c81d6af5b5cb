"""Test configuration and fixtures"""

import tempfile
from pathlib import Path

import pytest

from musix.core.config import Config, HttpConfig, SpotifyConfig
from musix.spotify.adapter import create_spotify_adapter
from musix.spotify.auth import TokenManager
from musix.spotify.client import SpotifyClient
from tests.support import payloads
from tests.support.stub_transport import FakeClock, StubTransport, token_response


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove credential variables so tests don't see the developer's setup"""
    monkeypatch.delenv("SPOTIFY_CLIENT_ID", raising=False)
    monkeypatch.delenv("SPOTIFY_CLIENT_SECRET", raising=False)
    # load_dotenv() must not pick up a real .env file
    monkeypatch.setattr("musix.core.config.load_dotenv", lambda *args, **kwargs: False)


@pytest.fixture
def spotify_config():
    return SpotifyConfig(client_id="test-client-id", client_secret="test-client-secret")


@pytest.fixture
def config(spotify_config):
    return Config(spotify=spotify_config, http=HttpConfig(max_concurrency=4))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    """Stub transport whose token endpoint always issues token-1"""
    stub = StubTransport()
    stub.add_token(token_response("token-1"))
    return stub


@pytest.fixture
def bare_transport():
    """Stub transport with nothing scripted"""
    return StubTransport()


@pytest.fixture
def tokens(bare_transport, clock):
    return TokenManager(bare_transport, "test-client-id", "test-client-secret", clock=clock)


@pytest.fixture
def client(transport, clock):
    manager = TokenManager(transport, "test-client-id", "test-client-secret", clock=clock)
    return SpotifyClient(transport, manager)


@pytest.fixture
def adapter(config, transport, clock):
    return create_spotify_adapter(config, transport=transport, clock=clock)


@pytest.fixture
def sample_track_data():
    """Full Spotify track object (Hotel California, Eagles)"""
    return payloads.track_json()


@pytest.fixture
def sample_album_data():
    return payloads.album_json()


@pytest.fixture
def sample_artist_data():
    return payloads.artist_json(full=True)
