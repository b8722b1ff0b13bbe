"""Shared test fixtures for kvfacade."""

import fakeredis
import pytest
import pytest_asyncio

from kvfacade.core.config import KVFacadeConfig
from kvfacade.store.redis_store import RedisStore


@pytest.fixture
def config():
    """Create a default config without loading from disk."""
    return KVFacadeConfig()


@pytest.fixture
def fake_server():
    """A private in-process Redis server."""
    return fakeredis.FakeServer()


@pytest.fixture
def fake_client(fake_server):
    return fakeredis.FakeAsyncRedis(server=fake_server, decode_responses=True)


@pytest_asyncio.fixture
async def store(fake_client):
    """A connected store backed by fakeredis."""
    store = RedisStore(client=fake_client)
    await store.connect()
    yield store
    await store.disconnect()
