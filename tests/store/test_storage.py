"""Tests for RedisStore against an in-process fake Redis."""

import asyncio

import fakeredis
import pytest
from pydantic import BaseModel

from kvfacade.codec import BigInt
from kvfacade.core.errors import ParseError, StoreConnectionError
from kvfacade.store.redis_store import RedisStore


class Profile(BaseModel):
    name: str
    visits: int


# ━━━ Lifecycle ━━━


@pytest.mark.asyncio
async def test_connect_and_disconnect(fake_client):
    store = RedisStore(client=fake_client)
    assert store.is_connected is False
    await store.connect()
    assert store.is_connected is True
    await store.disconnect()
    assert store.is_connected is False


@pytest.mark.asyncio
async def test_disconnect_when_not_connected_is_noop(fake_client):
    store = RedisStore(client=fake_client)
    await store.disconnect()
    assert store.is_connected is False


@pytest.mark.asyncio
async def test_context_manager_connects_and_closes(fake_client):
    async with RedisStore(client=fake_client) as store:
        assert store.is_connected is True
        await store.set_text("k", "v")
    assert store.is_connected is False


@pytest.mark.asyncio
async def test_use_before_connect_raises(fake_client):
    store = RedisStore(client=fake_client)
    with pytest.raises(StoreConnectionError):
        await store.get_text("k")


@pytest.mark.asyncio
async def test_created_client_targets_configured_db():
    store = RedisStore("redis://localhost:6379/0", db_index=5)
    client = store._create_client()
    await store._select_db(client)
    assert client.connection_pool.connection_kwargs["db"] == 5


@pytest.mark.asyncio
async def test_injected_client_writes_to_configured_db(fake_server, fake_client):
    async with RedisStore(client=fake_client, db_index=5) as store:
        await store.set_text("k", "v")

    db5 = fakeredis.FakeAsyncRedis(server=fake_server, db=5, decode_responses=True)
    db0 = fakeredis.FakeAsyncRedis(server=fake_server, db=0, decode_responses=True)
    assert await db5.get("k") == "v"
    assert await db0.get("k") is None


def test_from_config(config):
    config.redis.db_index = 4
    config.keys.ignore_case = False
    config.scan.page_size = 25
    store = RedisStore.from_config(config)
    assert store.db_index == 4
    assert store.ignore_case is False
    assert store.scan_page_size == 25


# ━━━ Text ━━━


@pytest.mark.asyncio
async def test_set_and_get_text(store):
    await store.set_text("greeting", "hello")
    assert await store.get_text("greeting") == "hello"


@pytest.mark.asyncio
async def test_get_missing_text(store):
    assert await store.get_text("nonexistent") is None


@pytest.mark.asyncio
async def test_keys_are_case_insensitive_by_default(store, fake_client):
    await store.set_text("Foo", "bar")
    assert await store.get_text("foo") == "bar"
    assert await store.get_text("FOO") == "bar"
    assert await fake_client.get("foo") == "bar"


@pytest.mark.asyncio
async def test_case_sensitive_lookup_misses(store):
    await store.set_text("Foo", "bar", ignore_case=False)
    assert await store.get_text("foo", ignore_case=False) is None
    assert await store.get_text("Foo", ignore_case=False) == "bar"


@pytest.mark.asyncio
async def test_store_default_can_be_case_sensitive(fake_client):
    async with RedisStore(client=fake_client, ignore_case=False) as store:
        await store.set_text("Foo", "bar")
        assert await store.get_text("foo") is None
        assert await store.get_text("foo", ignore_case=True) is None
        assert await store.get_text("Foo") == "bar"


@pytest.mark.asyncio
async def test_text_without_ttl_persists(store, fake_client):
    await store.set_text("forever", "x")
    assert await fake_client.ttl("forever") == -1


@pytest.mark.asyncio
async def test_text_expires_after_ttl(store):
    await store.set_text("short", "lived", ttl_seconds=1)
    assert await store.exists("short") is True
    await asyncio.sleep(1.2)
    assert await store.exists("short") is False
    assert await store.get_text("short") is None


# ━━━ Numbers ━━━


@pytest.mark.asyncio
async def test_set_and_get_int(store, fake_client):
    await store.set_number("Count", 42)
    assert await fake_client.get("count") == "42"
    result = await store.get_number("count")
    assert result == 42
    assert isinstance(result, int)


@pytest.mark.asyncio
async def test_set_and_get_float(store):
    await store.set_number("ratio", 0.25)
    assert await store.get_number("ratio") == 0.25


@pytest.mark.asyncio
async def test_get_number_missing(store):
    assert await store.get_number("nope") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["abc", "", "inf", "nan", "1.2.3", "1_000", "0x1f", "1e999"])
async def test_get_number_non_numeric_is_none(store, text):
    await store.set_text("n", text)
    assert await store.get_number("n") is None


# ━━━ Big integers ━━━


@pytest.mark.asyncio
async def test_big_int_is_stored_without_marker(store, fake_client):
    await store.set_big_int("big", BigInt(2**100))
    assert await fake_client.get("big") == str(2**100)


@pytest.mark.asyncio
async def test_get_big_int_exact(store):
    await store.set_text("big", "123456789012345678901234567890")
    result = await store.get_big_int("big")
    assert result == 123456789012345678901234567890
    assert isinstance(result, BigInt)


@pytest.mark.asyncio
async def test_get_big_int_missing(store):
    assert await store.get_big_int("absent") is None


@pytest.mark.asyncio
async def test_get_big_int_invalid_raises(store):
    await store.set_text("big", "12.5")
    with pytest.raises(ParseError):
        await store.get_big_int("big")


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["1_000", "0x10", "", " ", "12n", "١٢"])
async def test_get_big_int_rejects_non_decimal_literals(store, text):
    await store.set_text("big", text)
    with pytest.raises(ParseError):
        await store.get_big_int("big")


@pytest.mark.asyncio
async def test_get_big_int_accepts_sign_and_padding(store):
    await store.set_text("big", " -42 ")
    assert await store.get_big_int("big") == -42


@pytest.mark.asyncio
async def test_big_int_beyond_digit_limit(store, fake_client):
    value = BigInt(7 * 10**5000 + 3)
    await store.set_big_int("huge", value)
    stored = await fake_client.get("huge")
    assert len(stored) == 5001
    assert stored.startswith("7000") and stored.endswith("0003")
    assert await store.get_big_int("huge") == value


@pytest.mark.asyncio
async def test_get_number_long_integer_text(store):
    await store.set_text("n", "9" * 5000)
    assert await store.get_number("n") == 10**5000 - 1
    await store.set_text("n", "1" + "0" * 300)
    assert await store.get_number("n") == 10**300


# ━━━ Objects ━━━


@pytest.mark.asyncio
async def test_set_and_get_object(store, fake_client):
    value = {"id": BigInt(2**70), "tags": ["a", "b"], "meta": {"ok": True, "n": None}}
    await store.set_object("Obj:1", value)
    assert '"1180591620717411303424n"' in await fake_client.get("obj:1")
    result = await store.get_object("obj:1")
    assert result == value
    assert isinstance(result["id"], BigInt)


@pytest.mark.asyncio
async def test_get_object_missing(store):
    assert await store.get_object("obj:none") is None


@pytest.mark.asyncio
async def test_get_object_malformed_raises(store):
    await store.set_text("broken", "{oops")
    with pytest.raises(ParseError):
        await store.get_object("broken")


@pytest.mark.asyncio
async def test_object_with_model(store):
    await store.set_object("profile", Profile(name="Alex", visits=3))
    result = await store.get_object("profile", Profile)
    assert result == Profile(name="Alex", visits=3)


@pytest.mark.asyncio
async def test_object_with_ttl(store, fake_client):
    await store.set_object("temp", [1, 2], ttl_seconds=100)
    assert 0 < await fake_client.ttl("temp") <= 100


# ━━━ Deletes ━━━


@pytest.mark.asyncio
async def test_delete_keys(store):
    await store.set_text("a", "1")
    await store.set_text("b", "2")
    removed = await store.delete_keys(["A", "b", "missing"])
    assert removed == 2
    assert await store.exists("a") is False
    assert await store.exists("b") is False


@pytest.mark.asyncio
async def test_delete_keys_empty(store):
    assert await store.delete_keys([]) == 0


@pytest.mark.asyncio
async def test_delete_keys_case_sensitive(store):
    await store.set_text("Mixed", "1", ignore_case=False)
    assert await store.delete_keys(["mixed"], ignore_case=False) == 0
    assert await store.delete_keys(["Mixed"], ignore_case=False) == 1


@pytest.mark.asyncio
async def test_delete_by_pattern(store):
    for i in range(30):
        await store.set_text(f"session:{i}", "x")
    await store.set_text("user:1", "keep")

    removed = await store.delete_by_pattern("session:*")

    assert removed == 30
    for i in range(30):
        assert await store.exists(f"session:{i}") is False
    assert await store.get_text("user:1") == "keep"


@pytest.mark.asyncio
async def test_delete_by_pattern_no_matches(store):
    await store.set_text("user:1", "keep")
    assert await store.delete_by_pattern("nothing:*") == 0
    assert await store.exists("user:1") is True


# ━━━ Batches ━━━


@pytest.mark.asyncio
async def test_batch_set_text(store, fake_client):
    await store.batch_set_text({"One": "1", "two": "2"}, ttl_seconds=50)
    assert await store.get_text("one") == "1"
    assert await store.get_text("two") == "2"
    assert 0 < await fake_client.ttl("one") <= 50
    assert 0 < await fake_client.ttl("two") <= 50


@pytest.mark.asyncio
async def test_batch_set_text_without_ttl(store, fake_client):
    await store.batch_set_text({"p": "1"})
    assert await fake_client.ttl("p") == -1


@pytest.mark.asyncio
async def test_batch_get_text(store):
    await store.set_text("a", "1")
    await store.set_text("c", "3")
    result = await store.batch_get_text(["A", "b", "c"])
    assert result == {"a": "1", "b": None, "c": "3"}


@pytest.mark.asyncio
async def test_batch_get_text_case_sensitive_keys(store):
    await store.set_text("Key", "v", ignore_case=False)
    result = await store.batch_get_text(["Key", "key"], ignore_case=False)
    assert result == {"Key": "v", "key": None}


@pytest.mark.asyncio
async def test_batch_get_text_empty(store):
    assert await store.batch_get_text([]) == {}


@pytest.mark.asyncio
async def test_batch_objects(store):
    values = {
        "Order:1": {"total": BigInt(10**25), "items": ["x"]},
        "order:2": [1, 2, 3],
    }
    await store.batch_set_object(values)
    result = await store.batch_get_object(["order:1", "ORDER:2", "order:3"])
    assert result == {
        "order:1": {"total": 10**25, "items": ["x"]},
        "order:2": [1, 2, 3],
        "order:3": None,
    }
    assert isinstance(result["order:1"]["total"], BigInt)


@pytest.mark.asyncio
async def test_batch_objects_with_model(store):
    await store.batch_set_object({"p1": Profile(name="A", visits=1), "p2": {"name": "B", "visits": 2}})
    result = await store.batch_get_object(["p1", "p2"], Profile)
    assert result == {"p1": Profile(name="A", visits=1), "p2": Profile(name="B", visits=2)}


@pytest.mark.asyncio
async def test_batch_update_ttl(store, fake_client):
    await store.set_text("a", "1")
    await store.set_text("b", "2")
    await store.batch_update_ttl(["A", "B", "ghost"], 30)
    assert 0 < await fake_client.ttl("a") <= 30
    assert 0 < await fake_client.ttl("b") <= 30
    assert await store.exists("ghost") is False


@pytest.mark.asyncio
async def test_batch_update_ttl_empty(store):
    await store.batch_update_ttl([], 30)


@pytest.mark.asyncio
async def test_exists_normalizes_case(store):
    await store.set_text("present", "1")
    assert await store.exists("PRESENT") is True
    assert await store.exists("PRESENT", ignore_case=False) is False
