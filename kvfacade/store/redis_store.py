"""
Redis storage backend.

Uses redis.asyncio. One client per store instance; its pool selects the
configured database on every connection it opens, so plain commands and
MULTI/EXEC pipelines land in the same database.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager

import redis.asyncio as redis
from redis.exceptions import RedisError

from kvfacade.core.config import KVFacadeConfig
from kvfacade.core.errors import StoreCommandError, StoreConnectionError
from kvfacade.store.base import KeyValueStore

logger = logging.getLogger(__name__)

# SCAN starts from and finishes at cursor 0
SCAN_END_CURSOR = 0


@contextmanager
def _command(name: str) -> Iterator[None]:
    try:
        yield
    except RedisError as e:
        raise StoreCommandError(f"Redis {name} failed: {e}", command=name) from e


class RedisStore(KeyValueStore):
    """
    Key-value facade over a Redis database.

    Usage:
        store = RedisStore("redis://localhost:6379", db_index=3)
        await store.connect()

        await store.set_object("Session:42", {"user": BigInt(2**70)}, ttl_seconds=60)
        await store.get_object("session:42")  # {"user": BigInt(1180591620717411303424)}

        await store.disconnect()

    Pass ``client`` to reuse an existing redis.asyncio client. Its pool is
    switched to ``db_index`` on connect, like a client built from the URL.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379",
        db_index: int = 0,
        *,
        ignore_case: bool = True,
        scan_page_size: int = 100,
        client: redis.Redis | None = None,
    ) -> None:
        super().__init__(ignore_case=ignore_case)
        self._url = url
        self._db_index = db_index
        self.scan_page_size = scan_page_size
        self._client = client
        self._connected = False

    @classmethod
    def from_config(
        cls, config: KVFacadeConfig, client: redis.Redis | None = None
    ) -> RedisStore:
        return cls(
            config.redis.url,
            config.redis.db_index,
            ignore_case=config.keys.ignore_case,
            scan_page_size=config.scan.page_size,
            client=client,
        )

    # ── Lifecycle ────────────────────────────────────────────────────────────

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def db_index(self) -> int:
        return self._db_index

    def _create_client(self) -> redis.Redis:
        return redis.Redis.from_url(self._url, decode_responses=True)

    async def _select_db(self, client: redis.Redis) -> None:
        # Every pooled connection SELECTs from these kwargs when it opens;
        # a db path in the URL or an injected client's own db would otherwise win
        pool = client.connection_pool
        if pool.connection_kwargs.get("db", 0) == self._db_index:
            return
        pool.connection_kwargs["db"] = self._db_index
        # Connections already open still point at the previous database
        await pool.disconnect()

    async def connect(self) -> None:
        if self._connected:
            return
        try:
            if self._client is None:
                self._client = self._create_client()
        except ValueError as e:
            raise StoreConnectionError(
                f"Invalid Redis URL '{self._url}': {e}", url=self._url
            ) from e

        try:
            await self._select_db(self._client)
            await self._client.ping()
        except RedisError as e:
            # Release pooled sockets before surfacing the failure
            await self._client.aclose()
            raise StoreConnectionError(
                f"Failed to connect to Redis db {self._db_index}: {e}",
                url=self._url,
                db_index=self._db_index,
            ) from e

        self._connected = True
        logger.debug(f"Connected to Redis db {self._db_index}")

    async def disconnect(self) -> None:
        if not self._connected or self._client is None:
            return
        self._connected = False
        try:
            await self._client.aclose()
        except RedisError as e:
            raise StoreConnectionError(
                f"Redis disconnect failed: {e}",
                url=self._url,
                db_index=self._db_index,
            ) from e
        logger.debug(f"Disconnected from Redis db {self._db_index}")

    def _require_client(self) -> redis.Redis:
        if not self._connected or self._client is None:
            raise StoreConnectionError(
                "Store is not connected; call connect() first",
                url=self._url,
                db_index=self._db_index,
            )
        return self._client

    # ── Scalars ──────────────────────────────────────────────────────────────

    async def set_text(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None = None,
        *,
        ignore_case: bool | None = None,
    ) -> None:
        client = self._require_client()
        with _command("SET"):
            await client.set(self.normalize_key(key, ignore_case), value, ex=ttl_seconds)

    async def get_text(self, key: str, *, ignore_case: bool | None = None) -> str | None:
        client = self._require_client()
        with _command("GET"):
            return await client.get(self.normalize_key(key, ignore_case))

    async def exists(self, key: str, *, ignore_case: bool | None = None) -> bool:
        client = self._require_client()
        with _command("EXISTS"):
            return await client.exists(self.normalize_key(key, ignore_case)) == 1

    # ── Batches ──────────────────────────────────────────────────────────────

    async def delete_keys(
        self, keys: Sequence[str], *, ignore_case: bool | None = None
    ) -> int:
        keys = self.normalize_keys(keys, ignore_case)
        if not keys:
            return 0
        client = self._require_client()
        with _command("DEL"):
            return await client.delete(*keys)

    async def batch_set_text(
        self,
        values: Mapping[str, str],
        ttl_seconds: int | None = None,
        *,
        ignore_case: bool | None = None,
    ) -> None:
        if not values:
            return
        client = self._require_client()
        with _command("MULTI/SET"):
            async with client.pipeline(transaction=True) as pipe:
                for key, value in values.items():
                    pipe.set(self.normalize_key(key, ignore_case), value, ex=ttl_seconds)
                await pipe.execute()
        logger.debug(f"Batch set {len(values)} keys")

    async def batch_get_text(
        self, keys: Sequence[str], *, ignore_case: bool | None = None
    ) -> dict[str, str | None]:
        keys = self.normalize_keys(keys, ignore_case)
        if not keys:
            return {}
        client = self._require_client()
        with _command("MGET"):
            values = await client.mget(keys)
        return dict(zip(keys, values))

    async def delete_by_pattern(self, pattern: str, page_size: int | None = None) -> int:
        """
        Delete keys matching ``pattern`` page by page.

        Each SCAN page is deleted as soon as it arrives; matches may be
        spread over any number of pages, including empty ones.
        """
        client = self._require_client()
        count = page_size or self.scan_page_size
        cursor = SCAN_END_CURSOR
        removed = 0
        while True:
            with _command("SCAN"):
                cursor, keys = await client.scan(cursor=cursor, match=pattern, count=count)
            if keys:
                with _command("DEL"):
                    removed += await client.delete(*keys)
                logger.debug(f"Deleted {len(keys)} keys matching '{pattern}'")
            if int(cursor) == SCAN_END_CURSOR:
                break
        return removed

    async def batch_update_ttl(
        self,
        keys: Sequence[str],
        ttl_seconds: int,
        *,
        ignore_case: bool | None = None,
    ) -> None:
        keys = self.normalize_keys(keys, ignore_case)
        if not keys:
            return
        client = self._require_client()
        with _command("MULTI/EXPIRE"):
            async with client.pipeline(transaction=True) as pipe:
                for key in keys:
                    # EXISTS result is not consulted; EXPIRE on a missing key is a no-op
                    pipe.exists(key)
                    pipe.expire(key, ttl_seconds)
                await pipe.execute()
        logger.debug(f"Updated TTL to {ttl_seconds}s on {len(keys)} keys")
