from kvfacade.store.base import KeyValueStore
from kvfacade.store.redis_store import RedisStore

__all__ = ["KeyValueStore", "RedisStore"]
