"""
kvfacade — typed, case-normalizing facade over a Redis key-value store.

Public API:
    from kvfacade import RedisStore, BigInt, encode, decode
"""

__version__ = "0.1.0"

# Codec
from kvfacade.codec import BigInt, decode, encode, json_deserialize, json_serialize

# Core
from kvfacade.core.config import KVFacadeConfig
from kvfacade.core.errors import (
    CodecError,
    ConfigError,
    KVFacadeError,
    ParseError,
    SerializationError,
    StoreCommandError,
    StoreConnectionError,
)

# Store
from kvfacade.store import KeyValueStore, RedisStore

__all__ = [
    # Codec
    "BigInt",
    "encode",
    "decode",
    "json_serialize",
    "json_deserialize",
    # Core
    "KVFacadeConfig",
    "KVFacadeError",
    "ConfigError",
    "StoreConnectionError",
    "StoreCommandError",
    "CodecError",
    "ParseError",
    "SerializationError",
    # Store
    "KeyValueStore",
    "RedisStore",
]
