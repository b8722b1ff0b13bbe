"""
Key-value store interface.

Text is the only thing the store holds. Implementations provide the
text primitives and the batch/scan operations; typed accessors
(number, big integer, JSON object) are built here on top of them.
"""

from __future__ import annotations

import logging
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from kvfacade.codec import BigInt, decode, digits_to_int, encode, int_to_digits
from kvfacade.core.errors import KVFacadeError, ParseError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Plain decimal literals only: no underscores, no hex, no inf/nan
_INT_LITERAL = re.compile(r"\s*[+-]?[0-9]+\s*")
_NUMBER_LITERAL = re.compile(r"\s*[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?\s*")


class KeyValueStore(ABC):
    """
    Abstract base class for key-value stores.

    Every key-taking method has an ``ignore_case`` flag. ``None`` means
    the store default (``True`` unless configured otherwise); when on,
    the key is lower-cased before it reaches the store.

    Implementations:
        RedisStore — redis.asyncio backed

    Usage:
        async with RedisStore("redis://localhost:6379", db_index=2) as store:
            await store.set_number("Visits", 41)
            await store.get_number("visits")  # 41
    """

    def __init__(self, ignore_case: bool = True) -> None:
        self.ignore_case = ignore_case

    # ── Lifecycle ────────────────────────────────────────────────────────────

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection and select the configured database."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection if one is open."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """True while a connection is open."""
        ...

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc is None:
            await self.disconnect()
            return
        # Already unwinding: the body's exception is the one that propagates
        try:
            await self.disconnect()
        except KVFacadeError as close_error:
            logger.warning(
                f"Disconnect failed while handling {exc_type.__name__}: {close_error}"
            )

    # ── Primitives ───────────────────────────────────────────────────────────

    @abstractmethod
    async def set_text(
        self,
        key: str,
        value: str,
        ttl_seconds: int | None = None,
        *,
        ignore_case: bool | None = None,
    ) -> None:
        """Store text. No TTL means the key never expires."""
        ...

    @abstractmethod
    async def get_text(self, key: str, *, ignore_case: bool | None = None) -> str | None:
        """Return stored text, or None if the key does not exist."""
        ...

    @abstractmethod
    async def delete_keys(
        self, keys: Sequence[str], *, ignore_case: bool | None = None
    ) -> int:
        """Delete keys in one call. Returns how many existed."""
        ...

    @abstractmethod
    async def batch_set_text(
        self,
        values: Mapping[str, str],
        ttl_seconds: int | None = None,
        *,
        ignore_case: bool | None = None,
    ) -> None:
        """Set every entry in one atomic pipeline, all with the same TTL."""
        ...

    @abstractmethod
    async def batch_get_text(
        self, keys: Sequence[str], *, ignore_case: bool | None = None
    ) -> dict[str, str | None]:
        """Fetch keys in one call, keyed by the normalized key."""
        ...

    @abstractmethod
    async def exists(self, key: str, *, ignore_case: bool | None = None) -> bool:
        """True iff the key is present and not expired."""
        ...

    @abstractmethod
    async def delete_by_pattern(self, pattern: str, page_size: int | None = None) -> int:
        """Delete every key matching a glob pattern. Returns keys removed."""
        ...

    @abstractmethod
    async def batch_update_ttl(
        self,
        keys: Sequence[str],
        ttl_seconds: int,
        *,
        ignore_case: bool | None = None,
    ) -> None:
        """Set the same TTL on every key in one atomic pipeline."""
        ...

    # ── Keys ─────────────────────────────────────────────────────────────────

    def normalize_key(self, key: str, ignore_case: bool | None = None) -> str:
        if ignore_case is None:
            ignore_case = self.ignore_case
        return key.lower() if ignore_case else key

    def normalize_keys(
        self, keys: Sequence[str], ignore_case: bool | None = None
    ) -> list[str]:
        return [self.normalize_key(k, ignore_case) for k in keys]

    # ── Numbers ──────────────────────────────────────────────────────────────

    async def set_number(
        self,
        key: str,
        value: int | float,
        ttl_seconds: int | None = None,
        *,
        ignore_case: bool | None = None,
    ) -> None:
        text = int_to_digits(value) if isinstance(value, int) else str(value)
        await self.set_text(key, text, ttl_seconds, ignore_case=ignore_case)

    async def get_number(
        self, key: str, *, ignore_case: bool | None = None
    ) -> int | float | None:
        """
        Return the stored number.

        None when the key is missing or its text is not a finite number.
        Integral text comes back as int, anything else as float.
        """
        text = await self.get_text(key, ignore_case=ignore_case)
        if not text:
            return None
        return _parse_number(text)

    async def set_big_int(
        self,
        key: str,
        value: int,
        ttl_seconds: int | None = None,
        *,
        ignore_case: bool | None = None,
    ) -> None:
        # Plain decimal text; the "n" tag is only used inside JSON
        await self.set_text(key, int_to_digits(value), ttl_seconds, ignore_case=ignore_case)

    async def get_big_int(self, key: str, *, ignore_case: bool | None = None) -> BigInt | None:
        """Return the stored integer, or None if missing. Raises ParseError on non-integer text."""
        text = await self.get_text(key, ignore_case=ignore_case)
        if text is None:
            return None
        if not _INT_LITERAL.fullmatch(text):
            raise ParseError(
                f"Value at '{key}' is not an integer literal",
                details={"key": key, "text": text[:200]},
            )
        return BigInt(digits_to_int(text.strip()))

    # ── Objects ──────────────────────────────────────────────────────────────

    async def set_object(
        self,
        key: str,
        value: Any,
        ttl_seconds: int | None = None,
        *,
        ignore_case: bool | None = None,
    ) -> None:
        await self.set_text(key, _encode(value), ttl_seconds, ignore_case=ignore_case)

    async def get_object(
        self,
        key: str,
        model: type[ModelT] | None = None,
        *,
        ignore_case: bool | None = None,
    ) -> Any:
        """
        Return the decoded object, or None if the key is missing.

        With ``model``, the decoded tree is validated into that pydantic model.
        """
        text = await self.get_text(key, ignore_case=ignore_case)
        if text is None:
            return None
        return _decode(text, model)

    async def batch_set_object(
        self,
        values: Mapping[str, Any],
        ttl_seconds: int | None = None,
        *,
        ignore_case: bool | None = None,
    ) -> None:
        encoded = {key: _encode(value) for key, value in values.items()}
        await self.batch_set_text(encoded, ttl_seconds, ignore_case=ignore_case)

    async def batch_get_object(
        self,
        keys: Sequence[str],
        model: type[ModelT] | None = None,
        *,
        ignore_case: bool | None = None,
    ) -> dict[str, Any]:
        texts = await self.batch_get_text(keys, ignore_case=ignore_case)
        return {
            key: None if text is None else _decode(text, model)
            for key, text in texts.items()
        }


def _encode(value: Any) -> str:
    if isinstance(value, BaseModel):
        value = value.model_dump()
    return encode(value)


def _decode(text: str, model: type[ModelT] | None) -> Any:
    value = decode(text)
    if model is not None:
        return model.model_validate(value)
    return value


def _parse_number(text: str) -> int | float | None:
    if _INT_LITERAL.fullmatch(text):
        return digits_to_int(text.strip())
    if not _NUMBER_LITERAL.fullmatch(text):
        return None
    number = float(text)
    return number if math.isfinite(number) else None
