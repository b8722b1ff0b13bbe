"""
JSON codec with tagged large integers.

Wire form:
    Any BigInt leaf, at any depth, is written as the JSON string
    "<decimal digits>n". On decode, any string leaf matching
    ^[0-9]+n$ becomes a BigInt again. Everything else is plain JSON.

    >>> encode({"id": BigInt(12345678901234567890), "tags": ["a"]})
    '{"id": "12345678901234567890n", "tags": ["a"]}'

Known ambiguity:
    A plain string that already looks like "123n" is indistinguishable
    from an encoded BigInt and decodes as BigInt(123). Negative BigInts
    encode as "-123n", which does not match the pattern and decodes as
    a string. Both are properties of the wire format, which is shared
    with other clients of the same keys and must stay stable.
"""

from __future__ import annotations

import json
import re
from typing import Any

from kvfacade.core.errors import ParseError, SerializationError

BIGINT_MARKER = "n"

_BIGINT_PATTERN = re.compile(r"[0-9]+n")

# Converted in chunks so no single int/str conversion crosses the
# interpreter's digit limit (sys.get_int_max_str_digits)
_CHUNK_DIGITS = 1000
_CHUNK = 10**_CHUNK_DIGITS


def int_to_digits(value: int) -> str:
    """Decimal text of an integer of any size."""
    value = int(value)
    if value < 0:
        return "-" + int_to_digits(-value)
    chunks = []
    while value >= _CHUNK:
        value, low = divmod(value, _CHUNK)
        chunks.append(str(low).zfill(_CHUNK_DIGITS))
    chunks.append(str(value))
    return "".join(reversed(chunks))


def digits_to_int(digits: str) -> int:
    """Parse ASCII decimal digits with an optional sign, of any length."""
    sign = 1
    if digits[:1] in ("+", "-"):
        sign = -1 if digits[0] == "-" else 1
        digits = digits[1:]
    if not digits.isascii() or not digits.isdigit():
        raise ValueError(f"invalid integer literal: {digits[:50]!r}")
    value = 0
    for start in range(0, len(digits), _CHUNK_DIGITS):
        chunk = digits[start : start + _CHUNK_DIGITS]
        value = value * 10 ** len(chunk) + int(chunk)
    return sign * value


class BigInt(int):
    """
    Integer leaf that is tagged on the wire.

    Plain ints serialize as JSON numbers; wrap a value in BigInt when
    the reader on the other side cannot hold it exactly as a number.
    """

    def __repr__(self) -> str:
        return f"BigInt({int_to_digits(self)})"


def _tag(value: Any) -> Any:
    if isinstance(value, BigInt):
        return f"{int_to_digits(value)}{BIGINT_MARKER}"
    if isinstance(value, dict):
        return {k: _tag(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_tag(v) for v in value]
    return value


def _untag(value: Any) -> Any:
    if isinstance(value, str):
        if _BIGINT_PATTERN.fullmatch(value):
            return BigInt(digits_to_int(value[:-1]))
        return value
    if isinstance(value, dict):
        return {k: _untag(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_untag(v) for v in value]
    return value


def encode(value: Any) -> str:
    """Serialize a value tree to wire text. NaN and infinities are rejected."""
    try:
        return json.dumps(_tag(value), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Value is not JSON serializable: {e}",
            details={"type": type(value).__name__},
        ) from e


def decode(text: str) -> Any:
    """Parse wire text back into a value tree."""
    try:
        return _untag(json.loads(text))
    except (TypeError, ValueError) as e:
        raise ParseError(
            f"Malformed JSON text: {e}",
            details={"text": text[:200] if isinstance(text, str) else repr(text)},
        ) from e


# Names used by other clients of the same wire format
json_serialize = encode
json_deserialize = decode
