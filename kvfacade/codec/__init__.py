"""
Wire codec for values held in the store.

JSON text in which large integers survive the round trip:
a BigInt leaf is written as its digits followed by "n".
"""

from kvfacade.codec.wire import (
    BIGINT_MARKER,
    BigInt,
    decode,
    digits_to_int,
    encode,
    int_to_digits,
    json_deserialize,
    json_serialize,
)

__all__ = [
    "BIGINT_MARKER",
    "BigInt",
    "decode",
    "digits_to_int",
    "encode",
    "int_to_digits",
    "json_deserialize",
    "json_serialize",
]
