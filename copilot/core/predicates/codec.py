"""
Predicate wire format.

Every predicate starts with a 4-byte selector followed by 32-byte big-endian
words:

    PriceAbove/PriceBelow/PriceEquals  selector | feed address | threshold * 10^8   (68 bytes)
    TimeAfter                          selector | unix timestamp                    (36 bytes)
    And/Or                             selector | len(left) | left | len(right) | right

Decoding never truncates: a payload whose length does not match its selector
exactly is rejected.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Tuple, Type, Union

from eth_utils import decode_hex, encode_hex, to_checksum_address

from ..amounts import WIDE_CONTEXT
from ..errors import PredicateDecodeError
from .models import (
    MAX_DEPTH,
    PRICE_DECIMALS,
    And,
    Or,
    Predicate,
    PriceAbove,
    PriceBelow,
    PriceCondition,
    PriceEquals,
    TimeAfter,
)

SELECTOR_SIZE = 4
WORD_SIZE = 32
PRICE_PAYLOAD_SIZE = SELECTOR_SIZE + 2 * WORD_SIZE
TIME_PAYLOAD_SIZE = SELECTOR_SIZE + WORD_SIZE

# Selectors understood by the limit order protocol's predicate helpers
SELECTORS: Dict[Type, bytes] = {
    PriceAbove: bytes.fromhex("3b38d3c9"),   # gt(uint256,uint256)
    PriceBelow: bytes.fromhex("3cb2e5b4"),   # lt(uint256,uint256)
    PriceEquals: bytes.fromhex("24d4ac54"),  # eq(uint256,uint256)
    And: bytes.fromhex("4ba3c2fc"),          # and(bytes,bytes)
    Or: bytes.fromhex("4ba3c300"),           # or(bytes,bytes)
    TimeAfter: bytes.fromhex("63592c2b"),    # timestampBelow(uint256)
}
SELECTOR_TO_TYPE: Dict[bytes, Type] = {selector: kind for kind, selector in SELECTORS.items()}


@dataclass(frozen=True)
class DecodeError:
    """Why a byte string is not a valid predicate."""

    reason: str
    offset: int = 0

    def __bool__(self) -> bool:
        return False


DecodeResult = Union[Predicate, DecodeError]


def _encode_uint256(value: int) -> bytes:
    return value.to_bytes(WORD_SIZE, "big")


def _encode_address(address: str) -> bytes:
    return decode_hex(address).rjust(WORD_SIZE, b"\x00")


def _encode_blob(blob: bytes) -> bytes:
    return _encode_uint256(len(blob)) + blob


def encode(predicate: Predicate) -> bytes:
    """Serialise a predicate tree to its on-chain byte layout."""
    selector = SELECTORS.get(type(predicate))
    if selector is None:
        raise TypeError(f"Cannot encode {type(predicate).__name__} as a predicate")

    if isinstance(predicate, PriceCondition):
        return selector + _encode_address(predicate.feed) + _encode_uint256(predicate.scaled_threshold)
    if isinstance(predicate, TimeAfter):
        return selector + _encode_uint256(predicate.timestamp)
    # And / Or
    return selector + _encode_blob(encode(predicate.left)) + _encode_blob(encode(predicate.right))


def encode_to_hex(predicate: Predicate) -> str:
    return encode_hex(encode(predicate))


def _read_word(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + WORD_SIZE], "big")


def _read_blob(data: bytes, offset: int) -> Union[Tuple[bytes, int], DecodeError]:
    if offset + WORD_SIZE > len(data):
        return DecodeError("truncated length word", offset)
    size = _read_word(data, offset)
    start = offset + WORD_SIZE
    if size > len(data) - start:
        return DecodeError(f"nested predicate claims {size} bytes, only {len(data) - start} remain", offset)
    return data[start:start + size], start + size


def _decode(data: bytes, base: int, depth: int) -> DecodeResult:
    if depth > MAX_DEPTH:
        return DecodeError(f"predicate nested deeper than {MAX_DEPTH} levels", base)
    if len(data) < SELECTOR_SIZE:
        return DecodeError(f"expected at least {SELECTOR_SIZE} bytes, got {len(data)}", base)

    selector = bytes(data[:SELECTOR_SIZE])
    kind = SELECTOR_TO_TYPE.get(selector)
    if kind is None:
        return DecodeError(f"unknown selector 0x{selector.hex()}", base)

    if issubclass(kind, PriceCondition):
        if len(data) != PRICE_PAYLOAD_SIZE:
            return DecodeError(f"{kind.__name__} needs {PRICE_PAYLOAD_SIZE} bytes, got {len(data)}", base)
        address_word = data[SELECTOR_SIZE:SELECTOR_SIZE + WORD_SIZE]
        if any(address_word[:WORD_SIZE - 20]):
            return DecodeError("feed address word has non-zero padding", base + SELECTOR_SIZE)
        feed = to_checksum_address(address_word[WORD_SIZE - 20:])
        scaled = _read_word(data, SELECTOR_SIZE + WORD_SIZE)
        return kind(feed=feed, threshold=Decimal(scaled).scaleb(-PRICE_DECIMALS, context=WIDE_CONTEXT))

    if kind is TimeAfter:
        if len(data) != TIME_PAYLOAD_SIZE:
            return DecodeError(f"TimeAfter needs {TIME_PAYLOAD_SIZE} bytes, got {len(data)}", base)
        return TimeAfter(timestamp=_read_word(data, SELECTOR_SIZE))

    # And / Or
    left_blob = _read_blob(data, SELECTOR_SIZE)
    if isinstance(left_blob, DecodeError):
        return DecodeError(left_blob.reason, base + left_blob.offset)
    left_bytes, cursor = left_blob
    right_blob = _read_blob(data, cursor)
    if isinstance(right_blob, DecodeError):
        return DecodeError(right_blob.reason, base + right_blob.offset)
    right_bytes, end = right_blob
    if end != len(data):
        return DecodeError(f"{len(data) - end} trailing bytes after {kind.__name__}", base + end)

    left = _decode(left_bytes, base + SELECTOR_SIZE + WORD_SIZE, depth + 1)
    if isinstance(left, DecodeError):
        return left
    right = _decode(right_bytes, base + cursor + WORD_SIZE, depth + 1)
    if isinstance(right, DecodeError):
        return right
    return kind(left=left, right=right)


def decode(data: Union[bytes, bytearray, str]) -> DecodeResult:
    """Parse predicate bytes (or a 0x-hex string) back into a tree.

    Returns a ``DecodeError`` value instead of raising on malformed input.
    """
    if isinstance(data, str):
        try:
            data = decode_hex(data)
        except ValueError:
            return DecodeError("not a hex string")
    return _decode(bytes(data), 0, 0)


def decode_or_raise(data: Union[bytes, bytearray, str]) -> Predicate:
    result = decode(data)
    if isinstance(result, DecodeError):
        raw = data if isinstance(data, (bytes, bytearray)) else b""
        raise PredicateDecodeError(f"Malformed predicate at byte {result.offset}: {result.reason}", bytes(raw))
    return result
