"""Fixed-width compressed encoding of FF3 elements and evaluation points.

An element a0 + a1*x + a2*x^2 is encoded as three little-endian u64 limbs in
ascending order. Only canonical limbs (< p) decode.
"""

import struct
from functools import lru_cache
from typing import List, Sequence, Union

from whir_verifier.errors import MalformedEvaluationPoint, MalformedFieldElement
from whir_verifier.primitives.field import (
    FF,
    FF3,
    FIELD_EXTENSION_DEGREE,
    GOLDILOCKS_PRIME,
    ff3,
    ff3_coeffs,
)

_LIMBS = struct.Struct(f"<{FIELD_EXTENSION_DEGREE}Q")

Element = Union[FF3, FF, int]


def encode_element(x: Element) -> bytes:
    """Encode one field element. Base field values and ints are embedded first."""
    if isinstance(x, FF3):
        coeffs = ff3_coeffs(x)
    else:
        value = int(x)
        if not 0 <= value < GOLDILOCKS_PRIME:
            raise ValueError(f"integer {value} is not a base field element")
        coeffs = [value, 0, 0]
    return _LIMBS.pack(*coeffs)


@lru_cache(maxsize=None)
def field_size_bytes() -> int:
    """Serialized size of one element, taken from the encoding of zero."""
    return len(encode_element(FF3(0)))


def decode_element(data: bytes) -> FF3:
    size = field_size_bytes()
    if len(data) != size:
        raise MalformedFieldElement(f"field element must be {size} bytes, got {len(data)}")
    limbs = _LIMBS.unpack(bytes(data))
    for limb in limbs:
        if limb >= GOLDILOCKS_PRIME:
            raise MalformedFieldElement(f"non-canonical limb {limb:#x}")
    return ff3(list(limbs))


def encode_point(coords: Sequence[Element]) -> bytes:
    return b"".join(encode_element(c) for c in coords)


def decode_point(data: bytes) -> List[FF3]:
    """Decode consecutive elements left to right, preserving coordinate order."""
    size = field_size_bytes()
    if len(data) % size != 0:
        raise MalformedEvaluationPoint(
            f"evaluation point length {len(data)} is not a multiple of {size}"
        )
    return [decode_element(data[i:i + size]) for i in range(0, len(data), size)]


def decode_elements(data: bytes, count: int) -> List[FF3]:
    """Decode exactly `count` elements."""
    if len(data) != count * field_size_bytes():
        raise MalformedFieldElement(
            f"expected {count} elements ({count * field_size_bytes()} bytes), got {len(data)}"
        )
    return decode_point(data)
