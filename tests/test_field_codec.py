"""
Field Element Codec Tests
=========================

Encoding of FF3 elements as three little-endian u64 limbs and of evaluation
points as concatenated element encodings.
"""

import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from whir_verifier.errors import (
    DeserializationError,
    MalformedEvaluationPoint,
    MalformedFieldElement,
)
from whir_verifier.primitives.field import FF, FF3, GOLDILOCKS_PRIME, ff3, ff3_coeffs
from whir_verifier.protocol.codec import (
    decode_element,
    decode_elements,
    decode_point,
    encode_element,
    encode_point,
    field_size_bytes,
)

limbs = st.integers(min_value=0, max_value=GOLDILOCKS_PRIME - 1)
elements = st.lists(limbs, min_size=3, max_size=3).map(ff3)


class TestFieldSize:

    def test_field_size_is_24_bytes(self):
        assert field_size_bytes() == 24

    def test_zero_encodes_to_zero_bytes(self):
        assert encode_element(FF3(0)) == bytes(24)


class TestEncodeElement:

    def test_limb_order_is_ascending(self):
        data = encode_element(ff3([1, 2, 3]))
        assert struct.unpack("<3Q", data) == (1, 2, 3)

    def test_base_field_value_is_embedded(self):
        assert encode_element(FF(5)) == encode_element(ff3([5, 0, 0]))

    def test_int_is_embedded(self):
        assert encode_element(7) == struct.pack("<3Q", 7, 0, 0)

    @pytest.mark.parametrize("value", [-1, GOLDILOCKS_PRIME])
    def test_out_of_range_int_rejected(self, value):
        with pytest.raises(ValueError):
            encode_element(value)


class TestDecodeElement:

    @given(elements)
    def test_round_trip(self, x):
        assert decode_element(encode_element(x)) == x

    @pytest.mark.parametrize("length", [0, 23, 25, 48])
    def test_wrong_length(self, length):
        with pytest.raises(MalformedFieldElement):
            decode_element(bytes(length))

    @pytest.mark.parametrize("position", [0, 1, 2])
    def test_non_canonical_limb(self, position):
        raw = [0, 0, 0]
        raw[position] = GOLDILOCKS_PRIME
        with pytest.raises(MalformedFieldElement):
            decode_element(struct.pack("<3Q", *raw))

    def test_max_canonical_limb_accepted(self):
        p1 = GOLDILOCKS_PRIME - 1
        assert ff3_coeffs(decode_element(struct.pack("<3Q", p1, p1, p1))) == [p1, p1, p1]

    def test_malformed_is_deserialization_error(self):
        with pytest.raises(DeserializationError):
            decode_element(b"\xff" * 24)


class TestPoint:

    @given(st.lists(elements, max_size=8))
    def test_round_trip_preserves_order(self, coords):
        decoded = decode_point(encode_point(coords))
        assert len(decoded) == len(coords)
        assert all(a == b for a, b in zip(decoded, coords))

    def test_point_layout(self):
        data = encode_point([1, 2, 3])
        assert len(data) == 3 * field_size_bytes()
        assert data[24:48] == encode_element(2)

    @pytest.mark.parametrize("length", [1, 23, 25, 47])
    def test_partial_element_rejected(self, length):
        with pytest.raises(MalformedEvaluationPoint):
            decode_point(bytes(length))

    def test_empty_point(self):
        assert decode_point(b"") == []

    def test_bad_coordinate_raises_field_error(self):
        data = encode_point([1, 2]) + struct.pack("<3Q", GOLDILOCKS_PRIME, 0, 0)
        with pytest.raises(MalformedFieldElement):
            decode_point(data)

    def test_decode_elements_checks_count(self):
        with pytest.raises(MalformedFieldElement):
            decode_elements(encode_point([1, 2]), 3)
