# tests/test_codec.py
"""Tests for the weight vector codec."""

import io

import numpy as np
import pytest

from decen_avg.core import (
    TruncatedFrameError,
    WeightLengthMismatchError,
    decode,
    encode,
    iter_decode,
)


class TrickleStream:
    """Binary stream that never returns more than ``step`` bytes per read."""

    def __init__(self, data: bytes, step: int = 1):
        self._buffer = io.BytesIO(data)
        self.step = step
        self.reads = 0

    def read(self, size: int = -1) -> bytes:
        self.reads += 1
        return self._buffer.read(min(size, self.step))


def _bits(vector: np.ndarray) -> np.ndarray:
    return np.asarray(vector, dtype=np.float32).view(np.uint32)


class TestEncode:

    def test_little_endian_layout(self):
        assert encode([1.0]) == b"\x00\x00\x80\x3f"
        assert encode([-2.0, 0.5]) == b"\x00\x00\x00\xc0\x00\x00\x00\x3f"

    def test_length_is_four_bytes_per_value(self):
        vector = np.arange(17, dtype=np.float32)
        assert len(encode(vector)) == 4 * 17

    def test_empty_vector(self):
        assert encode([]) == b""


class TestDecode:

    def test_round_trip_is_bit_exact(self):
        quiet_nan_payload = np.array([0x7FC00001], dtype=np.uint32).view(np.float32)[0]
        vector = np.array(
            [0.0, -0.0, np.inf, -np.inf, np.nan, quiet_nan_payload,
             1e-45, 3.4028235e38, -1.5, 123.456],
            dtype=np.float32,
        )

        restored = decode(encode(vector))

        assert restored.dtype == np.float32
        np.testing.assert_array_equal(_bits(restored), _bits(vector))

    def test_negative_zero_keeps_sign(self):
        restored = decode(encode(np.array([-0.0], dtype=np.float32)))
        assert np.signbit(restored[0])

    def test_truncated_last_float_raises(self):
        data = encode(np.array([1.0, 2.0, 3.0], dtype=np.float32))[:-1]

        with pytest.raises(TruncatedFrameError) as excinfo:
            decode(data)

        assert excinfo.value.leftover == 3
        assert excinfo.value.decoded == 2

    def test_short_reads_are_reassembled(self):
        vector = np.linspace(-1, 1, 9, dtype=np.float32)
        stream = TrickleStream(encode(vector), step=3)

        restored = decode(stream)

        np.testing.assert_array_equal(restored, vector)
        assert stream.reads > 9

    def test_truncation_detected_across_short_reads(self):
        stream = TrickleStream(encode([1.0, 2.0]) + b"\x01\x02", step=3)
        with pytest.raises(TruncatedFrameError):
            decode(stream)

    def test_accepts_file_like_object(self):
        vector = np.array([4.0, 5.0], dtype=np.float32)
        np.testing.assert_array_equal(decode(io.BytesIO(encode(vector))), vector)

    def test_empty_stream(self):
        restored = decode(b"")
        assert restored.size == 0
        assert restored.dtype == np.float32

    def test_expected_length_mismatch(self):
        with pytest.raises(WeightLengthMismatchError) as excinfo:
            decode(encode([1.0, 2.0, 3.0]), expected_length=2)
        assert excinfo.value.expected == 2
        assert excinfo.value.actual == 3

    def test_expected_length_match(self):
        assert decode(encode([1.0, 2.0]), expected_length=2).size == 2


class TestIterDecode:

    def test_yields_before_end_of_stream(self):
        stream = TrickleStream(encode(np.arange(4, dtype=np.float32)), step=8)
        chunks = iter_decode(stream)

        first = next(chunks)

        np.testing.assert_array_equal(first, [0.0, 1.0])
        assert stream.reads == 1

    def test_chunks_preserve_order(self):
        vector = np.arange(100, dtype=np.float32)
        stream = io.BytesIO(encode(vector))

        chunks = list(iter_decode(stream, chunk_size=10))

        assert len(chunks) > 1
        np.testing.assert_array_equal(np.concatenate(chunks), vector)
