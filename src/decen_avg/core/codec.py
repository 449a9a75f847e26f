"""Binary codec for weight vectors exchanged with external units.

A weight vector travels as a bare sequence of little-endian IEEE-754
single precision floats: 4 bytes per value, no header, no padding. The
receiver learns the expected length out of band (the command line).
"""

import io
from typing import BinaryIO, Iterator, Optional, Union

import numpy as np

from .errors import TruncatedFrameError, WeightLengthMismatchError

WIRE_DTYPE = np.dtype("<f4")
FLOAT_SIZE = WIRE_DTYPE.itemsize
DEFAULT_CHUNK_SIZE = 8192


def encode(vector) -> bytes:
    """Encode a weight vector to raw little-endian float32 bytes.

    Args:
        vector: Sequence or array of floats

    Returns:
        Byte string of length ``4 * len(vector)``
    """
    return np.asarray(vector, dtype=np.float32).astype(WIRE_DTYPE, copy=False).tobytes()


def iter_decode(
    stream: BinaryIO,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[np.ndarray]:
    """Incrementally decode floats from a binary stream.

    Reads until ``read()`` returns an empty byte string and yields each
    batch of complete floats as soon as it is available. A read that ends
    mid-float is fine; the partial bytes are carried into the next read.

    Args:
        stream: Binary file-like object
        chunk_size: Maximum bytes requested per read

    Yields:
        float32 arrays in arrival order

    Raises:
        TruncatedFrameError: End of stream inside a float
    """
    pending = b""
    decoded = 0
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        data = pending + chunk
        usable = len(data) - len(data) % FLOAT_SIZE
        pending = data[usable:]
        if usable:
            values = np.frombuffer(data[:usable], dtype=WIRE_DTYPE).astype(np.float32)
            decoded += values.size
            yield values
    if pending:
        raise TruncatedFrameError(len(pending), decoded)


def decode(
    stream: Union[BinaryIO, bytes, bytearray, memoryview],
    expected_length: Optional[int] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> np.ndarray:
    """Decode a complete weight vector.

    Args:
        stream: Binary file-like object or raw bytes
        expected_length: Reject vectors of any other length when given
        chunk_size: Maximum bytes requested per read

    Returns:
        float32 array
    """
    if isinstance(stream, (bytes, bytearray, memoryview)):
        stream = io.BytesIO(bytes(stream))

    parts = list(iter_decode(stream, chunk_size=chunk_size))
    if parts:
        vector = np.concatenate(parts)
    else:
        vector = np.empty(0, dtype=np.float32)

    if expected_length is not None and vector.size != expected_length:
        raise WeightLengthMismatchError(expected_length, vector.size)
    return vector
