"""
Streaming body helpers.

A streaming body is anything the transport has to pull from rather than
send in one piece:

    - file-like objects with a read() method (open files, BytesIO, ...)
    - iterators and generators yielding str or bytes chunks

Plain str, bytes, dict and list values are never streams, even though
some of them are iterable.
"""

import logging
from collections.abc import Iterator as IteratorABC
from typing import Any, Iterator

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def is_stream(value: Any) -> bool:
    if value is None or isinstance(value, (str, bytes, bytearray, memoryview)):
        return False
    if callable(getattr(value, "read", None)):
        return True
    return isinstance(value, IteratorABC)


def to_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, bytes):
        return chunk
    if isinstance(chunk, (bytearray, memoryview)):
        return bytes(chunk)
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    raise TypeError(f"stream yielded unsupported chunk type: {type(chunk).__name__}")


def iter_stream(stream: Any, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield byte chunks until the stream is exhausted."""
    read = getattr(stream, "read", None)
    if callable(read):
        while True:
            chunk = read(chunk_size)
            if not chunk:
                return
            yield to_bytes(chunk)
    else:
        for chunk in stream:
            if chunk:
                yield to_bytes(chunk)


def destroy(stream: Any) -> None:
    """
    Release a stream's resources.

    Safe to call more than once; errors while closing are logged rather
    than raised since teardown runs from finish callbacks.
    """
    close = getattr(stream, "close", None)
    if not callable(close):
        return
    try:
        close()
    except Exception as e:
        logger.warning(f"Error while closing stream {stream!r}: {e}")
