from __future__ import annotations
"""Small reader wrappers used by read and write."""
from typing import BinaryIO, Callable

IoCallback = Callable[[bytes], None]

CHUNK_SIZE = 64 * 1024


class LimitedReader:
    """Reads at most ``limit`` bytes from ``reader``."""

    def __init__(self, reader: BinaryIO, limit: int):
        self._reader = reader
        self._remaining = max(int(limit), 0)

    def read(self, size: int = -1) -> bytes:
        if self._remaining <= 0:
            return b""
        if size is None or size < 0 or size > self._remaining:
            size = self._remaining
        data = self._reader.read(size)
        self._remaining -= len(data)
        return data


class CallbackReader:
    """Passes every chunk read through ``callback`` before returning it."""

    def __init__(self, reader, callback: IoCallback):
        self._reader = reader
        self._callback = callback

    def read(self, size: int = -1) -> bytes:
        data = self._reader.read(size)
        if data:
            self._callback(data)
        return data


def copy_stream(reader, sink: BinaryIO, chunk_size: int = CHUNK_SIZE) -> int:
    """Copy ``reader`` into ``sink`` and return the number of bytes copied."""

    copied = 0
    while True:
        chunk = reader.read(chunk_size)
        if not chunk:
            break
        sink.write(chunk)
        copied += len(chunk)
    return copied
