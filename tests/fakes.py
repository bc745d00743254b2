"""Fake content streams for testing.

Uploaded content reaches the blob store as a binary stream. These fakes
stand in for uploads that break part-way so write failures can be driven
through the real filesystem code.
"""
import io
from typing import List


class FailingStream(io.RawIOBase):
    """Binary stream that yields some bytes, then raises (OSError by default).

    Mimics a client disconnecting mid-upload.
    """

    def __init__(
        self,
        prefix: bytes = b"partial",
        error: str = "connection reset",
        exc_type: type = OSError,
    ) -> None:
        self._prefix = prefix
        self._error = error
        self._exc_type = exc_type
        self._sent = False
        self.read_calls = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        self.read_calls += 1
        if not self._sent and self._prefix:
            self._sent = True
            n = len(self._prefix)
            buffer[:n] = self._prefix
            return n
        raise self._exc_type(self._error)


class RecordingStream(io.BytesIO):
    """BytesIO that remembers how many times it was read."""

    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.reads: List[int] = []

    def read(self, size=-1):
        self.reads.append(size)
        return super().read(size)


def content(text: str) -> io.BytesIO:
    """Wrap UTF-8 text as an upload stream."""
    return io.BytesIO(text.encode("utf-8"))
