"""Deferred-open byte stream over a binary store value."""

from __future__ import annotations

import io
import os
from typing import TYPE_CHECKING

from principalfs.kernel.ports.identity_store import StoreError

if TYPE_CHECKING:
    from typing import BinaryIO

    from principalfs.kernel.ports.identity_store import PropertyValue


class LazyInputStream(io.RawIOBase):
    """Byte stream that opens the underlying store binary on first use.

    Reading the content of a binary property can be expensive, and most
    property views are only inspected for a few keys. The stream is opened by
    the first ``read``, ``readinto``, ``skip``, ``available``, ``mark``,
    ``reset``, ``seek``, ``tell`` or ``seekable`` call and then reused until
    :meth:`close`.

    Examples
    --------
    >>> stream = LazyInputStream(value)  # doctest: +SKIP
    >>> stream.opened  # doctest: +SKIP
    False
    >>> stream.read(5)  # doctest: +SKIP
    b'Hello'
    """

    def __init__(self, value: PropertyValue) -> None:
        super().__init__()
        self._value = value
        self._delegate: BinaryIO | None = None
        self._mark: int | None = None

    @property
    def opened(self) -> bool:
        """Whether the underlying stream has been opened."""
        return self._delegate is not None

    def _stream(self) -> BinaryIO:
        if self.closed:
            raise ValueError("I/O operation on closed file")
        if self._delegate is None:
            try:
                self._delegate = self._value.get_binary().get_stream()
            except StoreError as e:
                raise OSError(f"Cannot open binary property stream: {e}") from e
        return self._delegate

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        return self._stream().read(size)

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        view = memoryview(buffer).cast("B")
        data = self._stream().read(len(view))
        view[: len(data)] = data
        return len(data)

    def readall(self) -> bytes:
        return self._stream().read()

    def seekable(self) -> bool:
        return self._stream().seekable()

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._stream().seek(offset, whence)

    def tell(self) -> int:
        return self._stream().tell()

    def skip(self, n: int) -> int:
        """Skip up to ``n`` bytes and return how many were skipped."""
        if n <= 0:
            return 0
        stream = self._stream()
        if stream.seekable():
            start = stream.tell()
            end = stream.seek(0, os.SEEK_END)
            return stream.seek(min(start + n, end)) - start
        return len(stream.read(n))

    def available(self) -> int:
        """Number of bytes that can be read without blocking."""
        stream = self._stream()
        if not stream.seekable():
            return 0
        current = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(current)
        return end - current

    def mark(self) -> None:
        """Remember the current position for a later :meth:`reset`."""
        self._mark = self._stream().tell()

    def reset(self) -> None:
        """Return to the position remembered by :meth:`mark`."""
        stream = self._stream()
        if self._mark is None:
            raise OSError("Stream has not been marked")
        stream.seek(self._mark)

    def close(self) -> None:
        """Close the underlying stream if it was opened; never opens it."""
        if self.closed:
            return
        if self._delegate is not None:
            self._delegate.close()
        super().close()


__all__ = ["LazyInputStream"]
