"""Tests for principalfs.kernel.streams."""

from __future__ import annotations

import io

import pytest

from principalfs.kernel.domain.values import PropertyType
from principalfs.kernel.ports.identity_store import StoreError
from principalfs.kernel.streams import LazyInputStream


class TrackingStream(io.BytesIO):
    def __init__(self, data: bytes) -> None:
        super().__init__(data)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class CountingBinary:
    def __init__(self, data: bytes, fail: bool = False) -> None:
        self.data = data
        self.fail = fail
        self.opened: list[TrackingStream] = []

    def get_stream(self) -> TrackingStream:
        if self.fail:
            raise StoreError("binary gone")
        stream = TrackingStream(self.data)
        self.opened.append(stream)
        return stream

    def get_size(self) -> int:
        return len(self.data)


class BinaryValue:
    type = PropertyType.BINARY

    def __init__(self, binary: CountingBinary) -> None:
        self.binary = binary

    def get_binary(self) -> CountingBinary:
        return self.binary


@pytest.fixture
def binary() -> CountingBinary:
    return CountingBinary(b"Hello, world")


class TestLazyOpen:
    def test_construction_does_not_open(self, binary: CountingBinary) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        assert not stream.opened
        assert binary.opened == []

    def test_first_read_opens_once(self, binary: CountingBinary) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        assert stream.read(5) == b"Hello"
        assert stream.read() == b", world"
        assert len(binary.opened) == 1

    @pytest.mark.parametrize("operation", ["available", "mark", "tell"])
    def test_other_operations_open(self, binary: CountingBinary, operation: str) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        getattr(stream, operation)()
        assert stream.opened

    def test_close_without_open_never_touches_store(self, binary: CountingBinary) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        stream.close()
        assert binary.opened == []
        assert stream.closed

    @pytest.mark.parametrize("operation", ["read", "available", "mark", "tell", "skip"])
    def test_closed_stream_stays_closed(self, binary: CountingBinary, operation: str) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        stream.close()
        args = (1,) if operation == "skip" else ()
        with pytest.raises(ValueError, match="closed file"):
            getattr(stream, operation)(*args)
        assert binary.opened == []

    def test_close_closes_delegate(self, binary: CountingBinary) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        stream.read(1)
        stream.close()
        assert binary.opened[0].close_calls == 1

    def test_store_error_surfaces_as_os_error(self) -> None:
        stream = LazyInputStream(BinaryValue(CountingBinary(b"", fail=True)))
        with pytest.raises(OSError, match="binary gone") as exc_info:
            stream.read()
        assert isinstance(exc_info.value.__cause__, StoreError)


class TestStreamOperations:
    def test_skip_and_available(self, binary: CountingBinary) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        assert stream.skip(7) == 7
        assert stream.available() == 5
        assert stream.read() == b"world"
        assert stream.skip(10) == 0

    def test_skip_non_positive(self, binary: CountingBinary) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        assert stream.skip(0) == 0
        assert not stream.opened

    def test_mark_and_reset(self, binary: CountingBinary) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        stream.read(2)
        stream.mark()
        assert stream.read(3) == b"llo"
        stream.reset()
        assert stream.read(3) == b"llo"

    def test_reset_without_mark_fails(self, binary: CountingBinary) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        with pytest.raises(OSError, match="not been marked"):
            stream.reset()

    def test_readinto(self, binary: CountingBinary) -> None:
        stream = LazyInputStream(BinaryValue(binary))
        buffer = bytearray(5)
        assert stream.readinto(buffer) == 5
        assert bytes(buffer) == b"Hello"

    def test_works_with_buffered_reader(self, binary: CountingBinary) -> None:
        with io.BufferedReader(LazyInputStream(BinaryValue(binary))) as reader:
            assert reader.read() == b"Hello, world"
