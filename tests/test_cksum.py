import io

import pytest

from mtree.cksum import cksum


class _ChunkedReader(io.RawIOBase):
    """Hands out data a few bytes at a time."""

    def __init__(self, data, size):
        self._data = data
        self._size = size

    def readable(self):
        return True

    def read(self, n=-1):
        piece, self._data = self._data[: self._size], self._data[self._size :]
        return piece


class _FailingReader(io.RawIOBase):
    def readable(self):
        return True

    def read(self, n=-1):
        raise OSError("read failed")


def test_empty_input():
    assert cksum(io.BytesIO(b"")) == (4294967295, 0)


def test_check_string():
    assert cksum(io.BytesIO(b"123456789")) == (930766865, 9)


def test_count_matches_length():
    data = bytes(range(256)) * 300
    _, count = cksum(io.BytesIO(data))
    assert count == len(data)


def test_chunking_does_not_change_result():
    data = b"I know half of you half as well as I ought to" * 50
    assert cksum(_ChunkedReader(data, 7)) == cksum(io.BytesIO(data))


def test_length_is_part_of_sum():
    one, _ = cksum(io.BytesIO(b"\x00"))
    two, _ = cksum(io.BytesIO(b"\x00\x00"))
    assert one != two
    assert 0 <= one <= 0xFFFFFFFF


def test_read_error_propagates():
    with pytest.raises(OSError, match="read failed"):
        cksum(_FailingReader())