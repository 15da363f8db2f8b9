"""The POSIX ``cksum`` CRC."""

from __future__ import annotations

from typing import BinaryIO

__all__ = ["POSIX_POLYNOMIAL", "cksum"]

POSIX_POLYNOMIAL = 0x04C11DB7
_MASK = 0xFFFFFFFF
_CHUNK = 64 * 1024


def _make_table() -> list[int]:
    table = []
    for top in range(256):
        value = top << 24
        for _ in range(8):
            if value & 0x80000000:
                value = ((value << 1) ^ POSIX_POLYNOMIAL) & _MASK
            else:
                value = (value << 1) & _MASK
        table.append(value)
    return table


_TABLE = _make_table()


def _feed(crc: int, data: bytes) -> int:
    for byte in data:
        crc = ((crc << 8) & _MASK) ^ _TABLE[crc >> 24] ^ byte
    return crc


def cksum(stream: BinaryIO) -> tuple[int, int]:
    """Return the POSIX checksum of a binary stream and the number of bytes read."""
    crc = 0
    count = 0
    while chunk := stream.read(_CHUNK):
        crc = _feed(crc, chunk)
        count += len(chunk)

    length = bytearray()
    remaining = count
    while True:
        length.append(remaining & 0xFF)
        remaining >>= 8
        if remaining == 0:
            break
    crc = _feed(crc, bytes(length) + b"\x00\x00\x00\x00")
    return crc ^ _MASK, count