"""Big- and little-endian integer packing plus helpers for byte-vector slicing."""

from __future__ import annotations

from collections.abc import Sequence

RECOMMENDED_BUFIO_SIZE = 64 * 1024

BytesLike = bytes | bytearray | memoryview


def _take(b: BytesLike, size: int) -> bytes:
    if len(b) < size:
        raise ValueError(f"need {size} bytes, got {len(b)}")
    return bytes(b[:size])


def _unpack(b: BytesLike, size: int, order: str = "big", signed: bool = False) -> int:
    return int.from_bytes(_take(b, size), order, signed=signed)


def _pack(v: int, size: int, order: str = "big") -> bytes:
    return (v & ((1 << (size * 8)) - 1)).to_bytes(size, order)


def u8(b: BytesLike) -> int:
    """Read an unsigned 8-bit integer."""
    return _unpack(b, 1)


def u16be(b: BytesLike) -> int:
    """Read an unsigned big-endian 16-bit integer."""
    return _unpack(b, 2)


def i16be(b: BytesLike) -> int:
    """Read a signed big-endian 16-bit integer."""
    return _unpack(b, 2, signed=True)


def u24be(b: BytesLike) -> int:
    """Read an unsigned big-endian 24-bit integer."""
    return _unpack(b, 3)


def i24be(b: BytesLike) -> int:
    """Read a signed big-endian 24-bit integer."""
    return _unpack(b, 3, signed=True)


def u32be(b: BytesLike) -> int:
    """Read an unsigned big-endian 32-bit integer."""
    return _unpack(b, 4)


def i32be(b: BytesLike) -> int:
    """Read a signed big-endian 32-bit integer."""
    return _unpack(b, 4, signed=True)


def u32le(b: BytesLike) -> int:
    """Read an unsigned little-endian 32-bit integer."""
    return _unpack(b, 4, order="little")


def u40be(b: BytesLike) -> int:
    """Read an unsigned big-endian 40-bit integer."""
    return _unpack(b, 5)


def u64be(b: BytesLike) -> int:
    """Read an unsigned big-endian 64-bit integer."""
    return _unpack(b, 8)


def i64be(b: BytesLike) -> int:
    """Read a signed big-endian 64-bit integer."""
    return _unpack(b, 8, signed=True)


def pack_u8(v: int) -> bytes:
    """Encode the low 8 bits of ``v``."""
    return _pack(v, 1)


def pack_u16be(v: int) -> bytes:
    """Encode the low 16 bits of ``v`` big-endian."""
    return _pack(v, 2)


def pack_i16be(v: int) -> bytes:
    """Encode a signed 16-bit value big-endian (two's complement)."""
    return _pack(v, 2)


def pack_u24be(v: int) -> bytes:
    """Encode the low 24 bits of ``v`` big-endian."""
    return _pack(v, 3)


def pack_i24be(v: int) -> bytes:
    """Encode a signed 24-bit value big-endian (two's complement)."""
    return _pack(v, 3)


def pack_u32be(v: int) -> bytes:
    """Encode the low 32 bits of ``v`` big-endian."""
    return _pack(v, 4)


def pack_i32be(v: int) -> bytes:
    """Encode a signed 32-bit value big-endian (two's complement)."""
    return _pack(v, 4)


def pack_u32le(v: int) -> bytes:
    """Encode the low 32 bits of ``v`` little-endian."""
    return _pack(v, 4, order="little")


def pack_u40be(v: int) -> bytes:
    """Encode the low 40 bits of ``v`` big-endian."""
    return _pack(v, 5)


def pack_u48be(v: int) -> bytes:
    """Encode the low 48 bits of ``v`` big-endian."""
    return _pack(v, 6)


def pack_u64be(v: int) -> bytes:
    """Encode the low 64 bits of ``v`` big-endian."""
    return _pack(v, 8)


def pack_i64be(v: int) -> bytes:
    """Encode a signed 64-bit value big-endian (two's complement)."""
    return _pack(v, 8)


def vec_len(vec: Sequence[BytesLike]) -> int:
    """Total number of bytes across all buffers of ``vec``."""
    return sum(len(b) for b in vec)


def vec_slice(vec: Sequence[BytesLike], start: int, end: int) -> list[BytesLike]:
    """Slice the concatenation of ``vec`` to ``[start, end)`` without copying it.

    A negative ``end`` means up to the end of the data. Raises ``ValueError``
    when the bounds are inverted or fall outside the data.
    """
    start = max(start, 0)
    if end >= 0 and end < start:
        raise ValueError("vec_slice: start > end")

    segments = iter(vec)
    current: BytesLike | None = next(segments, None)
    offset = 0
    remaining_end = end

    while start > 0 and current is not None:
        read = min(len(current), start)
        offset += read
        start -= read
        remaining_end -= read
        if offset == len(current):
            current = next(segments, None)
            offset = 0
    if start > 0:
        raise ValueError("vec_slice: start out of range")

    out: list[BytesLike] = []
    while remaining_end != 0 and current is not None:
        left = len(current) - offset
        read = left
        if 0 < remaining_end < read:
            read = remaining_end
        out.append(current[offset:offset + read])
        remaining_end -= read
        offset += read
        if offset == len(current):
            current = next(segments, None)
            offset = 0
    if remaining_end > 0:
        raise ValueError("vec_slice: end out of range")
    return out