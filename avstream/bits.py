"""Bit-level readers and writers over byte streams, including Exp-Golomb decoding."""

from __future__ import annotations

from typing import BinaryIO


class BitReader:
    """Reads big-endian bit fields from a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self._bits = 0
        self._n = 0

    def read_bits(self, n: int) -> int:
        """Read ``n`` bits as an unsigned integer; raises ``EOFError`` when short."""
        if n < 0:
            raise ValueError("bit count must be non-negative")
        if self._n < n:
            want = (n - self._n + 7) // 8
            chunk = self.stream.read(want)
            if len(chunk) < want:
                raise EOFError("not enough data for bit read")
            for byte in chunk:
                self._bits = (self._bits << 8) | byte
            self._n += want * 8
        shift = self._n - n
        value = self._bits >> shift
        self._bits ^= value << shift
        self._n -= n
        return value

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes, fewer if the stream runs out."""
        out = bytearray()
        while len(out) < size:
            want = min(8, size - len(out))
            try:
                value = self.read_bits(want * 8)
            except EOFError:
                break
            out += value.to_bytes(want, "big")
        return bytes(out)


class BitWriter:
    """Writes big-endian bit fields to a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self._bits = 0
        self._n = 0

    def write_bits(self, bits: int, n: int) -> None:
        """Append the low ``n`` bits of ``bits``."""
        if n < 0:
            raise ValueError("bit count must be non-negative")
        self._bits = (self._bits << n) | (bits & ((1 << n) - 1))
        self._n += n
        if self._n >= 64:
            whole = self._n // 8
            rest = self._n - whole * 8
            self.stream.write((self._bits >> rest).to_bytes(whole, "big"))
            self._bits &= (1 << rest) - 1
            self._n = rest

    def write(self, data: bytes) -> int:
        """Append whole bytes; returns the number written."""
        for byte in data:
            self.write_bits(byte, 8)
        return len(data)

    def flush_bits(self) -> None:
        """Write any pending bits, zero-padded to a byte boundary."""
        if self._n == 0:
            return
        bits = self._bits
        if self._n % 8:
            bits <<= 8 - self._n % 8
        want = (self._n + 7) // 8
        self.stream.write(bits.to_bytes(want, "big"))
        self._bits = 0
        self._n = 0


class GolombBitReader:
    """Reads single bits and Exp-Golomb codes, one byte at a time."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self._byte = 0
        self._left = 0

    def read_bit(self) -> int:
        """Read one bit; raises ``EOFError`` at end of stream."""
        if self._left == 0:
            chunk = self.stream.read(1)
            if not chunk:
                raise EOFError("end of stream")
            self._byte = chunk[0]
            self._left = 8
        self._left -= 1
        return (self._byte >> self._left) & 1

    def read_bits(self, n: int) -> int:
        """Read ``n`` bits as an unsigned integer, most significant first."""
        value = 0
        for _ in range(n):
            value = (value << 1) | self.read_bit()
        return value

    def read_exp_golomb(self) -> int:
        """Read an unsigned Exp-Golomb code (ue(v))."""
        zeros = 0
        while self.read_bit() == 0 and zeros < 32:
            zeros += 1
        return self.read_bits(zeros) + (1 << zeros) - 1

    def read_se(self) -> int:
        """Read a signed Exp-Golomb code (se(v))."""
        code = self.read_exp_golomb()
        if code & 1:
            return (code + 1) // 2
        return -(code // 2)