"""RTMP handshake: C0/C1/C2 and S0/S1/S2 exchange, with HMAC-SHA256 digest validation."""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from typing import BinaryIO

from .pio import BytesLike, pack_u32be, u32be

RTMP_VERSION = 3
HANDSHAKE_SIZE = 1536
DIGEST_SIZE = 32
SERVER_VERSION = 0x0D0E0A0D

_KEY_TAIL = bytes([
    0xF0, 0xEE, 0xC2, 0x4A, 0x80, 0x68, 0xBE, 0xE8, 0x2E, 0x00, 0xD0, 0xD1,
    0x02, 0x9E, 0x7E, 0x57, 0x6E, 0xEC, 0x5D, 0x2D, 0x29, 0x80, 0x6F, 0xAB,
    0x93, 0xB8, 0xE6, 0x36, 0xCF, 0xEB, 0x31, 0xAE,
])

CLIENT_FULL_KEY = b"Genuine Adobe Flash Player 001" + _KEY_TAIL
SERVER_FULL_KEY = b"Genuine Adobe Flash Media Server 001" + _KEY_TAIL
CLIENT_PARTIAL_KEY = CLIENT_FULL_KEY[:30]
SERVER_PARTIAL_KEY = SERVER_FULL_KEY[:36]


class HandshakeError(ValueError):
    """Raised when the peer's handshake data is invalid."""


def make_digest(key: BytesLike, src: BytesLike, gap: int) -> bytes:
    """HMAC-SHA256 of ``src``, skipping the 32 bytes at ``gap`` when ``gap`` > 0."""
    mac = hmac.new(bytes(key), digestmod=hashlib.sha256)
    if gap <= 0:
        mac.update(bytes(src))
    else:
        mac.update(bytes(src[:gap]))
        mac.update(bytes(src[gap + DIGEST_SIZE:]))
    return mac.digest()


def calc_digest_pos(data: BytesLike, base: int) -> int:
    """Position of the digest as derived from the four bytes at ``base``."""
    return sum(data[base:base + 4]) % 728 + base + 4


def find_digest(data: BytesLike, key: BytesLike, base: int) -> int | None:
    """Return the digest position if a valid digest sits there, else ``None``."""
    gap = calc_digest_pos(data, base)
    digest = make_digest(key, data, gap)
    if not hmac.compare_digest(bytes(data[gap:gap + DIGEST_SIZE]), digest):
        return None
    return gap


def parse_c1(data: BytesLike, peer_key: BytesLike, key: BytesLike) -> bytes | None:
    """Validate a C1 block and derive the key for S2; ``None`` when invalid."""
    pos = find_digest(data, peer_key, 772)
    if pos is None:
        pos = find_digest(data, peer_key, 8)
        if pos is None:
            return None
    return make_digest(key, data[pos:pos + DIGEST_SIZE], -1)


def create_c0c1(timestamp: int, version: int, key: BytesLike) -> bytes:
    """Build a version byte followed by a 1536-byte block carrying a digest."""
    block = bytearray(pack_u32be(timestamp) + pack_u32be(version))
    block += secrets.token_bytes(HANDSHAKE_SIZE - 8)
    gap = calc_digest_pos(block, 8)
    block[gap:gap + DIGEST_SIZE] = make_digest(key, block, gap)
    return bytes([RTMP_VERSION]) + bytes(block)


def create_s2(key: BytesLike) -> bytes:
    """Build a random 1536-byte block whose last 32 bytes are its digest."""
    block = bytearray(secrets.token_bytes(HANDSHAKE_SIZE))
    gap = HANDSHAKE_SIZE - DIGEST_SIZE
    block[gap:] = make_digest(key, block, gap)
    return bytes(block)


def _read_exact(reader: BinaryIO, size: int) -> bytes:
    data = reader.read(size)
    if data is None or len(data) < size:
        raise EOFError("unexpected end of handshake data")
    return bytes(data)


def client_handshake(reader: BinaryIO, writer: BinaryIO) -> None:
    """Perform the client side: send C0C1, read S0S1S2, echo S1 as C2."""
    c0c1 = bytes([RTMP_VERSION]) + bytes(HANDSHAKE_SIZE)
    writer.write(c0c1)
    writer.flush()

    s0s1s2 = _read_exact(reader, 1 + HANDSHAKE_SIZE * 2)
    s1 = s0s1s2[1:1 + HANDSHAKE_SIZE]
    writer.write(s1)


def server_handshake(reader: BinaryIO, writer: BinaryIO) -> None:
    """Perform the server side: read C0C1, send S0S1S2, read C2."""
    c0c1 = _read_exact(reader, 1 + HANDSHAKE_SIZE)
    if c0c1[0] != RTMP_VERSION:
        raise HandshakeError(f"handshake version={c0c1[0]} invalid")
    c1 = c0c1[1:]

    client_time = u32be(c1[0:4])
    client_version = u32be(c1[4:8])

    if client_version != 0:
        digest = parse_c1(c1, CLIENT_PARTIAL_KEY, SERVER_FULL_KEY)
        if digest is None:
            raise HandshakeError("handshake server: C1 invalid")
        s0s1 = create_c0c1(client_time, SERVER_VERSION, SERVER_PARTIAL_KEY)
        s2 = create_s2(digest)
    else:
        s0s1 = bytes([RTMP_VERSION]) + c1
        now = int(time.time()) & 0xFFFFFFFF
        s2 = c1[:4] + now.to_bytes(4, "little") + c1[8:]

    writer.write(s0s1 + s2)
    writer.flush()

    _read_exact(reader, HANDSHAKE_SIZE)