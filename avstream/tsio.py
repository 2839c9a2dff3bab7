"""MPEG transport stream primitives: PAT/PMT tables, PSI/PES headers and TS packetising."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import BinaryIO

from .pio import (
    BytesLike,
    pack_u16be,
    pack_u32le,
    pack_u40be,
    pack_u48be,
    u16be,
    u40be,
    vec_len,
    vec_slice,
)

STREAM_ID_H264 = 0xE0
STREAM_ID_AAC = 0xC0

PAT_PID = 0
PMT_PID = 0x1000

TABLE_ID_PMT = 2
TABLE_EXT_PMT = 1
TABLE_ID_PAT = 0
TABLE_EXT_PAT = 1

MAX_PES_HEADER_LENGTH = 19
MAX_TS_HEADER_LENGTH = 12
PSI_HEADER_LENGTH = 9
TS_PACKET_SIZE = 188

ELEMENTARY_STREAM_TYPE_H264 = 0x1B
ELEMENTARY_STREAM_TYPE_ADTS_AAC = 0x0F

PTS_HZ = 90_000
PCR_HZ = 27_000_000
SECOND = 1_000_000_000

_U64_MASK = (1 << 64) - 1
_PTS_FLAG = 1 << 7
_DTS_FLAG = 1 << 6


class TSError(ValueError):
    """Raised when transport stream data cannot be parsed."""


def _build_crc_table() -> tuple[int, ...]:
    # MPEG-2 CRC (poly 0x04C11DB7, MSB first), kept in byte-swapped form so the
    # register can be shifted right and stored little-endian.
    table = []
    for i in range(256):
        crc = i << 24
        for _ in range(8):
            crc = ((crc << 1) ^ 0x04C11DB7) if crc & 0x80000000 else (crc << 1)
            crc &= 0xFFFFFFFF
        table.append(int.from_bytes(crc.to_bytes(4, "big"), "little"))
    return tuple(table)


_CRC_TABLE = _build_crc_table()


def crc32(data: BytesLike, crc: int = 0xFFFFFFFF) -> int:
    """Update the byte-swapped MPEG-2 CRC register ``crc`` with ``data``."""
    for byte in bytes(data):
        crc = _CRC_TABLE[(byte ^ crc) & 0xFF] ^ (crc >> 8)
    return crc


@dataclass
class PATEntry:
    program_number: int
    network_pid: int = 0
    program_map_pid: int = 0


@dataclass
class PAT:
    entries: list[PATEntry] = field(default_factory=list)

    def marshal(self) -> bytes:
        """Encode the table body (without PSI header or CRC)."""
        out = bytearray()
        for entry in self.entries:
            out += pack_u16be(entry.program_number)
            pid = entry.network_pid if entry.program_number == 0 else entry.program_map_pid
            out += pack_u16be((pid & 0x1FFF) | 7 << 13)
        return bytes(out)

    @classmethod
    def unmarshal(cls, data: BytesLike) -> PAT:
        """Decode a table body made of 4-byte entries."""
        data = bytes(data)
        if len(data) % 4:
            raise TSError("invalid PAT")
        entries = []
        for pos in range(0, len(data), 4):
            number = u16be(data[pos:])
            pid = u16be(data[pos + 2:]) & 0x1FFF
            if number == 0:
                entries.append(PATEntry(number, network_pid=pid))
            else:
                entries.append(PATEntry(number, program_map_pid=pid))
        return cls(entries)


@dataclass
class Descriptor:
    tag: int
    data: bytes = b""


@dataclass
class ElementaryStreamInfo:
    stream_type: int
    elementary_pid: int
    descriptors: list[Descriptor] = field(default_factory=list)


def _descs_length(descs: Sequence[Descriptor]) -> int:
    return sum(2 + len(d.data) for d in descs)


def _marshal_descs(descs: Sequence[Descriptor]) -> bytes:
    out = bytearray()
    for desc in descs:
        if len(desc.data) > 0xFF:
            raise ValueError("descriptor data longer than 255 bytes")
        out.append(desc.tag & 0xFF)
        out.append(len(desc.data))
        out += desc.data
    return bytes(out)


def _parse_descs(data: bytes) -> list[Descriptor]:
    descs = []
    pos = 0
    while pos + 2 <= len(data):
        tag, size = data[pos], data[pos + 1]
        if pos + 2 + size > len(data):
            break
        descs.append(Descriptor(tag, data[pos + 2:pos + 2 + size]))
        pos += 2 + size
    if pos < len(data):
        raise TSError("invalid PMT")
    return descs


@dataclass
class PMT:
    pcr_pid: int = 0
    program_descriptors: list[Descriptor] = field(default_factory=list)
    elementary_stream_infos: list[ElementaryStreamInfo] = field(default_factory=list)

    def length(self) -> int:
        """Size in bytes of the encoded table body."""
        n = 4 + _descs_length(self.program_descriptors)
        for info in self.elementary_stream_infos:
            n += 5 + _descs_length(info.descriptors)
        return n

    def marshal(self) -> bytes:
        """Encode the table body (without PSI header or CRC)."""
        out = bytearray(pack_u16be(self.pcr_pid | 7 << 13))
        program = _marshal_descs(self.program_descriptors)
        out += pack_u16be(len(program) | 0xF << 12)
        out += program
        for info in self.elementary_stream_infos:
            out.append(info.stream_type & 0xFF)
            out += pack_u16be(info.elementary_pid | 7 << 13)
            descs = _marshal_descs(info.descriptors)
            out += pack_u16be(len(descs) | 0x3C << 10)
            out += descs
        return bytes(out)

    @classmethod
    def unmarshal(cls, data: BytesLike) -> PMT:
        """Decode a table body."""
        data = bytes(data)
        if len(data) < 4:
            raise TSError("invalid PMT")
        pmt = cls(pcr_pid=u16be(data[0:2]) & 0x1FFF)
        desclen = u16be(data[2:4]) & 0x3FF
        pos = 4
        if desclen > 0:
            if len(data) < pos + desclen:
                raise TSError("invalid PMT")
            pmt.program_descriptors = _parse_descs(data[pos:pos + desclen])
            pos += desclen
        while pos < len(data):
            if len(data) < pos + 5:
                raise TSError("invalid PMT")
            info = ElementaryStreamInfo(
                stream_type=data[pos],
                elementary_pid=u16be(data[pos + 1:]) & 0x1FFF,
            )
            desclen = u16be(data[pos + 3:]) & 0x3FF
            pos += 5
            if desclen > 0:
                if len(data) < pos + desclen:
                    raise TSError("invalid PMT")
                info.descriptors = _parse_descs(data[pos:pos + desclen])
                pos += desclen
            pmt.elementary_stream_infos.append(info)
        return pmt


@dataclass(frozen=True)
class PSIHeader:
    table_id: int
    table_ext: int
    header_length: int
    data_length: int


@dataclass(frozen=True)
class PESHeader:
    header_length: int
    stream_id: int
    data_length: int
    pts: int
    dts: int


@dataclass(frozen=True)
class TSHeader:
    pid: int
    start: bool
    is_keyframe: bool
    header_length: int


def parse_psi(data: BytesLike) -> PSIHeader:
    """Parse the pointer field and section header of a PSI payload."""
    if len(data) < 8:
        raise TSError("invalid PSI header")
    hdrlen = 1 + data[0]
    if len(data) < hdrlen + 12:
        raise TSError("invalid PSI header")
    table_id = data[hdrlen]
    data_length = (u16be(data[hdrlen + 1:]) & 0x3FF) - 9
    if data_length < 0:
        raise TSError("invalid PSI header")
    table_ext = u16be(data[hdrlen + 3:])
    return PSIHeader(table_id, table_ext, hdrlen + 8, data_length)


def build_psi(table_id: int, table_ext: int, data: BytesLike) -> bytes:
    """Wrap a table body in a PSI section with pointer field and CRC."""
    section = bytearray([0, table_id & 0xFF])
    section += pack_u16be(0xA << 12 | (2 + 3 + 4 + len(data)))
    section += pack_u16be(table_ext)
    section += bytes([0x3 << 6 | 1, 0, 0])
    section += data
    section += pack_u32le(crc32(section[1:]))
    return bytes(section)


def _scale(value: int, num: int, den: int) -> int:
    q = abs(value) * num // den
    return -q if value < 0 else q


def time_to_pcr(ns: int) -> int:
    """Encode a time in nanoseconds as a 48-bit PCR field."""
    ticks = _scale(ns, PCR_HZ, SECOND) & _U64_MASK
    return (ticks // 300) << 15 | 0x3F << 9 | ticks % 300


def pcr_to_time(pcr: int) -> int:
    """Decode a 48-bit PCR field to nanoseconds."""
    ticks = (pcr >> 15) * 300 + (pcr & 0x1FF)
    return ticks * SECOND // PCR_HZ


def time_to_ts(ns: int) -> int:
    """Encode a time in nanoseconds as a 33-bit timestamp with marker bits."""
    ts = _scale(ns, PTS_HZ, SECOND) & _U64_MASK
    return (
        ((ts >> 30) & 0x7) << 33
        | ((ts >> 15) & 0x7FFF) << 17
        | (ts & 0x7FFF) << 1
        | 0x100010001
    )


def ts_to_time(value: int) -> int:
    """Decode a timestamp field to nanoseconds."""
    ts = ((value >> 33) & 0x7) << 30 | ((value >> 17) & 0x7FFF) << 15 | ((value >> 1) & 0x7FFF)
    return ts * SECOND // PTS_HZ


def parse_pes_header(data: BytesLike) -> PESHeader:
    """Parse a PES packet header; times are in nanoseconds."""
    if len(data) < 9 or data[0] != 0 or data[1] != 0 or data[2] != 1:
        raise TSError("invalid PES header")
    stream_id = data[3]
    flags = data[7]
    header_length = data[8] + 9
    data_length = u16be(data[4:6])
    if data_length > 0:
        data_length -= data[8] + 3
    pts = dts = 0
    if flags & _PTS_FLAG:
        if len(data) < 14:
            raise TSError("invalid PES header")
        pts = ts_to_time(u40be(data[9:14]))
        if flags & _DTS_FLAG:
            if len(data) < 19:
                raise TSError("invalid PES header")
            dts = ts_to_time(u40be(data[14:19]))
    return PESHeader(header_length, stream_id, data_length, pts, dts)


def build_pes_header(stream_id: int, data_length: int, pts: int, dts: int) -> bytes:
    """Build a PES header; a negative ``data_length`` marks an unbounded packet."""
    flags = 0
    if pts != 0:
        flags |= _PTS_FLAG
        if dts != 0:
            flags |= _DTS_FLAG
    optional = (5 if flags & _PTS_FLAG else 0) + (5 if flags & _DTS_FLAG else 0)
    packet_length = (data_length + optional + 3) & 0xFFFF if data_length >= 0 else 0

    header = bytearray([0, 0, 1, stream_id & 0xFF])
    header += pack_u16be(packet_length)
    header += bytes([2 << 6 | 1, flags, optional])
    if flags & _DTS_FLAG:
        header += pack_u40be(time_to_ts(pts) | 3 << 36)
        header += pack_u40be(time_to_ts(dts) | 1 << 36)
    elif flags & _PTS_FLAG:
        header += pack_u40be(time_to_ts(pts) | 2 << 36)
    return bytes(header)


def parse_ts_header(packet: BytesLike) -> TSHeader:
    """Parse the header (and adaptation field length) of a 188-byte TS packet."""
    if len(packet) < 4 or packet[0] != 0x47:
        raise TSError("tshdr sync invalid")
    pid = (packet[1] & 0x1F) << 8 | packet[2]
    start = bool(packet[1] & 0x40)
    header_length = 4
    is_keyframe = False
    if packet[3] & 0x20:
        if len(packet) < 6:
            raise TSError("tshdr too short")
        header_length += packet[4] + 1
        is_keyframe = bool(packet[5] & 0x40)
    return TSHeader(pid, start, is_keyframe, header_length)


class TSWriter:
    """Splits payloads into TS packets for one PID, tracking the continuity counter."""

    def __init__(self, pid: int) -> None:
        self.pid = pid & 0x1FFF
        self.continuity_counter = 0
        template = bytearray(b"\xff" * TS_PACKET_SIZE)
        template[0] = 0x47
        template[1:3] = pack_u16be(self.pid)
        self._template = bytes(template)

    def write_packets(
        self,
        out: BinaryIO,
        datav: Sequence[BytesLike],
        pcr: int = 0,
        sync: bool = False,
        pad_data: bool = False,
    ) -> None:
        """Write the concatenation of ``datav`` to ``out`` as TS packets.

        The first packet carries the unit-start flag, a PCR when ``pcr`` is
        non-zero and the random-access flag when ``sync`` is set. A short last
        packet is filled with 0xff either after the payload (``pad_data``) or
        as adaptation-field stuffing.
        """
        total = vec_len(datav)
        pos = 0
        while pos < total:
            header = bytearray(self._template)
            header[3] = (self.continuity_counter & 0xF) | 0x30
            header[5] = 0
            header_length = 6
            self.continuity_counter += 1

            if pos == 0:
                header[1] |= 0x40
                if pcr != 0:
                    header_length += 6
                    header[5] |= 0x10
                    header[6:12] = pack_u48be(time_to_pcr(pcr))
                if sync:
                    header[5] |= 0x40

            pad_tail = 0
            end = pos + TS_PACKET_SIZE - header_length
            if end > total:
                if pad_data:
                    pad_tail = end - total
                else:
                    header_length += end - total
                end = total

            header[4] = header_length - 5
            out.write(bytes(header[:header_length]))
            for piece in vec_slice(datav, pos, end):
                out.write(bytes(piece))
            if pad_tail:
                out.write(bytes(header[TS_PACKET_SIZE - pad_tail:]))
            pos = end