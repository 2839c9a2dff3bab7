"""RTMP chunk stream layer: splitting the byte stream into messages and framing outgoing ones."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import BinaryIO

from .pio import BytesLike, pack_u16be, pack_u24be, pack_u32be, pack_u32le, u16be, u24be, u32be, u32le

HEADER_LENGTH = 12
TIMESTAMP_MAX = 0xFFFFFF
DEFAULT_CHUNK_SIZE = 128
CONTROL_CSID = 2

_U32_MASK = 0xFFFFFFFF


class ChunkError(ValueError):
    """Raised when the chunk stream is malformed."""


class MessageType(enum.IntEnum):
    SET_CHUNK_SIZE = 1
    ACK = 3
    USER_CONTROL = 4
    WINDOW_ACK_SIZE = 5
    SET_PEER_BANDWIDTH = 6
    AUDIO = 8
    VIDEO = 9
    DATA_AMF3 = 15
    COMMAND_AMF3 = 17
    DATA_AMF0 = 18
    COMMAND_AMF0 = 20


class EventType(enum.IntEnum):
    STREAM_BEGIN = 0
    SET_BUFFER_LENGTH = 3
    STREAM_IS_RECORDED = 4


@dataclass
class Message:
    """A complete message reassembled from one chunk stream."""

    csid: int
    timestamp: int
    msg_sid: int
    msg_type_id: int
    data: bytes

    @property
    def event_type(self) -> int | None:
        """The user control event type, or ``None`` for other messages."""
        if self.msg_type_id != MessageType.USER_CONTROL:
            return None
        return u16be(self.data)


@dataclass
class _ChunkStream:
    time_now: int = 0
    time_delta: int = 0
    has_time_ext: bool = False
    msg_sid: int = 0
    msg_type_id: int = 0
    msg_data_len: int = 0
    msg_data_left: int = 0
    msg_hdr_type: int = 0
    msg_data: bytearray = field(default_factory=bytearray)

    def start(self) -> None:
        self.msg_data_left = self.msg_data_len
        self.msg_data = bytearray()


class ChunkReader:
    """Reads chunks from a binary stream and reassembles them into messages.

    Set chunk size messages are applied to the reader and not returned.
    When ``ack_size`` is non-zero, ``on_ack`` is called with the byte count
    each time more than ``ack_size`` bytes have been received since the last
    acknowledgement.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.max_chunk_size = DEFAULT_CHUNK_SIZE
        self.ack_size = 0
        self.on_ack: Callable[[int], None] | None = None
        self._streams: dict[int, _ChunkStream] = {}
        self._received = 0
        self._count = 0

    def _read(self, size: int) -> bytes:
        out = bytearray()
        while len(out) < size:
            chunk = self.stream.read(size - len(out))
            if not chunk:
                raise EOFError("unexpected end of chunk stream")
            out += chunk
        self._count += size
        return bytes(out)

    def _read_ext_timestamp(self, cs: _ChunkStream, timestamp: int) -> int:
        if timestamp == TIMESTAMP_MAX:
            cs.has_time_ext = True
            return u32be(self._read(4))
        cs.has_time_ext = False
        return timestamp

    def read_chunk(self) -> Message | None:
        """Read one chunk; return the message it completes, if any."""
        self._count = 0
        header = self._read(1)[0]
        hdr_type = header >> 6
        csid = header & 0x3F
        if csid == 0:
            csid = self._read(1)[0] + 64
        elif csid == 1:
            csid = u16be(self._read(2)) + 64

        cs = self._streams.setdefault(csid, _ChunkStream())

        if hdr_type in (0, 1, 2):
            if cs.msg_data_left != 0:
                raise ChunkError(f"chunk msgdataleft={cs.msg_data_left} invalid")
            if hdr_type == 0:
                h = self._read(11)
                timestamp = u24be(h[0:3])
                cs.msg_data_len = u24be(h[3:6])
                cs.msg_type_id = h[6]
                cs.msg_sid = u32le(h[7:11])
                cs.time_now = self._read_ext_timestamp(cs, timestamp)
            else:
                if hdr_type == 1:
                    h = self._read(7)
                    cs.msg_data_len = u24be(h[3:6])
                    cs.msg_type_id = h[6]
                else:
                    h = self._read(3)
                timestamp = self._read_ext_timestamp(cs, u24be(h[0:3]))
                cs.time_delta = timestamp
                cs.time_now = (cs.time_now + timestamp) & _U32_MASK
            cs.msg_hdr_type = hdr_type
            cs.start()
        elif cs.msg_data_left == 0:
            if cs.msg_hdr_type == 0:
                if cs.has_time_ext:
                    cs.time_now = u32be(self._read(4))
            else:
                if cs.has_time_ext:
                    timestamp = u32be(self._read(4))
                else:
                    timestamp = cs.time_delta
                cs.time_now = (cs.time_now + timestamp) & _U32_MASK
            cs.start()

        size = min(cs.msg_data_left, self.max_chunk_size)
        cs.msg_data += self._read(size)
        cs.msg_data_left -= size

        message = None
        if cs.msg_data_left == 0:
            message = self._handle(
                Message(csid, cs.time_now, cs.msg_sid, cs.msg_type_id, bytes(cs.msg_data))
            )

        self._received = (self._received + self._count) & _U32_MASK
        if self.ack_size and self._received > self.ack_size:
            if self.on_ack is not None:
                self.on_ack(self._received)
            self._received = 0
        return message

    def _handle(self, message: Message) -> Message | None:
        kind = message.msg_type_id
        if kind == MessageType.SET_CHUNK_SIZE:
            if len(message.data) < 4:
                raise ChunkError("short packet of SetChunkSize")
            self.max_chunk_size = u32be(message.data)
            return None
        if kind == MessageType.USER_CONTROL and len(message.data) < 2:
            raise ChunkError("short packet of UserControl")
        if kind == MessageType.COMMAND_AMF3 and len(message.data) < 1:
            raise ChunkError("short packet of CommandMsgAMF3")
        return message

    def read_message(self) -> Message:
        """Read chunks until a message is complete and return it."""
        while True:
            message = self.read_chunk()
            if message is not None:
                return message


def build_chunk_header(
    csid: int, timestamp: int, msg_type_id: int, msg_sid: int, length: int
) -> bytes:
    """Build a type 0 chunk header, with an extended timestamp when needed."""
    timestamp &= _U32_MASK
    header = bytearray([csid & 0x3F])
    header += pack_u24be(min(timestamp, TIMESTAMP_MAX))
    header += pack_u24be(length)
    header.append(msg_type_id & 0xFF)
    header += pack_u32le(msg_sid)
    if timestamp > TIMESTAMP_MAX:
        header += pack_u32be(timestamp)
    return bytes(header)


class ChunkWriter:
    """Buffers outgoing messages, each as a single chunk, until ``flush``."""

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.max_chunk_size = DEFAULT_CHUNK_SIZE
        self._buffer = bytearray()

    def _control(self, msg_type_id: int, payload: bytes) -> None:
        self._buffer += build_chunk_header(CONTROL_CSID, 0, msg_type_id, 0, len(payload))
        self._buffer += payload

    def write_set_chunk_size(self, size: int) -> None:
        self.max_chunk_size = size
        self._control(MessageType.SET_CHUNK_SIZE, pack_u32be(size))

    def write_ack(self, seqnum: int) -> None:
        self._control(MessageType.ACK, pack_u32be(seqnum))

    def write_window_ack_size(self, size: int) -> None:
        self._control(MessageType.WINDOW_ACK_SIZE, pack_u32be(size))

    def write_set_peer_bandwidth(self, ack_size: int, limit_type: int) -> None:
        self._control(MessageType.SET_PEER_BANDWIDTH, pack_u32be(ack_size) + bytes([limit_type & 0xFF]))

    def write_stream_begin(self, msg_sid: int) -> None:
        self._control(MessageType.USER_CONTROL, pack_u16be(EventType.STREAM_BEGIN) + pack_u32be(msg_sid))

    def write_set_buffer_length(self, msg_sid: int, length: int) -> None:
        self._control(
            MessageType.USER_CONTROL,
            pack_u16be(EventType.SET_BUFFER_LENGTH) + pack_u32be(msg_sid) + pack_u32be(length),
        )

    def write_message(
        self, csid: int, timestamp: int, msg_type_id: int, msg_sid: int, payload: BytesLike
    ) -> None:
        """Queue a message as one chunk, raising the chunk size first if it would not fit."""
        payload = bytes(payload)
        header = build_chunk_header(csid, timestamp, msg_type_id, msg_sid, len(payload))
        if len(header) + len(payload) > self.max_chunk_size:
            self.write_set_chunk_size(len(header) + len(payload))
        self._buffer += header
        self._buffer += payload

    def flush(self) -> None:
        """Write everything queued to the stream."""
        if self._buffer:
            self.stream.write(bytes(self._buffer))
            self._buffer.clear()
        flush = getattr(self.stream, "flush", None)
        if flush is not None:
            flush()