# avstream

Pure-Python building blocks for working with live media streams. There are
no dependencies outside the standard library.

## Modules

- `avstream.pio`: big- and little-endian integer reading (`u16be`,
  `u32le`, `u40be`, ...) and packing (`pack_u16be`, `pack_u48be`, ...), plus
  `vec_len` and `vec_slice` for working across lists of byte buffers
  without joining them.
- `avstream.bits`: `BitReader` and `BitWriter` for big-endian bit fields
  over binary streams, and `GolombBitReader` for single bits and
  Exp-Golomb codes (`read_exp_golomb`, `read_se`).
- `avstream.tsio`: MPEG transport stream pieces: `PAT` and `PMT` tables
  with `marshal`/`unmarshal`, PSI sections with CRC (`parse_psi`,
  `build_psi`, `crc32`), PES headers (`parse_pes_header`,
  `build_pes_header`), TS packet headers (`parse_ts_header`), PCR and
  PTS/DTS conversion to and from nanoseconds (`time_to_pcr`, `pcr_to_time`,
  `time_to_ts`, `ts_to_time`), and `TSWriter`, which splits payloads into
  188-byte packets for one PID and keeps the continuity counter. Parse
  errors raise `TSError`.
- `avstream.sdp`: `parse` turns SDP text into a `Session` and a list of
  `Media` entries for the audio and video sections (codec, time scale,
  control, payload type, AAC `config`/`sizelength`/`indexlength`, H.264
  `sprop-parameter-sets`).
- `avstream.rtmpurl`: `parse_url` (adds port 1935 when none is given),
  `split_path`, `get_tc_url` and `create_url` for RTMP addresses.
- `avstream.handshake`: the RTMP handshake. `client_handshake` sends a
  plain C0C1 and echoes S1 as C2; `server_handshake` answers both plain
  and digest-based (HMAC-SHA256) clients and raises `HandshakeError` on a
  bad version or digest.
- `avstream.chunk`: the RTMP chunk stream. `ChunkReader` reassembles
  chunks into `Message` objects, applies set-chunk-size messages and can
  report acknowledgements through `on_ack`; `ChunkWriter` queues control
  messages and whole messages (one chunk each, raising the chunk size when
  needed) until `flush`. `build_chunk_header` builds a type 0 header.
  Malformed input raises `ChunkError`.

## Installation

```
pip install .
```

## Examples

Read and write bits:

```python
import io
from avstream.bits import BitReader, BitWriter

reader = BitReader(io.BytesIO(bytes([0xF3, 0xB3, 0x45, 0x60])))
assert reader.read_bits(4) == 0xF

out = io.BytesIO()
writer = BitWriter(out)
writer.write_bits(0xF, 4)
writer.write_bits(0x3, 4)
writer.flush_bits()
assert out.getvalue() == b"\xf3"
```

Describe a program in an MPEG-TS stream:

```python
from avstream.tsio import PAT, PATEntry, build_psi, parse_psi

pat = PAT([PATEntry(program_number=1, program_map_pid=0x1000)])
section = build_psi(0, 1, pat.marshal())
header = parse_psi(section)
body = section[header.header_length:header.header_length + header.data_length]
assert PAT.unmarshal(body) == pat
```

Parse an SDP description:

```python
from avstream import sdp

session, medias = sdp.parse(text)
for media in medias:
    print(media.av_type, media.codec_type, media.time_scale, media.control)
```

Work with RTMP addresses:

```python
from avstream.rtmpurl import parse_url, split_path

url = parse_url("rtmp://localhost/live/stream")
app, stream = split_path(url)   # "live", "stream"
```

## What it does not do

avstream provides the protocol and container layers only. It has no AMF
encoder or decoder, so it does not run the RTMP command exchange
(`connect`, `createStream`, `publish`, `play`) and has no RTMP client or
server connection object. It has no FLV handling, no complete MPEG-TS
muxer or demuxer, no AAC or H.264 parsing and no RTSP client. There is no
command-line tool.

## Running the tests

```
pip install .[test]
pytest
```