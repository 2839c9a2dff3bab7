"""Building blocks for streaming media: MPEG-TS, RTMP chunks and handshake, SDP, bit I/O."""

__version__ = "0.1.0"