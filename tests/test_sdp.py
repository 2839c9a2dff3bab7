import pytest

from avstream.sdp import CodecType, Media, Session, parse

CAMERA_SDP = "\n".join(
    [
        "v=0",
        "o=- 42 1 IN IP4 198.51.100.10",
        "s=Sample camera session",
        "t=0 0",
        "a=control:*",
        "m=video 0 RTP/AVP 96",
        "a=rtpmap:96 H264/90000",
        "a=fmtp:96 packetization-mode=1; sprop-parameter-sets=Z00AHpWoKA9k,aO48gA==",
        "a=control:track1",
        "m=audio 0 RTP/AVP 96",
        "a=rtpmap:96 MPEG4-GENERIC/16000/2",
        "a=fmtp:96 streamtype=5;mode=AAC-hbr;sizelength=13;indexlength=3;config=1408",
        "a=control:track2",
        "m=audio 0 RTP/AVP 0",
        "a=recvonly",
        "a=control:rtsp://192.0.2.7:554/live/trackID=2",
        "a=rtpmap:0 PCMU/8000",
        "",
    ]
)


@pytest.fixture
def medias():
    _, result = parse(CAMERA_SDP)
    return result


def test_sample_has_three_media(medias):
    assert [m.av_type for m in medias] == ["video", "audio", "audio"]


def test_video_media(medias):
    video = medias[0]
    assert video.codec_type is CodecType.H264
    assert video.time_scale == 90000
    assert video.rtpmap == 96
    assert video.payload_type == 96
    assert video.control == "track1"
    assert video.sprop_parameter_sets == [
        bytes([0x67, 0x4D, 0x00, 0x1E, 0x95, 0xA8, 0x28, 0x0F, 0x64]),
        bytes([0x68, 0xEE, 0x3C, 0x80]),
    ]


def test_aac_media(medias):
    audio = medias[1]
    assert audio.codec_type is CodecType.AAC
    assert audio.time_scale == 16000
    assert audio.rtpmap == 96
    assert audio.size_length == 13
    assert audio.index_length == 3
    assert audio.config == bytes([0x14, 0x08])
    assert audio.control == "track2"


def test_pcmu_media(medias):
    audio = medias[2]
    assert audio.codec_type is None
    assert audio.time_scale == 8000
    assert audio.rtpmap == 0
    assert audio.payload_type == 0
    assert audio.control == "rtsp://192.0.2.7:554/live/trackID=2"


def test_session_uri():
    session, medias = parse("u=rtsp://localhost/stream\nm=video 0 RTP/AVP 97\n")
    assert session == Session(uri="rtsp://localhost/stream")
    assert medias[0].payload_type == 97


def test_attributes_before_media_are_ignored():
    _, medias = parse("a=control:top\na=rtpmap:96 H264/90000\n")
    assert medias == []


def test_non_av_media_is_skipped():
    _, medias = parse("m=application 0 RTP/AVP 100\na=control:x\n")
    assert medias == []


def test_media_without_format_list():
    _, medias = parse("m=video\n")
    assert medias == [Media(av_type="video")]


def test_invalid_rtpmap_number_gives_zero():
    _, medias = parse("m=video 0 RTP/AVP 96\na=rtpmap:abc\n")
    assert medias[0].rtpmap == 0


def test_invalid_hex_config_keeps_valid_prefix():
    _, medias = parse("m=audio 0 RTP/AVP 96\na=fmtp:96 a=1;config=12zz\n")
    assert medias[0].config == bytes([0x12])