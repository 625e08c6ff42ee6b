import pytest

from tuyaipc.sdp import (
    Attribute,
    Bandwidth,
    MediaDescription,
    SessionDescription,
    parse_session,
)

SAMPLE = (
    "v=0\r\n"
    "o=- 1 1 IN IP4 0.0.0.0\r\n"
    "s=go\r\n"
    "c=IN IP4 0.0.0.0\r\n"
    "t=0 0\r\n"
    "m=video 0 RTP/AVP 96\r\n"
    "a=rtpmap:96 H264/90000\r\n"
    "a=recvonly\r\n"
    "a=control:trackID=0\r\n"
    "m=audio 0 RTP/AVP 8\r\n"
    "b=AS:128\r\n"
    "a=rtpmap:8 PCMA/8000\r\n"
)


def test_parse_sample_media():
    sd = parse_session(SAMPLE)
    video, audio = sd.media_descriptions
    assert video.media == "video"
    assert video.protos == ["RTP", "AVP"]
    assert video.formats == ["96"]
    assert audio.formats == ["8"]
    assert audio.bandwidths == [Bandwidth("AS", 128)]
    assert sd.session_name == "go"


def test_attribute_lookup():
    video = parse_session(SAMPLE).media_descriptions[0]
    assert video.attribute("rtpmap") == "96 H264/90000"
    assert video.attribute("recvonly") == ""
    assert video.attribute("control") == "trackID=0"
    assert video.attribute("sendonly") is None


def test_marshal_round_trip_is_identical():
    assert parse_session(SAMPLE).marshal() == SAMPLE


def test_parse_accepts_bytes_and_lf_endings():
    assert parse_session(SAMPLE.replace("\r\n", "\n").encode()) == parse_session(SAMPLE)


def test_with_codec_adds_format_and_attributes():
    md = MediaDescription("video", protos=["RTP", "AVP"])
    md.with_codec(96, "H264", 90000, 0, "packetization-mode=1")
    assert md.formats == ["96"]
    assert md.attribute("rtpmap") == "96 H264/90000"
    assert md.attribute("fmtp") == "96 packetization-mode=1"


def test_with_codec_channels_and_no_fmtp():
    md = MediaDescription("audio").with_codec(8, "PCMA", 8000, 2, "")
    assert md.attribute("rtpmap") == "8 PCMA/8000/2"
    assert md.attribute("fmtp") is None


def test_property_and_value_attributes():
    md = MediaDescription("audio").with_property_attribute("sendonly").with_value_attribute("mid", "0")
    assert md.attributes == [Attribute("sendonly"), Attribute("mid", "0")]


def test_built_session_round_trips():
    md = MediaDescription("video", protos=["RTP", "AVP"]).with_codec(96, "H264", 90000, 0, "")
    md.with_property_attribute("sendonly")
    sd = SessionDescription(
        origin="- 1 1 IN IP4 0.0.0.0",
        session_name="cam",
        connection="IN IP4 0.0.0.0",
        media_descriptions=[md],
    )
    text = sd.marshal()
    assert parse_session(text) == sd
    assert all(line.endswith("\r") for line in text.split("\n")[:-1])


def test_repeat_and_experimental_bandwidth_round_trip():
    text = "v=0\r\no=- 0 0 IN IP4 0.0.0.0\r\ns=-\r\nb=X-YZ:5\r\nt=0 0\r\nr=7d 1h 0 25h\r\n"
    sd = parse_session(text)
    assert sd.bandwidths[0].experimental is True
    assert sd.marshal() == text


@pytest.mark.parametrize(
    "text",
    [
        "v=0\r\nbogus\r\n",
        "v=0\r\nx=1\r\n",
        "v=zero\r\n",
        "v=0\r\nm=video abc RTP/AVP 96\r\n",
        "v=0\r\nm=video\r\n",
        "v=0\r\nb=AS:abc\r\n",
        "v=0\r\nr=1 2\r\n",
        "v=0\r\nm=video 0 RTP/AVP 96\r\ns=late\r\n",
    ],
)
def test_malformed_sdp_raises(text):
    with pytest.raises(ValueError):
        parse_session(text)