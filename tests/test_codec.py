import base64
import json

import pytest

from tuyaipc.codec import (
    CODEC_AAC,
    CODEC_ANY,
    CODEC_H264,
    CODEC_JPEG,
    CODEC_PCM,
    CODEC_PCMA,
    CODEC_PCML,
    CODEC_PCMU,
    PAYLOAD_TYPE_RAW,
    Codec,
    decode_h264,
    ffmpeg_codec_name,
    get_kind,
    parse_codec_string,
    unmarshal_codec,
)
from tuyaipc.sdp import Attribute, Bandwidth, MediaDescription

SPS_B64 = base64.b64encode(bytes([0x67, 0x42, 0x00, 0x1F])).decode()


def _md(formats, attrs=(), bandwidths=()):
    return MediaDescription(
        media="audio",
        protos=["RTP", "AVP"],
        formats=list(formats),
        attributes=[Attribute(k, v) for k, v in attrs],
        bandwidths=list(bandwidths),
    )


def test_ffmpeg_names():
    assert ffmpeg_codec_name(CODEC_H264) == "h264"
    assert ffmpeg_codec_name(CODEC_PCMA) == "pcm_alaw"
    assert ffmpeg_codec_name("WEIRD") == "WEIRD"


def test_get_kind():
    assert get_kind(CODEC_H264) == "video"
    assert get_kind(CODEC_PCMU) == "audio"
    assert get_kind("XYZ") == ""


def test_str_omits_video_rate():
    assert str(Codec(name=CODEC_H264, clock_rate=90000)) == CODEC_H264
    assert str(Codec(name=CODEC_PCMU, clock_rate=8000)) == "PCMU/8000"


def test_kind_predicates_and_rtp():
    video = Codec(name=CODEC_H264, payload_type=96)
    assert video.is_video() and not video.is_audio()
    assert video.is_rtp()
    assert not Codec(name=CODEC_H264, payload_type=PAYLOAD_TYPE_RAW).is_rtp()


def test_print_name():
    assert Codec(name=CODEC_AAC).print_name() == "AAC"
    assert Codec(name=CODEC_PCMU).print_name() == CODEC_PCMU


def test_clone_is_independent():
    original = Codec(name=CODEC_PCMA, clock_rate=8000)
    copy = original.clone()
    assert copy == original
    copy.clock_rate = 0
    assert original.clock_rate == 8000


def test_match():
    local = Codec(name=CODEC_PCMA, clock_rate=8000, channels=1)
    assert local.match(Codec(name=CODEC_ANY))
    assert local.match(Codec(name=CODEC_PCMA))
    assert local.match(Codec(name=CODEC_PCMA, clock_rate=8000))
    assert not local.match(Codec(name=CODEC_PCMA, clock_rate=16000))
    assert not local.match(Codec(name=CODEC_PCMU))


def test_unmarshal_rtpmap_with_trailing_space():
    md = _md(
        ["96"],
        [("rtpmap", "96 H264/90000 "), ("fmtp", "96 packetization-mode=1")],
    )
    codec = unmarshal_codec(md, "96")
    assert codec.name == CODEC_H264
    assert codec.clock_rate == 90000
    assert codec.fmtp_line == "packetization-mode=1"
    assert codec.payload_type == 96


def test_unmarshal_stereo_opus():
    codec = unmarshal_codec(_md(["111"], [("rtpmap", "111 opus/48000/2")]), "111")
    assert (codec.name, codec.clock_rate, codec.channels) == ("OPUS", 48000, 2)


def test_unmarshal_pcm_becomes_little_endian():
    codec = unmarshal_codec(_md(["97"], [("rtpmap", "97 PCM/8000")]), "97")
    assert codec.name == CODEC_PCML


@pytest.mark.parametrize(
    "pt, expected",
    [
        ("0", (CODEC_PCMU, 8000, 0)),
        ("8", (CODEC_PCMA, 8000, 0)),
        ("10", (CODEC_PCM, 44100, 2)),
        ("26", (CODEC_JPEG, 90000, 0)),
    ],
)
def test_unmarshal_static_payloads(pt, expected):
    codec = unmarshal_codec(_md([pt]), pt)
    assert (codec.name, codec.clock_rate, codec.channels) == expected


def test_unmarshal_dynamic_without_bandwidth():
    assert unmarshal_codec(_md(["96"]), "96").name == "96"


@pytest.mark.parametrize(
    "bandwidth, rate, channels",
    [(128, 8000, 0), (1411, 44100, 2), (999, 0, 0)],
)
def test_unmarshal_dynamic_guess_from_bandwidth(bandwidth, rate, channels):
    md = _md(["96"], bandwidths=[Bandwidth("AS", bandwidth)])
    codec = unmarshal_codec(md, "96")
    assert (codec.name, codec.clock_rate, codec.channels) == (CODEC_PCML, rate, channels)


def test_unmarshal_bad_rtpmap():
    with pytest.raises(ValueError):
        unmarshal_codec(_md(["96"], [("rtpmap", "96 H264")]), "96")


def test_decode_h264():
    fmtp = f"packetization-mode=1;sprop-parameter-sets={SPS_B64},aM4="
    assert decode_h264(fmtp) == ("Baseline", 0x1F)
    assert decode_h264("packetization-mode=1") == ("", 0)


def test_to_json_h264():
    codec = Codec(name=CODEC_H264, clock_rate=90000, fmtp_line=f"sprop-parameter-sets={SPS_B64}")
    assert json.loads(codec.to_json()) == {
        "codec_name": "h264",
        "codec_type": "video",
        "profile": "Baseline",
        "level": 0x1F,
    }


def test_to_json_audio():
    info = json.loads(Codec(name=CODEC_PCMA, clock_rate=8000).to_json())
    assert info == {"codec_name": "pcm_alaw", "codec_type": "audio", "sample_rate": 8000}


def test_parse_codec_string():
    codec = parse_codec_string("alaw/8000")
    assert codec == Codec(name=CODEC_PCMA, clock_rate=8000)
    assert parse_codec_string("AAC").name == CODEC_AAC
    assert parse_codec_string("h264") is None