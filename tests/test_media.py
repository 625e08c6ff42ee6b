import json

from tuyaipc.codec import (
    CODEC_AAC,
    CODEC_ALL,
    CODEC_ANY,
    CODEC_H264,
    CODEC_PCM,
    CODEC_PCMA,
    CODEC_PCML,
    Codec,
)
from tuyaipc.media import Media, marshal_sdp, parse_query, unmarshal_media
from tuyaipc.sdp import parse_session


def _h264():
    return Codec(name=CODEC_H264, clock_rate=90000, payload_type=96)


def test_str_skips_repeated_codecs():
    media = Media("video", "recvonly", [_h264(), _h264()])
    assert str(media) == "video, recvonly, H264"


def test_to_json_is_string_form():
    media = Media("video", "sendonly", [_h264()])
    assert json.loads(media.to_json()) == str(media)


def test_clone_copies_codecs():
    media = Media("audio", "sendonly", [Codec(name=CODEC_PCMA, clock_rate=8000)])
    copy = media.clone()
    assert copy == media
    copy.codecs[0].clock_rate = 0
    assert media.codecs[0].clock_rate == 8000


def test_match_media_opposite_directions():
    local = Media("video", "sendonly", [_h264()])
    remote = Media("video", "recvonly", [Codec(name=CODEC_ANY)])
    codec, remote_codec = local.match_media(remote)
    assert codec is local.codecs[0]
    assert remote_codec is remote.codecs[0]


def test_match_media_rejects_same_direction_and_kind():
    local = Media("video", "sendonly", [_h264()])
    assert local.match_media(Media("video", "sendonly", [_h264()])) == (None, None)
    assert local.match_media(Media("audio", "recvonly", [_h264()])) == (None, None)


def test_match_codec_and_match_all():
    media = Media("audio", "sendonly", [Codec(name=CODEC_PCMA, clock_rate=8000)])
    assert media.match_codec(Codec(name=CODEC_PCMA)) is media.codecs[0]
    assert media.match_codec(Codec(name=CODEC_AAC)) is None
    assert not media.match_all()
    assert Media("video", "recvonly", [Codec(name=CODEC_ALL)]).match_all()


def test_equal():
    a = Media("video", "sendonly", [_h264()], id="0")
    assert a.equal(Media("audio", "recvonly", id="0"))
    assert not a.equal(Media("video", "sendonly", [_h264()], id="1"))
    assert a.equal(Media("video", "sendonly", [_h264()]))


def test_parse_query():
    medias = parse_query({"video": ["h264,copy"], "audio": ["aac"], "other": ["x"]})
    assert [m.kind for m in medias] == ["video", "audio"]
    assert all(m.direction == "sendonly" for m in medias)
    assert [c.name for c in medias[0].codecs] == [CODEC_H264, CODEC_ANY]
    assert [c.name for c in medias[1].codecs] == [CODEC_AAC]


def test_marshal_sdp_round_trip():
    medias = [
        Media("video", "sendonly", [_h264()], id="trackID=0"),
        Media("audio", "sendonly", [Codec(name=CODEC_PCML, clock_rate=16000, payload_type=97)]),
        Media("audio", "sendonly"),
    ]
    text = marshal_sdp("stream", medias)
    assert text.startswith("v=0\r\n")
    sd = parse_session(text)
    assert sd.session_name == "stream"
    assert len(sd.media_descriptions) == 2

    video = unmarshal_media(sd.media_descriptions[0])
    assert (video.kind, video.direction, video.id) == ("video", "sendonly", "trackID=0")
    assert video.codecs == [_h264()]

    audio = unmarshal_media(sd.media_descriptions[1])
    assert audio.codecs[0].name == CODEC_PCM
    assert audio.codecs[0].clock_rate == 16000


def test_unmarshal_media_mid():
    sd = parse_session(
        "v=0\r\no=- 0 0 IN IP4 0.0.0.0\r\ns=-\r\nt=0 0\r\n"
        "m=audio 9 UDP/TLS/RTP/SAVPF 8 0\r\na=mid:1\r\na=recvonly\r\n"
        "a=rtpmap:8 PCMA/8000\r\n"
    )
    media = unmarshal_media(sd.media_descriptions[0])
    assert media.id == "1"
    assert media.direction == "recvonly"
    assert [c.name for c in media.codecs] == [CODEC_PCMA, "PCMU"]