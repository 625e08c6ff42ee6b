"""Media codec descriptions and their SDP and text forms."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, replace
from enum import IntEnum

from tuyaipc.sdp import MediaDescription
from tuyaipc.util import atoi, between

DIRECTION_RECVONLY = "recvonly"
DIRECTION_SENDONLY = "sendonly"
DIRECTION_SENDRECV = "sendrecv"

KIND_VIDEO = "video"
KIND_AUDIO = "audio"

CODEC_H264 = "H264"  # payload type 96
CODEC_H265 = "H265"
CODEC_VP8 = "VP8"
CODEC_VP9 = "VP9"
CODEC_AV1 = "AV1"
CODEC_JPEG = "JPEG"  # payload type 26
CODEC_RAW = "RAW"

CODEC_PCMU = "PCMU"  # payload type 0
CODEC_PCMA = "PCMA"  # payload type 8
CODEC_AAC = "MPEG4-GENERIC"
CODEC_OPUS = "OPUS"  # payload type 111
CODEC_G722 = "G722"
CODEC_MP3 = "MPA"  # payload type 14, MPEG-1 Layer III
CODEC_PCM = "L16"  # linear PCM, big endian
CODEC_PCML = "PCML"  # linear PCM, little endian
CODEC_ELD = "ELD"  # AAC-ELD
CODEC_FLAC = "FLAC"

CODEC_ALL = "ALL"
CODEC_ANY = "ANY"

PAYLOAD_TYPE_RAW = 255

_VIDEO_CODECS = frozenset(
    {CODEC_H264, CODEC_H265, CODEC_VP8, CODEC_VP9, CODEC_AV1, CODEC_JPEG, CODEC_RAW}
)
_AUDIO_CODECS = frozenset(
    {
        CODEC_PCMU, CODEC_PCMA, CODEC_AAC, CODEC_OPUS, CODEC_G722,
        CODEC_MP3, CODEC_PCM, CODEC_PCML, CODEC_ELD, CODEC_FLAC,
    }
)

_FFMPEG_NAMES = {
    CODEC_H264: "h264",
    CODEC_H265: "hevc",
    CODEC_JPEG: "mjpeg",
    CODEC_RAW: "rawvideo",
    CODEC_PCMA: "pcm_alaw",
    CODEC_PCMU: "pcm_mulaw",
    CODEC_PCM: "pcm_s16be",
    CODEC_PCML: "pcm_s16le",
    CODEC_AAC: "aac",
    CODEC_OPUS: "opus",
    CODEC_VP8: "vp8",
    CODEC_VP9: "vp9",
    CODEC_AV1: "av1",
    CODEC_ELD: "aac/eld",
    CODEC_FLAC: "flac",
    CODEC_MP3: "mp3",
}

_H264_PROFILES = {0x42: "Baseline", 0x4D: "Main", 0x58: "Extended", 0x64: "High"}

_CODEC_ALIASES = {
    **dict.fromkeys(("pcm_s16be", "s16be", "pcm"), CODEC_PCM),
    **dict.fromkeys(("pcm_s16le", "s16le", "pcml"), CODEC_PCML),
    **dict.fromkeys(("pcm_alaw", "alaw", "pcma"), CODEC_PCMA),
    **dict.fromkeys(("pcm_mulaw", "mulaw", "pcmu"), CODEC_PCMU),
    **dict.fromkeys(("aac", "mpeg4-generic"), CODEC_AAC),
    "opus": CODEC_OPUS,
    "flac": CODEC_FLAC,
}

# Static RTP payload types: name, clock rate, channels.
_STATIC_PAYLOADS = {
    "0": (CODEC_PCMU, 8000, 0),
    "8": (CODEC_PCMA, 8000, 0),
    "10": (CODEC_PCM, 44100, 2),
    "11": (CODEC_PCM, 44100, 0),
    "14": (CODEC_MP3, 90000, 0),  # not the real sample rate
    "26": (CODEC_JPEG, 90000, 0),
}

# Guess of PCM parameters from the bitrate for dynamic payload types.
_PCM_BY_BANDWIDTH = {
    128: (8000, 0),
    256: (16000, 0),
    384: (24000, 0),
    512: (32000, 0),
    705: (44100, 0),
    768: (48000, 0),
    1411: (44100, 2),
    1536: (48000, 2),
}


class Mode(IntEnum):
    """Role of a connection in a stream."""

    ACTIVE_PRODUCER = 1
    PASSIVE_CONSUMER = 2
    PASSIVE_PRODUCER = 3
    ACTIVE_CONSUMER = 4


def get_kind(name: str) -> str:
    """Return "video", "audio" or "" for a codec name."""
    if name in _VIDEO_CODECS:
        return KIND_VIDEO
    if name in _AUDIO_CODECS:
        return KIND_AUDIO
    return ""


def ffmpeg_codec_name(name: str) -> str:
    """Return the FFmpeg name of a codec, or the name itself if unknown."""
    return _FFMPEG_NAMES.get(name, name)


@dataclass
class Codec:
    """One codec of a media: name, clock rate, channels and format parameters."""

    name: str = ""
    clock_rate: int = 0
    channels: int = 0
    fmtp_line: str = ""
    payload_type: int = 0

    def __str__(self) -> str:
        s = self.name
        if self.clock_rate not in (0, 90000):
            s += f"/{self.clock_rate}"
        if self.channels > 0:
            s += f"/{self.channels}"
        return s

    def to_json(self) -> str:
        """Return an FFprobe-like JSON description."""
        info: dict[str, object] = {}
        name = ffmpeg_codec_name(self.name)
        if name:
            info["codec_name"] = name
            info["codec_type"] = self.kind()
        if self.name == CODEC_H264:
            profile, level = decode_h264(self.fmtp_line)
            if profile:
                info["profile"] = profile
                info["level"] = level
        if self.clock_rate not in (0, 90000):
            info["sample_rate"] = self.clock_rate
        if self.channels > 0:
            info["channels"] = self.channels
        return json.dumps(info, sort_keys=True, separators=(",", ":"))

    def is_rtp(self) -> bool:
        return self.payload_type != PAYLOAD_TYPE_RAW

    def is_video(self) -> bool:
        return self.kind() == KIND_VIDEO

    def is_audio(self) -> bool:
        return self.kind() == KIND_AUDIO

    def kind(self) -> str:
        return get_kind(self.name)

    def print_name(self) -> str:
        """Return a short display name."""
        return {CODEC_AAC: "AAC", CODEC_PCM: "S16B", CODEC_PCML: "S16L"}.get(
            self.name, self.name
        )

    def clone(self) -> "Codec":
        return replace(self)

    def match(self, remote: "Codec") -> bool:
        """Tell whether ``remote`` accepts this codec; zero rate or channels match any."""
        if remote.name in (CODEC_ALL, CODEC_ANY):
            return True
        return (
            self.name == remote.name
            and (self.clock_rate == remote.clock_rate or remote.clock_rate == 0)
            and (self.channels == remote.channels or remote.channels == 0)
        )


def unmarshal_codec(md: MediaDescription, payload_type: str) -> Codec:
    """Build the codec of one format of an SDP media section."""
    codec = Codec(payload_type=atoi(payload_type) & 0xFF)

    for attr in md.attributes:
        if not attr.value.startswith(payload_type):
            continue
        if not codec.name and attr.key == "rtpmap":
            parts = attr.value[attr.value.find(" ") + 1:].split("/")
            if len(parts) < 2:
                raise ValueError(f"invalid rtpmap: {attr.value!r}")
            codec.name = parts[0].upper()
            codec.clock_rate = atoi(parts[1].rstrip()) & 0xFFFFFFFF
            if len(parts) == 3 and parts[2] == "2":
                codec.channels = 2
        elif not codec.fmtp_line and attr.key == "fmtp":
            i = attr.value.find(" ")
            if i > 0:
                codec.fmtp_line = attr.value[i + 1:]

    if codec.name == "PCM":
        codec.name = CODEC_PCML
    elif not codec.name:
        if payload_type in _STATIC_PAYLOADS:
            codec.name, codec.clock_rate, codec.channels = _STATIC_PAYLOADS[payload_type]
        elif payload_type in ("96", "97", "98"):
            if not md.bandwidths:
                codec.name = payload_type
            else:
                # PCM from FFmpeg over RTSP carries no codec info; guess by bitrate
                guess = _PCM_BY_BANDWIDTH.get(md.bandwidths[0].bandwidth)
                if guess is not None:
                    codec.clock_rate, codec.channels = guess
                codec.name = CODEC_PCML
        else:
            codec.name = payload_type

    return codec


def decode_h264(fmtp: str) -> tuple[str, int]:
    """Return the H.264 profile name and level from ``sprop-parameter-sets``."""
    ps = between(fmtp, "sprop-parameter-sets=", ",")
    if not ps:
        return "", 0
    try:
        sps = base64.b64decode(ps, validate=True)
    except (binascii.Error, ValueError):
        return "", 0
    if len(sps) < 4:
        return "", 0
    profile = _H264_PROFILES.get(sps[1], f"0x{sps[1]:02X}")
    return profile, sps[3]


def parse_codec_string(s: str) -> Codec | None:
    """Parse ``name[/rate[/channels]]`` for audio codecs; None if the name is unknown."""
    parts = s.split("/")
    name = _CODEC_ALIASES.get(parts[0].lower())
    if name is None:
        return None
    codec = Codec(name=name)
    if len(parts) >= 2:
        codec.clock_rate = atoi(parts[1]) & 0xFFFFFFFF
    if len(parts) >= 3:
        # the channel count is taken from the rate field, as the format has always done
        codec.channels = atoi(parts[1]) & 0xFF
    return codec