"""WebRTC helpers: remote media lists, ICE candidates, STUN lookups and answer fixes."""

from __future__ import annotations

import ipaddress
import json
import secrets
import socket
import struct
import threading
import zlib
from dataclasses import dataclass, field
from time import monotonic
from typing import Iterable

from tuyaipc.codec import (
    CODEC_AV1,
    CODEC_G722,
    CODEC_H264,
    CODEC_H265,
    CODEC_OPUS,
    CODEC_PCM,
    CODEC_PCMA,
    CODEC_PCML,
    CODEC_PCMU,
    CODEC_VP8,
    CODEC_VP9,
    DIRECTION_RECVONLY,
    DIRECTION_SENDONLY,
    DIRECTION_SENDRECV,
    KIND_AUDIO,
    KIND_VIDEO,
    Codec,
)
from tuyaipc.media import Media, unmarshal_media
from tuyaipc.sdp import parse_session

# Ethernet MTU (1500) minus IP header (20) minus UDP header (8)
RECEIVE_MTU = 1472

MIME_TYPE_H264 = "video/H264"
MIME_TYPE_H265 = "video/H265"
MIME_TYPE_VP8 = "video/VP8"
MIME_TYPE_VP9 = "video/VP9"
MIME_TYPE_AV1 = "video/AV1"
MIME_TYPE_PCMU = "audio/PCMU"
MIME_TYPE_PCMA = "audio/PCMA"
MIME_TYPE_OPUS = "audio/opus"
MIME_TYPE_G722 = "audio/G722"

_MIME_TYPES = {
    CODEC_H264: MIME_TYPE_H264,
    CODEC_H265: MIME_TYPE_H265,
    CODEC_VP8: MIME_TYPE_VP8,
    CODEC_VP9: MIME_TYPE_VP9,
    CODEC_AV1: MIME_TYPE_AV1,
    CODEC_PCMU: MIME_TYPE_PCMU,
    CODEC_PCMA: MIME_TYPE_PCMA,
    CODEC_OPUS: MIME_TYPE_OPUS,
    CODEC_G722: MIME_TYPE_G722,
}

# Priority = type << 24 + local << 8 + component (RFC 8445, 5.1.2.1)
PRIORITY_HOST_UDP = 0x001FFFFF | 126 << 24 | 7 << 21
PRIORITY_HOST_TCP_PASSIVE = 0x001FFFFF | 99 << 24 | 4 << 21

_NON_MEDIA_CODECS = frozenset(
    {"RTX", "RED", "ULPFEC", "FLEXFEC-03", "CN", "TELEPHONE-EVENT"}
)
_RTP_ATTRIBUTE_KEYS = frozenset({"rtpmap", "fmtp", "rtcp-fb", "extmap"})

STUN_SERVER = ("stun.l.google.com", 19302)
_STUN_TIMEOUT = 3.0
_STUN_MAGIC_COOKIE = 0x2112A442
_STUN_BINDING_REQUEST = 0x0001
_STUN_BINDING_SUCCESS = 0x0101
_STUN_BINDING_ERROR = 0x0111
_STUN_XOR_MAPPED_ADDRESS = 0x0020
_PUBLIC_IP_TTL = 300.0


class StunError(OSError):
    """Raised when a STUN server gives no usable answer."""


@dataclass
class ICEServer:
    """An ICE (STUN or TURN) server and its credentials."""

    urls: list[str] = field(default_factory=list)
    username: str = ""
    credential: str = ""


def unmarshal_medias(descriptions) -> list[Media]:
    """Turn the remote peer's media sections into local medias.

    Video comes before audio, sections without a direction are dropped and
    directions are inverted; sendrecv yields a recvonly and a sendonly media.
    """
    medias: list[Media] = []
    for kind in (KIND_VIDEO, KIND_AUDIO):
        for md in descriptions:
            if md.media != kind:
                continue
            media = unmarshal_media(md)
            if media.direction == DIRECTION_SENDRECV:
                media.direction = DIRECTION_RECVONLY
                medias.append(media)
                media = media.clone()
                media.direction = DIRECTION_SENDONLY
            elif media.direction == DIRECTION_RECVONLY:
                media.direction = DIRECTION_SENDONLY
            elif media.direction == DIRECTION_SENDONLY:
                media.direction = DIRECTION_RECVONLY
            elif media.direction == "":
                continue
            media.codecs = skip_non_media_codecs(media.codecs)
            medias.append(media)
    return medias


def skip_non_media_codecs(codecs: Iterable[Codec]) -> list[Codec]:
    """Drop retransmission, FEC, comfort-noise and DTMF codecs."""
    return [codec for codec in codecs if codec.name not in _NON_MEDIA_CODECS]


def with_resampling(medias: list[Media]) -> list[Media]:
    """Add rate-agnostic PCMA/PCMU and PCM/PCML codecs to sendonly audio medias."""
    for media in medias:
        if media.kind != KIND_AUDIO or media.direction != DIRECTION_SENDONLY:
            continue

        pcma = pcmu = pcm = pcml = None
        for codec in media.codecs:
            if codec.name == CODEC_PCMA:
                pcma = codec if codec.clock_rate != 0 else None
            elif codec.name == CODEC_PCMU:
                pcmu = codec if codec.clock_rate != 0 else None
            elif codec.name == CODEC_PCM:
                pcm = codec
            elif codec.name == CODEC_PCML:
                pcml = codec

        if pcma is not None:
            pcma = pcma.clone()
            pcma.clock_rate = 0  # matches any rate
            media.codecs.append(pcma)
        if pcmu is not None:
            pcmu = pcmu.clone()
            pcmu.clock_rate = 0
            media.codecs.append(pcmu)
        if pcma is not None and pcm is None:
            pcm = pcma.clone()
            pcm.name = CODEC_PCM
            media.codecs.append(pcm)
        if pcma is not None and pcml is None:
            pcml = pcma.clone()
            pcml.name = CODEC_PCML
            media.codecs.append(pcml)

    return medias


def candidate_ice(network: str, host: str, port, priority: int) -> str:
    """Build a host ICE candidate line for RTP component 1."""
    foundation = zlib.crc32(f"host{host}{network}4".encode())
    line = f"candidate:{foundation} 1 {network} {priority} {host} {port} typ host"
    if network == "tcp":
        return line + " tcptype passive"
    return line


def candidate_host_priority(network: str, index: int) -> int:
    """Return a host candidate priority; lower indexes get higher priority."""
    if network == "udp":
        return (PRIORITY_HOST_UDP - index) & 0xFFFFFFFF
    if network == "tcp":
        return (PRIORITY_HOST_TCP_PASSIVE - index) & 0xFFFFFFFF
    return 0


def is_ip(host: str) -> bool:
    """Tell whether the text holds no letters, and so is taken as an IP address."""
    return all(ch < "A" for ch in host)


def lookup_ip(address: str) -> str:
    """Resolve the host part of ``host:port``; ``stun:port`` uses the public IP."""
    if address.startswith("stun:"):
        return f"{get_cached_public_ip()}{address[4:]}"
    if is_ip(address):
        return address
    i = address.find(":")
    if i < 0:
        raise ValueError(f"missing port in address: {address}")
    infos = socket.getaddrinfo(address[:i], None)
    if not infos:
        raise OSError(f"can't resolve: {address}")
    return f"{infos[0][4][0]}{address[i:]}"


def _decode_xor_address(value: bytes, txid: bytes) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    if len(value) < 8:
        raise StunError("truncated XOR-MAPPED-ADDRESS")
    family = value[1]
    size = {1: 4, 2: 16}.get(family)
    if size is None or len(value) < 4 + size:
        raise StunError(f"bad XOR-MAPPED-ADDRESS family {family}")
    key = struct.pack("!I", _STUN_MAGIC_COOKIE) + txid
    raw = bytes(a ^ b for a, b in zip(value[4:4 + size], key))
    return ipaddress.ip_address(raw)


def _parse_binding_response(data: bytes, txid: bytes):
    if len(data) < 20:
        raise StunError("truncated STUN message")
    msg_type, length, cookie = struct.unpack_from("!HHI", data)
    if cookie != _STUN_MAGIC_COOKIE:
        raise StunError("invalid STUN magic cookie")
    if msg_type == _STUN_BINDING_ERROR:
        raise StunError("STUN binding error response")
    if msg_type != _STUN_BINDING_SUCCESS:
        raise StunError(f"unexpected STUN message type 0x{msg_type:04x}")
    body = data[20:20 + length]
    offset = 0
    while offset + 4 <= len(body):
        attr_type, attr_len = struct.unpack_from("!HH", body, offset)
        value = body[offset + 4:offset + 4 + attr_len]
        if attr_type == _STUN_XOR_MAPPED_ADDRESS:
            return _decode_xor_address(value, txid)
        offset += 4 + (attr_len + 3) // 4 * 4
    raise StunError("no XOR-MAPPED-ADDRESS in STUN response")


def get_public_ip():
    """Ask the STUN server for this host's public address."""
    txid = secrets.token_bytes(12)
    request = struct.pack("!HHI", _STUN_BINDING_REQUEST, 0, _STUN_MAGIC_COOKIE) + txid
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.settimeout(_STUN_TIMEOUT)
        sock.connect(STUN_SERVER)
        sock.send(request)
        while True:
            response = sock.recv(2048)
            if len(response) >= 20 and response[8:20] == txid:
                break
    return _parse_binding_response(response, txid)


class _PublicIPCache:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ip = None
        self._expires = float("-inf")

    def get(self):
        with self._lock:
            now = monotonic()
            if now > self._expires:
                try:
                    ip = get_public_ip()
                except OSError:
                    if self._ip is None:
                        raise
                else:
                    self._ip = ip
                    self._expires = now + _PUBLIC_IP_TTL
            return self._ip


_public_ip_cache = _PublicIPCache()


def get_cached_public_ip():
    """Return the public IP, asking again at most every five minutes.

    When a refresh fails the last known address is returned.
    """
    return _public_ip_cache.get()


def mime_type(codec: Codec) -> str:
    """Return the WebRTC MIME type of a codec; raise ValueError if it has none."""
    try:
        return _MIME_TYPES[codec.name]
    except KeyError:
        raise ValueError(f"no WebRTC MIME type for codec {codec.name!r}") from None


def _optional_str(item: dict, key: str) -> str:
    value = item.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"ICE server {key} must be a string")
    return value


def unmarshal_ice_servers(data: str | bytes) -> list[ICEServer]:
    """Parse a JSON list of ICE servers whose ``urls`` is a string or a list."""
    src = json.loads(data)
    if src is None:
        return []
    if not isinstance(src, list):
        raise ValueError("ICE servers must be a JSON array")
    servers = []
    for item in src:
        if item is None:
            item = {}
        if not isinstance(item, dict):
            raise ValueError("ICE server must be a JSON object")
        urls = item.get("urls")
        if isinstance(urls, str):
            url_list = [urls]
        elif isinstance(urls, list) and all(isinstance(url, str) for url in urls):
            url_list = list(urls)
        else:
            url_list = []
        servers.append(
            ICEServer(
                urls=url_list,
                username=_optional_str(item, "username"),
                credential=_optional_str(item, "credential"),
            )
        )
    return servers


def fake_formats_in_answer(offer: str, answer: str) -> str:
    """Copy all audio formats of the offer into a recvonly audio answer.

    Some stacks read formats only from the first media of each kind, so the
    first audio section of the answer gets the offer's formats and RTP
    attributes. The answer is returned unchanged when this does not apply.
    """
    try:
        sd2 = parse_session(answer)
    except ValueError:
        return answer

    ok = False
    for md2 in sd2.media_descriptions:
        if md2.media == KIND_AUDIO:
            ok = md2.attribute(DIRECTION_RECVONLY) is not None
            if ok:
                break
    if not ok:
        return answer

    try:
        sd1 = parse_session(offer)
    except ValueError:
        return answer

    formats: list[str] = []
    attrs = []
    md1 = next((md for md in sd1.media_descriptions if md.media == KIND_AUDIO), None)
    if md1 is not None:
        attrs = [attr for attr in md1.attributes if attr.key in _RTP_ATTRIBUTE_KEYS]
        formats = list(md1.formats)

    md2 = next(md for md in sd2.media_descriptions if md.media == KIND_AUDIO)
    attrs += [attr for attr in md2.attributes if attr.key not in _RTP_ATTRIBUTE_KEYS]
    md2.formats = formats
    md2.attributes = attrs

    return sd2.marshal()