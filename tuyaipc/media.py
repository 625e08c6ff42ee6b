"""Media sections: kind, direction and the codecs they carry."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping

from tuyaipc import codec as c
from tuyaipc.codec import Codec, unmarshal_codec
from tuyaipc.sdp import MediaDescription, SessionDescription

_QUERY_ALIASES = {"": c.CODEC_ANY, "COPY": c.CODEC_ANY, "MJPEG": c.CODEC_JPEG, "AAC": c.CODEC_AAC, "MP3": c.CODEC_MP3}
_SDP_NAMES = {c.CODEC_ELD: c.CODEC_AAC, c.CODEC_PCML: c.CODEC_PCM}
_DIRECTIONS = (c.DIRECTION_SENDONLY, c.DIRECTION_RECVONLY, c.DIRECTION_SENDRECV)


@dataclass
class Media:
    """A media of a stream: kind, direction, codecs and an id (MID or control)."""

    kind: str = ""
    direction: str = ""
    codecs: list[Codec] = field(default_factory=list)
    id: str = ""

    def __str__(self) -> str:
        s = f"{self.kind}, {self.direction}"
        for codec in self.codecs:
            name = str(codec)
            if name not in s:
                s += ", " + name
        return s

    def to_json(self) -> str:
        """Return the description as a JSON string."""
        return json.dumps(str(self))

    def clone(self) -> "Media":
        return replace(self, codecs=[codec.clone() for codec in self.codecs])

    def match_media(self, remote: "Media") -> tuple[Codec | None, Codec | None]:
        """Return the first matching local and remote codecs, or (None, None)."""
        if (
            self.kind != remote.kind
            or (self.direction == c.DIRECTION_SENDONLY and remote.direction != c.DIRECTION_RECVONLY)
            or (self.direction == c.DIRECTION_RECVONLY and remote.direction != c.DIRECTION_SENDONLY)
        ):
            return None, None
        pairs = ((own, other) for own in self.codecs for other in remote.codecs if own.match(other))
        return next(pairs, (None, None))

    def match_codec(self, remote: Codec) -> Codec | None:
        """Return the first own codec that ``remote`` accepts."""
        return next((codec for codec in self.codecs if codec.match(remote)), None)

    def match_all(self) -> bool:
        """Tell whether the media accepts every codec."""
        return any(codec.name == c.CODEC_ALL for codec in self.codecs)

    def equal(self, media: "Media") -> bool:
        """Compare by id when the other media has one, else by description."""
        return self.id == media.id if media.id else str(self) == str(media)


def marshal_sdp(name: str, medias: Iterable[Media]) -> str:
    """Build an SDP document that offers the first codec of each media."""
    sd = SessionDescription(origin="- 1 1 IN IP4 0.0.0.0", session_name=name, connection="IN IP4 0.0.0.0")
    for media in medias:
        if not media.codecs:
            continue
        codec = media.codecs[0]
        md = MediaDescription(media=media.kind, protos=["RTP", "AVP"])
        md.with_codec(
            codec.payload_type,
            _SDP_NAMES.get(codec.name, codec.name),
            codec.clock_rate,
            codec.channels,
            codec.fmtp_line,
        )
        if media.direction:
            md.with_property_attribute(media.direction)
        if media.id:
            md.with_value_attribute("control", media.id)
        sd.media_descriptions.append(md)
    return sd.marshal()


def unmarshal_media(md: MediaDescription) -> Media:
    """Build a media from an SDP media section."""
    media = Media(kind=md.media)
    for attr in md.attributes:
        if attr.key in _DIRECTIONS:
            media.direction = attr.key
        elif attr.key in ("control", "mid"):
            media.id = attr.value
    media.codecs = [unmarshal_codec(md, fmt) for fmt in md.formats]
    return media


def parse_query(query: Mapping[str, Iterable[str]]) -> list[Media]:
    """Build sendonly media candidates from ``video``/``audio`` query values."""
    return [
        Media(
            kind=key,
            direction=c.DIRECTION_SENDONLY,
            codecs=[Codec(name=_QUERY_ALIASES.get(n.upper(), n.upper())) for n in value.split(",")],
        )
        for key, values in query.items()
        if key in (c.KIND_VIDEO, c.KIND_AUDIO)
        for value in values
    ]