"""Session Description Protocol model with a parser and serializer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

# Canonical order of session-level lines between "s=" and "a=".
_SESSION_ORDER = "iuepcbtrzk"


def _uint(text: str, what: str) -> int:
    if not text.isdigit():
        raise ValueError(f"invalid {what}: {text!r}")
    return int(text)


@dataclass
class Attribute:
    """An ``a=`` line: a property (key only) or a key with a value."""

    key: str
    value: str = ""

    def __str__(self) -> str:
        return f"{self.key}:{self.value}" if self.value else self.key


@dataclass
class Bandwidth:
    """A ``b=`` line such as ``AS:128``."""

    type: str
    bandwidth: int

    def __str__(self) -> str:
        return f"{self.type}:{self.bandwidth}"

    @classmethod
    def parse(cls, text: str) -> "Bandwidth":
        kind, _, value = text.partition(":")
        return cls(kind, _uint(value, "bandwidth"))


@dataclass
class MediaDescription:
    """One ``m=`` section and the lines that belong to it."""

    media: str
    port: int = 0
    port_range: int | None = None
    protos: list[str] = field(default_factory=list)
    formats: list[str] = field(default_factory=list)
    title: str | None = None
    connection: str | None = None
    bandwidths: list[Bandwidth] = field(default_factory=list)
    encryption_key: str | None = None
    attributes: list[Attribute] = field(default_factory=list)

    def attribute(self, key: str) -> str | None:
        """Return the value of the first attribute named ``key``, or None if absent."""
        return next((attr.value for attr in self.attributes if attr.key == key), None)

    def with_codec(
        self, payload_type: int, name: str, clock_rate: int, channels: int, fmtp: str
    ) -> "MediaDescription":
        """Add a format with its rtpmap and, if given, fmtp attributes."""
        self.formats.append(str(payload_type))
        suffix = f"/{channels}" if channels > 0 else ""
        self.with_value_attribute("rtpmap", f"{payload_type} {name}/{clock_rate}{suffix}")
        if fmtp:
            self.with_value_attribute("fmtp", f"{payload_type} {fmtp}")
        return self

    def with_property_attribute(self, key: str) -> "MediaDescription":
        """Add a key-only attribute such as ``recvonly``."""
        self.attributes.append(Attribute(key))
        return self

    def with_value_attribute(self, key: str, value: str) -> "MediaDescription":
        """Add a ``key:value`` attribute."""
        self.attributes.append(Attribute(key, value))
        return self

    def _lines(self) -> Iterator[str]:
        port = str(self.port) if self.port_range is None else f"{self.port}/{self.port_range}"
        yield "m=" + " ".join([self.media, port, "/".join(self.protos), *self.formats])
        for key, value in (("i", self.title), ("c", self.connection)):
            if value is not None:
                yield f"{key}={value}"
        yield from (f"b={bandwidth}" for bandwidth in self.bandwidths)
        if self.encryption_key is not None:
            yield f"k={self.encryption_key}"
        yield from (f"a={attr}" for attr in self.attributes)


@dataclass
class SessionDescription:
    """A whole SDP document; ``extra`` holds the session lines other than v, o, s, c and a."""

    version: int = 0
    origin: str = "- 0 0 IN IP4 0.0.0.0"
    session_name: str = "-"
    connection: str | None = None
    extra: list[tuple[str, str]] = field(default_factory=lambda: [("t", "0 0")])
    attributes: list[Attribute] = field(default_factory=list)
    media_descriptions: list[MediaDescription] = field(default_factory=list)

    def marshal(self) -> str:
        """Serialize to SDP text with CRLF line endings."""
        middle = self.extra + ([("c", self.connection)] if self.connection is not None else [])
        middle.sort(key=lambda line: _SESSION_ORDER.index(line[0]))
        lines = [f"v={self.version}", f"o={self.origin}", f"s={self.session_name}"]
        lines += [f"{key}={value}" for key, value in middle]
        lines += [f"a={attr}" for attr in self.attributes]
        for media in self.media_descriptions:
            lines += media._lines()
        return "".join(f"{line}\r\n" for line in lines)


def _parse_media_name(value: str) -> MediaDescription:
    fields = value.split()
    if len(fields) < 3:
        raise ValueError(f"invalid media line: {value!r}")
    port, _, port_range = fields[1].partition("/")
    return MediaDescription(
        media=fields[0],
        port=_uint(port, "media port"),
        port_range=_uint(port_range, "media port") if port_range else None,
        protos=fields[2].split("/"),
        formats=fields[3:],
    )


_MEDIA_FIELDS = {"i": "title", "c": "connection", "k": "encryption_key"}
_SESSION_FIELDS = {"o": "origin", "s": "session_name", "c": "connection"}


def parse_session(text: str | bytes) -> SessionDescription:
    """Parse SDP text; raise ValueError on malformed input."""
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    sd = SessionDescription(origin="", session_name="", extra=[])
    media: MediaDescription | None = None
    for raw in text.split("\n"):
        line = raw.rstrip("\r")
        if not line:
            continue
        if len(line) < 2 or line[1] != "=":
            raise ValueError(f"invalid SDP line: {line!r}")
        key, value = line[0], line[2:]
        if key == "m":
            media = _parse_media_name(value)
            sd.media_descriptions.append(media)
        elif key == "a":
            name, _, attr_value = value.partition(":")
            (media or sd).attributes.append(Attribute(name, attr_value))
        elif media is not None:
            if key == "b":
                media.bandwidths.append(Bandwidth.parse(value))
            elif key in _MEDIA_FIELDS:
                setattr(media, _MEDIA_FIELDS[key], value)
            else:
                raise ValueError(f"unexpected media line type: {key!r}")
        elif key == "v":
            sd.version = _uint(value, "version")
        elif key in _SESSION_FIELDS:
            setattr(sd, _SESSION_FIELDS[key], value)
        elif key in _SESSION_ORDER:
            if key == "b":
                Bandwidth.parse(value)
            sd.extra.append((key, value))
        else:
            raise ValueError(f"unexpected session line type: {key!r}")
    return sd