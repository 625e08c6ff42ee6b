"""Local media track that rewrites RTP headers for one outgoing stream."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Callable

STREAM_ID = "tuyaipc"


@dataclass
class RTPHeader:
    """Fixed RTP header fields."""

    version: int = 2
    padding: bool = False
    extension: bool = False
    marker: bool = False
    payload_type: int = 0
    sequence_number: int = 0
    timestamp: int = 0
    ssrc: int = 0
    csrc: list[int] = field(default_factory=list)


@dataclass
class RTPPacket:
    """An RTP header with its payload."""

    header: RTPHeader = field(default_factory=RTPHeader)
    payload: bytes = b""


RTPWriter = Callable[[RTPHeader, bytes], object]


class Track:
    """Outgoing track with its own SSRC and sequence counter.

    Packets written before ``bind`` or after ``unbind`` are dropped.
    """

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.id = f"{STREAM_ID}-{kind}"
        self.stream_id = STREAM_ID
        self.rid = ""
        self._sequence = 0
        self._ssrc = 0
        self._writer: RTPWriter | None = None
        self._lock = threading.Lock()

    @property
    def ssrc(self) -> int:
        return self._ssrc

    @property
    def bound(self) -> bool:
        return self._writer is not None

    def bind(self, ssrc: int, writer: RTPWriter) -> None:
        """Attach the track to a stream with the given SSRC and writer."""
        with self._lock:
            self._ssrc = ssrc & 0xFFFFFFFF
            self._writer = writer

    def unbind(self) -> None:
        """Detach the writer; later packets are dropped."""
        with self._lock:
            self._writer = None

    def write_rtp(self, payload_type: int, packet: RTPPacket) -> bool:
        """Send a packet with this track's SSRC, sequence and payload type.

        Returns False when the track is not bound and nothing was sent.
        """
        with self._lock:
            if self._writer is None:
                return False
            # own counter, since packets may come from different sources
            self._sequence = (self._sequence + 1) & 0xFFFF
            header = replace(
                packet.header,
                ssrc=self._ssrc,
                payload_type=payload_type,
                sequence_number=self._sequence,
                csrc=list(packet.header.csrc),
            )
            self._writer(header, packet.payload)
            return True