"""Building blocks for streaming Tuya IP cameras: SDP, codecs, WebRTC helpers, RTP tracks, ports and session storage."""

__version__ = "0.1.0"