# tuyaipc

Building blocks for streaming Tuya IP cameras: a small SDP model, codec and
media negotiation, WebRTC candidate and STUN helpers, RTP header rewriting for
outgoing tracks, UDP port allocation, and on-disk storage of user sessions and
the camera registry.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `tuyaipc.util`: `before`, `between`, `atoi` (returns 0 for text that is not
  an integer), `rand_string(size, base)` and `now_90000()`, a 32-bit timestamp
  at a 90 kHz clock.
- `tuyaipc.waiter`: `Waiter`, a latch that starts on the first `wait()` and
  finishes on the last `done(err)`; `wait()` raises the stored error, and
  `wait_future()` returns a `concurrent.futures.Future` (or `None` once finished).
- `tuyaipc.xnet`: `parse_unspecified_port` (`":8555"` or `"0.0.0.0:8555"` give
  8555, a specific host gives 0), `is_docker_ip` (172.16.0.0/12) and `ip_nets`,
  which lists IPv4 networks of interfaces that are up and not loopback.
- `tuyaipc.ports`: `PortAllocator` with `get_single_udp_port`,
  `get_udp_port_in_range` and `get_consecutive_udp_ports`, the last returning a
  `UDPPortPair` (an even RTP port and the RTCP port after it, usable as a context
  manager). Failures raise `PortAllocationError`. `DEFAULT_PORT_ALLOCATOR` is a
  shared instance.
- `tuyaipc.sdp`: `SessionDescription`, `MediaDescription`, `Attribute` and
  `Bandwidth`; `parse_session` reads SDP text (raising `ValueError` on malformed
  input) and `SessionDescription.marshal` writes it with CRLF line endings.
- `tuyaipc.codec`: `Codec` (match rules, FFprobe-like `to_json`), `Mode`,
  `get_kind`, `ffmpeg_codec_name`, `unmarshal_codec`, `decode_h264` and
  `parse_codec_string`, plus the codec name constants.
- `tuyaipc.media`: `Media` (`match_media`, `match_codec`, `match_all`, `equal`,
  `clone`, `to_json`), `marshal_sdp`, `unmarshal_media` and `parse_query`.
- `tuyaipc.rtc`: `unmarshal_medias`, `skip_non_media_codecs`, `with_resampling`,
  `candidate_ice`, `candidate_host_priority`, `is_ip`, `lookup_ip`,
  `get_public_ip` and `get_cached_public_ip` (a STUN binding request, cached for
  five minutes), `mime_type`, `unmarshal_ice_servers` (returning `ICEServer`
  objects) and `fake_formats_in_answer`.
- `tuyaipc.track`: `Track`, `RTPHeader` and `RTPPacket`. A bound track rewrites
  the SSRC, payload type and sequence number of each packet before passing it
  to its writer; `write_rtp` returns `False` when the track is not bound.
- `tuyaipc.session`: `Region`, `Cookie` and `SessionData`, with `to_dict` and
  `from_dict` for their JSON form.
- `tuyaipc.streams`: `VideoOption`, `get_stream_type` (`"hd"` picks the largest
  picture, `"sd"` the smallest, anything else stream type 1) and `is_hevc`.
- `tuyaipc.storage`: `StorageManager`, `UserSession`, `CameraInfo`,
  `CameraRegistry` and `user_key`. Files are kept under `.tuya-data` in the
  working directory, or in a given base directory, with owner-only permissions.
  A stored session is valid for four days after it was saved.

## Examples

```python
from tuyaipc.sdp import parse_session
from tuyaipc.media import unmarshal_media

answer_text = (
    "v=0\r\n"
    "o=- 1 1 IN IP4 0.0.0.0\r\n"
    "s=-\r\n"
    "t=0 0\r\n"
    "m=video 9 UDP/TLS/RTP/SAVPF 96\r\n"
    "a=rtpmap:96 H264/90000\r\n"
    "a=sendonly\r\n"
)
for md in parse_session(answer_text).media_descriptions:
    print(unmarshal_media(md))  # video, sendonly, H264
```

```python
from tuyaipc.storage import CameraInfo, StorageManager, user_key

storage = StorageManager()
key = user_key("eu", "someone@example.com")
storage.update_cameras_for_user(key, [
    CameraInfo(user_key=key, device_id="device-0001", device_name="Front Door",
               rtsp_path=storage.generate_rtsp_path("Front Door", "device-0001")),
])
for camera in storage.get_cameras_for_user(key):
    print(camera.rtsp_path, camera.device_name)  # /Front_Door Front Door
```

## What this package does not do

There is no command to run. The package does not log in to the cloud service,
does not hold an MQTT signalling connection to cameras, does not set up a WebRTC
peer connection and does not serve RTSP. It provides the pieces those parts
would build on: SDP and codec handling, candidate and STUN helpers, RTP header
rewriting, port allocation and the stored sessions and camera registry.