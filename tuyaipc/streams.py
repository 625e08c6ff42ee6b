"""Choice of a camera stream by resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

DEFAULT_STREAM_TYPE = 1
CODEC_TYPE_HEVC = 4


@dataclass
class VideoOption:
    """One video stream a camera offers."""

    stream_type: int
    width: int = 0
    height: int = 0
    codec_type: int = 0


def get_stream_type(videos: Iterable[VideoOption] | None, stream_resolution: str) -> int:
    """Return the stream type for "hd" (largest picture) or "sd" (smallest).

    Any other resolution, or no videos, gives the default stream type.
    """
    highest_type = lowest_type = DEFAULT_STREAM_TYPE
    highest_res = lowest_res = 0
    found = False

    for video in videos or ():
        found = True
        res = video.width * video.height
        if res > highest_res:
            highest_res = res
            highest_type = video.stream_type
        if lowest_res == 0 or res < lowest_res:
            lowest_res = res
            lowest_type = video.stream_type

    if not found:
        return DEFAULT_STREAM_TYPE
    if stream_resolution == "hd":
        return highest_type
    if stream_resolution == "sd":
        return lowest_type
    return DEFAULT_STREAM_TYPE


def is_hevc(videos: Iterable[VideoOption], stream_type: int) -> bool:
    """Tell whether the first video of ``stream_type`` is coded as HEVC."""
    for video in videos:
        if video.stream_type == stream_type:
            return video.codec_type == CODEC_TYPE_HEVC
    return False