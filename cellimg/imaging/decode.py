"""Normalizes encoded image files into still or animated RGBA8 payloads."""

import logging
from typing import List, Optional

from cellimg.errors import CodecError
from cellimg.imaging.codec import DecodedFrame, RasterCodec, default_codec
from cellimg.models import Animated, EncodedFile, RasterPayload, Still

log = logging.getLogger(__name__)


def normalize(payload: RasterPayload, codec: Optional[RasterCodec] = None) -> RasterPayload:
    """Decodes an EncodedFile into Animated or Still if the format is recognized.

    Anything that cannot be decoded degrades rather than raising: a broken
    animation is retried as a single frame, and a broken still leaves the
    original bytes untouched. Already decoded payloads are returned as is.
    """
    if not isinstance(payload, EncodedFile):
        return payload

    codec = codec or default_codec()
    data = payload.data

    try:
        detected = codec.detect_format(data)
    except CodecError as e:
        log.debug("Format detection failed for %d bytes: %s", len(data), e)
        return payload
    if detected is None:
        log.debug("Unrecognized image data (%d bytes); keeping encoded file", len(data))
        return payload

    if detected.animated:
        try:
            frames = codec.decode_animated(data)
        except CodecError as e:
            log.warning("Unable to parse animated %s: %s, trying as single frame", detected.name, e)
        else:
            if frames:
                return _from_frames(frames)
            log.warning("Animated %s produced no frames, trying as single frame", detected.name)

    return _decode_single(payload, codec, detected.name)


def _from_frames(decoded: List[DecodedFrame]) -> Animated:
    first = decoded[0]
    return Animated(
        width=first.width,
        height=first.height,
        durations=[frame.duration_ms for frame in decoded],
        frames=[frame.data for frame in decoded],
    )


def _decode_single(payload: EncodedFile, codec: RasterCodec, format_name: str) -> RasterPayload:
    try:
        frame = codec.decode_still(payload.data)
    except CodecError as e:
        log.warning("Unable to decode %s image: %s; keeping encoded file", format_name, e)
        return payload
    return Still(data=frame.data, width=frame.width, height=frame.height)
