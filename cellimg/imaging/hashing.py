"""Content digests and memory footprints for raster payloads."""

import hashlib

from cellimg.errors import EmptyAnimationError
from cellimg.models import Animated, EncodedFile, RasterPayload, Still


def compute_hash(payload: RasterPayload) -> bytes:
    """Returns the SHA-256 digest of the payload's bytes.

    Only raw bytes contribute: width, height and frame durations do not, so
    identical pixels declared with different geometry hash equal.
    """
    hasher = hashlib.sha256()
    if isinstance(payload, (EncodedFile, Still)):
        hasher.update(payload.data)
    elif isinstance(payload, Animated):
        for frame in payload.frames:
            hasher.update(frame)
    else:
        raise TypeError(f"Unsupported payload type: {type(payload).__name__}")
    return hasher.digest()


def footprint_bytes(payload: RasterPayload) -> int:
    """Approximate in-memory size of a payload in bytes.

    Animations are estimated as frame count times the size of the first
    frame, which is exact only when every frame has the same length.
    """
    if isinstance(payload, (EncodedFile, Still)):
        return len(payload.data)
    if isinstance(payload, Animated):
        if not payload.frames:
            raise EmptyAnimationError("Cannot size an animation with no frames")
        return len(payload.frames) * len(payload.frames[0])
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")
