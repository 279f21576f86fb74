"""Raster codec capability, implemented with Pillow plus an optional PyTurboJPEG fast path."""

import io
import logging
from typing import List, NamedTuple, Optional, Protocol

import numpy as np
from PIL import Image, ImageSequence, UnidentifiedImageError

from cellimg.errors import CodecError

log = logging.getLogger(__name__)

# Attempt to import PyTurboJPEG

try:
    from turbojpeg import TurboJPEG, TJPF_RGBA
except ImportError:
    jpeg_decoder = None
    TURBO_AVAILABLE = False
    log.info("PyTurboJPEG not found. Using Pillow for JPEG decoding.")
else:
    try:
        jpeg_decoder = TurboJPEG()
    except Exception:
        jpeg_decoder = None
        TURBO_AVAILABLE = False
        log.warning("PyTurboJPEG initialization failed. Falling back to Pillow.", exc_info=True)
    else:
        TURBO_AVAILABLE = True
        log.info("PyTurboJPEG is available. Using it for JPEG decoding.")

JPEG_SIGNATURE = b"\xff\xd8\xff"

# Containers that may hold more than one frame.
ANIMATED_FORMATS = {"GIF", "PNG", "WEBP"}


class DetectedFormat(NamedTuple):
    name: str
    animated: bool


class DecodedFrame(NamedTuple):
    """One RGBA8 raster as produced by a codec."""
    data: bytes
    width: int
    height: int
    duration_ms: int = 0


class RasterCodec(Protocol):
    """What the decode pipeline needs from an image library.

    Implementations report failures by raising CodecError.
    """

    def detect_format(self, data: bytes) -> Optional[DetectedFormat]:
        """Identifies the container, or returns None if it is not an image."""
        ...

    def decode_still(self, data: bytes) -> DecodedFrame:
        ...

    def decode_animated(self, data: bytes) -> List[DecodedFrame]:
        ...


def _frame_from_array(rgba: np.ndarray, duration_ms: int = 0) -> DecodedFrame:
    height, width = rgba.shape[:2]
    return DecodedFrame(
        data=np.ascontiguousarray(rgba, dtype=np.uint8).tobytes(),
        width=width,
        height=height,
        duration_ms=duration_ms,
    )


class PillowCodec:
    """RasterCodec backed by Pillow."""

    def detect_format(self, data: bytes) -> Optional[DetectedFormat]:
        try:
            with Image.open(io.BytesIO(data)) as img:
                name = img.format
                try:
                    animated = getattr(img, "n_frames", 1) > 1
                except Exception as e:  # noqa: BLE001 - frame counting walks the whole stream
                    log.debug("Could not count frames of %s data: %s", name, e)
                    animated = name in ANIMATED_FORMATS
        except UnidentifiedImageError:
            return None
        except Exception as e:
            raise CodecError(f"Unable to identify image data: {e}") from e
        if not name:
            return None
        return DetectedFormat(name=name, animated=animated)

    def decode_still(self, data: bytes) -> DecodedFrame:
        if TURBO_AVAILABLE and jpeg_decoder and data.startswith(JPEG_SIGNATURE):
            try:
                return _frame_from_array(jpeg_decoder.decode(data, pixel_format=TJPF_RGBA, flags=0))
            except Exception as e:
                log.warning("PyTurboJPEG failed to decode image: %s. Trying Pillow.", e)
                # Fall through to Pillow

        try:
            with Image.open(io.BytesIO(data)) as img:
                rgba = np.asarray(img.convert("RGBA"), dtype=np.uint8)
        except Exception as e:
            raise CodecError(f"Unable to decode still image: {e}") from e
        return _frame_from_array(rgba)

    def decode_animated(self, data: bytes) -> List[DecodedFrame]:
        frames: List[DecodedFrame] = []
        try:
            with Image.open(io.BytesIO(data)) as img:
                for frame in ImageSequence.Iterator(img):
                    rgba = np.asarray(frame.convert("RGBA"), dtype=np.uint8)
                    duration = int(round(frame.info.get("duration") or 0))
                    frames.append(_frame_from_array(rgba, duration))
        except Exception as e:
            raise CodecError(f"Unable to decode animation frame {len(frames)}: {e}") from e
        if not frames:
            raise CodecError("Animation contains no frames")
        return frames


_default_codec: Optional[PillowCodec] = None


def default_codec() -> PillowCodec:
    """Returns the shared Pillow codec instance."""
    global _default_codec
    if _default_codec is None:
        _default_codec = PillowCodec()
    return _default_codec
