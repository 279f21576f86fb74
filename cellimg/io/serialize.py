"""Converts image cell types to and from JSON-compatible dicts."""

import base64
import binascii
from typing import Any, Dict, Mapping, Optional

from cellimg.errors import ValidationError
from cellimg.ids import IdAllocator, default_allocator
from cellimg.imaging.hashing import compute_hash
from cellimg.models import (
    Animated,
    CellImageRef,
    EncodedFile,
    ImageObject,
    RasterPayload,
    Still,
    ValidatedCoordinate,
)


def _require(data: Mapping[str, Any], key: str, what: str) -> Any:
    try:
        return data[key]
    except (KeyError, TypeError) as e:
        raise ValidationError(f"{what} is missing '{key}'") from e


def _encode_bytes(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _decode_bytes(text: Any, what: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, TypeError, ValueError) as e:
        raise ValidationError(f"{what} is not valid base64: {e}") from e


def coordinate_to_dict(coordinate: ValidatedCoordinate) -> Dict[str, float]:
    return {"x": coordinate.x, "y": coordinate.y}


def coordinate_from_dict(data: Mapping[str, Any]) -> ValidatedCoordinate:
    """Rebuilds a coordinate; NaN components raise ValidationError."""
    return ValidatedCoordinate(_require(data, "x", "coordinate"), _require(data, "y", "coordinate"))


def payload_to_dict(payload: RasterPayload) -> Dict[str, Any]:
    if isinstance(payload, EncodedFile):
        return {"kind": EncodedFile.kind, "data": _encode_bytes(payload.data)}
    if isinstance(payload, Still):
        return {
            "kind": Still.kind,
            "width": payload.width,
            "height": payload.height,
            "data": _encode_bytes(payload.data),
        }
    if isinstance(payload, Animated):
        return {
            "kind": Animated.kind,
            "width": payload.width,
            "height": payload.height,
            "durations": list(payload.durations),
            "frames": [_encode_bytes(frame) for frame in payload.frames],
        }
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def payload_from_dict(data: Mapping[str, Any]) -> RasterPayload:
    kind = _require(data, "kind", "payload")
    if kind == EncodedFile.kind:
        return EncodedFile(_decode_bytes(_require(data, "data", "encoded file"), "encoded file data"))
    if kind == Still.kind:
        return Still(
            data=_decode_bytes(_require(data, "data", "still"), "still data"),
            width=int(_require(data, "width", "still")),
            height=int(_require(data, "height", "still")),
        )
    if kind == Animated.kind:
        frames = _require(data, "frames", "animation")
        return Animated(
            width=int(_require(data, "width", "animation")),
            height=int(_require(data, "height", "animation")),
            durations=list(_require(data, "durations", "animation")),
            frames=[_decode_bytes(frame, "animation frame") for frame in frames],
        )
    raise ValidationError(f"Unknown payload kind: {kind!r}")


def image_to_dict(image: ImageObject) -> Dict[str, Any]:
    return {
        "id": image.id,
        "hash": image.hash_hex,
        "payload": payload_to_dict(image.payload),
    }


def image_from_dict(
    data: Mapping[str, Any],
    allocator: Optional[IdAllocator] = None,
    verify: bool = True,
) -> ImageObject:
    """Restores an image with its original id and hash.

    The allocator is advanced past the restored id so that images created
    afterwards still get larger, unused ids. With verify on, a stored hash
    that does not match the payload raises ValidationError.
    """
    payload = payload_from_dict(_require(data, "payload", "image"))
    image_id = _require(data, "id", "image")
    if isinstance(image_id, bool) or not isinstance(image_id, int) or image_id < 0:
        raise ValidationError(f"Image id must be a non-negative integer, got {image_id!r}")
    try:
        digest = bytes.fromhex(_require(data, "hash", "image"))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Image {image_id} has a malformed hash: {e}") from e
    if verify and compute_hash(payload) != digest:
        raise ValidationError(f"Image {image_id} hash does not match its payload")
    (allocator or default_allocator).observe(image_id)
    return ImageObject(id=image_id, hash=digest, payload=payload)


def cell_to_dict(cell: CellImageRef) -> Dict[str, Any]:
    """Serializes a cell; the image is referenced by its ImageObject id."""
    return {
        "top_left": coordinate_to_dict(cell.top_left),
        "bottom_right": coordinate_to_dict(cell.bottom_right),
        "image": cell.image.id,
        "z_index": cell.z_index,
        "display_offset": list(cell.display_offset),
        "image_id": cell.image_id,
        "placement_id": cell.placement_id,
    }


def cell_from_dict(data: Mapping[str, Any], images: Mapping[int, ImageObject]) -> CellImageRef:
    image_key = _require(data, "image", "cell")
    image = images.get(image_key)
    if image is None:
        raise ValidationError(f"Cell references unknown image {image_key!r}")
    return CellImageRef(
        top_left=coordinate_from_dict(_require(data, "top_left", "cell")),
        bottom_right=coordinate_from_dict(_require(data, "bottom_right", "cell")),
        image=image,
        z_index=data.get("z_index", 0),
        display_offset=tuple(data.get("display_offset", (0, 0))),
        image_id=data.get("image_id", 0),
        placement_id=data.get("placement_id"),
    )
