"""Core data types for image cells: coordinates, raster payloads, images and cell refs."""

import dataclasses
import math
import numbers
from typing import ClassVar, Dict, List, Optional, Tuple, Union

import numpy as np

from cellimg.errors import ValidationError
from cellimg.ids import IdAllocator, default_allocator

I32_MIN = -(2 ** 31)
I32_MAX = 2 ** 31 - 1
U32_MAX = 2 ** 32 - 1

# Images with a z_index below this are drawn beneath non-default cell backgrounds.
Z_INDEX_BELOW_BACKGROUND = I32_MIN // 2


def _validated_component(name: str, value) -> float:
    if not isinstance(value, numbers.Real):
        raise ValidationError(f"Coordinate {name} is not a number: {value!r}")
    value = float(value)
    if math.isnan(value):
        raise ValidationError(f"Coordinate {name} must not be NaN")
    return float(np.float32(value))


def _check_int(name: str, value, low: int, high: int):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise ValidationError(f"{name}={value} is outside [{low}, {high}]")


@dataclasses.dataclass(frozen=True)
class ValidatedCoordinate:
    """A texture coordinate whose components are never NaN.

    (0, 0) is the top left of an image and (1, 1) the bottom right, though
    the range itself is not enforced. Components are stored with 32-bit
    float precision.
    """
    x: float
    y: float

    def __post_init__(self):
        object.__setattr__(self, "x", _validated_component("x", self.x))
        object.__setattr__(self, "y", _validated_component("y", self.y))


@dataclasses.dataclass(frozen=True, repr=False)
class EncodedFile:
    """Original file bytes whose format has not been decoded."""
    data: bytes

    kind: ClassVar[str] = "encoded_file"

    def __post_init__(self):
        object.__setattr__(self, "data", bytes(self.data))

    def __repr__(self) -> str:
        return f"EncodedFile(data_of_len={len(self.data)})"


@dataclasses.dataclass(frozen=True, repr=False)
class Still:
    """A single RGBA8 raster. len(data) is expected to be width * height * 4."""
    data: bytes
    width: int
    height: int

    kind: ClassVar[str] = "still"

    def __post_init__(self):
        object.__setattr__(self, "data", bytes(self.data))

    def __repr__(self) -> str:
        return f"Still(data_of_len={len(self.data)}, width={self.width}, height={self.height})"

    def as_array(self) -> np.ndarray:
        """Returns a read-only (height, width, 4) uint8 view of the pixels."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)


@dataclasses.dataclass(frozen=True, repr=False)
class Animated:
    """A sequence of RGBA8 frames with per-frame display durations in milliseconds."""
    width: int
    height: int
    durations: Tuple[int, ...]
    frames: Tuple[bytes, ...]

    kind: ClassVar[str] = "animated"

    def __post_init__(self):
        object.__setattr__(self, "durations", tuple(int(d) for d in self.durations))
        object.__setattr__(self, "frames", tuple(bytes(f) for f in self.frames))
        if len(self.durations) != len(self.frames):
            raise ValidationError(
                f"Animated payload has {len(self.frames)} frames but "
                f"{len(self.durations)} durations"
            )

    def __repr__(self) -> str:
        return (
            f"Animated(frames_of_len={len(self.frames)}, width={self.width}, "
            f"height={self.height}, durations={list(self.durations)})"
        )

    def frame_array(self, index: int) -> np.ndarray:
        """Returns a read-only (height, width, 4) uint8 view of one frame."""
        return np.frombuffer(self.frames[index], dtype=np.uint8).reshape(self.height, self.width, 4)


RasterPayload = Union[EncodedFile, Still, Animated]
PAYLOAD_TYPES = (EncodedFile, Still, Animated)


@dataclasses.dataclass(frozen=True)
class ImageObject:
    """An immutable, content-hashed raster payload shared by many cells.

    Use ImageObject.create() so that the id comes from an allocator and the
    hash is computed from the payload exactly once.
    """
    id: int
    hash: bytes
    payload: RasterPayload

    @classmethod
    def create(cls, payload: RasterPayload, allocator: Optional[IdAllocator] = None) -> "ImageObject":
        from cellimg.imaging.hashing import compute_hash

        if not isinstance(payload, PAYLOAD_TYPES):
            raise TypeError(f"Unsupported payload type: {type(payload).__name__}")
        allocator = allocator or default_allocator
        return cls(id=allocator.next_id(), hash=compute_hash(payload), payload=payload)

    @classmethod
    def from_raw_bytes(cls, data: bytes, allocator: Optional[IdAllocator] = None) -> "ImageObject":
        """Wraps undecoded file bytes."""
        return cls.create(EncodedFile(data), allocator)

    @property
    def hash_hex(self) -> str:
        return self.hash.hex()

    def footprint_bytes(self) -> int:
        """Approximate in-memory size of the payload."""
        from cellimg.imaging.hashing import footprint_bytes

        return footprint_bytes(self.payload)


@dataclasses.dataclass(frozen=True)
class CellImageRef:
    """One grid cell's view into a shared image.

    Because an image can span many cells, each cell carries the texture
    coordinates of its own slice, plus the render order and the protocol
    level identifiers of the placement that produced it.
    """
    top_left: ValidatedCoordinate
    bottom_right: ValidatedCoordinate
    image: ImageObject
    z_index: int = 0
    display_offset: Tuple[int, int] = (0, 0)
    image_id: int = 0
    placement_id: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.top_left, ValidatedCoordinate) or not isinstance(self.bottom_right, ValidatedCoordinate):
            raise ValidationError("Cell texture coordinates must be ValidatedCoordinate values")
        if not isinstance(self.image, ImageObject):
            raise ValidationError(f"Cell image must be an ImageObject, got {type(self.image).__name__}")
        _check_int("z_index", self.z_index, I32_MIN, I32_MAX)
        offset = tuple(self.display_offset)
        if len(offset) != 2:
            raise ValidationError(f"display_offset must be an (x, y) pair, got {self.display_offset!r}")
        for value in offset:
            _check_int("display_offset", value, 0, U32_MAX)
        object.__setattr__(self, "display_offset", offset)
        _check_int("image_id", self.image_id, 0, U32_MAX)
        if self.placement_id is not None:
            _check_int("placement_id", self.placement_id, 0, U32_MAX)

    def matches_placement(self, image_id: int, placement_id: Optional[int]) -> bool:
        return self.image_id == image_id and self.placement_id == placement_id

    @property
    def renders_below_text(self) -> bool:
        return self.z_index < 0

    @property
    def renders_below_background(self) -> bool:
        """True when the image is drawn under cells with non-default background colors."""
        return self.z_index < Z_INDEX_BELOW_BACKGROUND


@dataclasses.dataclass
class Snapshot:
    """The image cells of a terminal screen, as persisted to disk."""
    version: int = 1
    cells: List[CellImageRef] = dataclasses.field(default_factory=list)

    def images(self) -> List[ImageObject]:
        """Distinct images referenced by the cells, in first-use order."""
        seen: Dict[int, ImageObject] = {}
        for cell in self.cells:
            seen.setdefault(cell.image.id, cell.image)
        return list(seen.values())
