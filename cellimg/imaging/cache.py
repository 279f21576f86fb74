"""Byte-aware LRU cache and the content-addressed image store built on it."""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from cachetools import LRUCache

from cellimg.ids import IdAllocator, default_allocator
from cellimg.imaging.hashing import compute_hash
from cellimg.models import ImageObject, RasterPayload

log = logging.getLogger(__name__)


class ByteLRUCache(LRUCache):
    """An LRU Cache that respects the size of its items in bytes."""

    def __init__(
        self,
        max_bytes: int,
        size_of: Callable[[Any], int] = len,
        on_evict: Optional[Callable[[Any, Any], None]] = None,
    ):
        super().__init__(maxsize=max_bytes, getsizeof=size_of)
        self.on_evict = on_evict
        self.hits = 0
        self.misses = 0
        log.info(
            f"Initialized byte-aware LRU cache with {max_bytes / 1024**2:.2f} MB capacity."
        )

    def __setitem__(self, key, value):
        # The parent class calls popitem until the new value fits
        super().__setitem__(key, value)
        log.debug(
            f"Cached item '{key}'. Cache size: {self.currsize / 1024**2:.2f} MB"
        )

    def popitem(self):
        """Extend popitem to log eviction."""
        key, value = super().popitem()
        log.debug(
            f"Evicted item '{key}' to free up space. Cache size: {self.currsize / 1024**2:.2f} MB"
        )

        if self.on_evict:
            self.on_evict(key, value)

        return key, value


def get_image_size(item) -> int:
    """Calculates the cache weight of a stored ImageObject."""
    if isinstance(item, ImageObject):
        return item.footprint_bytes()
    return 1  # Should not happen


def _short(digest: bytes) -> str:
    return digest.hex()[:12]


class ImageStore:
    """Deduplicates images by content hash within a byte budget.

    Identical payloads interned twice yield the same ImageObject, so every
    cell showing that content shares one copy. Least recently used images
    are evicted once the budget is exceeded; cells that still hold a
    reference keep the object alive, but the store forgets it.
    """

    def __init__(self, max_bytes: int, allocator: Optional[IdAllocator] = None):
        self._allocator = allocator or default_allocator
        self._lock = threading.RLock()
        self._ids: Dict[int, bytes] = {}
        self._images = ByteLRUCache(max_bytes, size_of=get_image_size, on_evict=self._forget)

    def _forget(self, digest: bytes, image: ImageObject):
        if self._ids.get(image.id) == digest:
            del self._ids[image.id]

    def _lookup(self, digest: bytes, payload: RasterPayload) -> Optional[ImageObject]:
        existing = self._images.get(digest)
        if existing is None:
            return None
        if existing.payload != payload:
            # Same bytes but different declared geometry or timing.
            log.info("Hash %s reused by a different payload; replacing stored image %d", _short(digest), existing.id)
            return None
        return existing

    def _store(self, image: ImageObject) -> ImageObject:
        replaced = self._images.get(image.hash)
        try:
            self._images[image.hash] = image
        except ValueError:
            log.warning(
                "Image %d (%d bytes) exceeds the store budget of %d bytes; not caching it",
                image.id, image.footprint_bytes(), self._images.maxsize,
            )
            return image
        if replaced is not None and replaced.id != image.id:
            self._ids.pop(replaced.id, None)
        self._ids[image.id] = image.hash
        return image

    def intern(self, payload: RasterPayload) -> ImageObject:
        """Returns the stored image for this content, creating it if needed."""
        digest = compute_hash(payload)
        with self._lock:
            existing = self._lookup(digest, payload)
            if existing is not None:
                self._images.hits += 1
                log.debug("Store hit for %s (image %d)", _short(digest), existing.id)
                return existing
            self._images.misses += 1
            image = ImageObject(id=self._allocator.next_id(), hash=digest, payload=payload)
            return self._store(image)

    def add(self, image: ImageObject) -> ImageObject:
        """Stores an existing image unless identical content is already present."""
        with self._lock:
            existing = self._lookup(image.hash, image.payload)
            if existing is not None:
                self._images.hits += 1
                return existing
            self._images.misses += 1
            return self._store(image)

    def get(self, digest: bytes) -> Optional[ImageObject]:
        with self._lock:
            return self._images.get(digest)

    def get_by_id(self, image_id: int) -> Optional[ImageObject]:
        with self._lock:
            digest = self._ids.get(image_id)
            if digest is None:
                return None
            return self._images.get(digest)

    def discard(self, digest: bytes) -> Optional[ImageObject]:
        """Removes an image from the store, returning it if it was present."""
        with self._lock:
            image = self._images.pop(digest, None)
            if image is not None:
                self._forget(digest, image)
                log.debug("Discarded image %d (%s)", image.id, _short(digest))
            return image

    def clear(self):
        with self._lock:
            self._images.clear()
            self._ids.clear()

    def __contains__(self, digest) -> bool:
        with self._lock:
            return digest in self._images

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)

    @property
    def currsize(self) -> int:
        return self._images.currsize

    @property
    def maxsize(self) -> int:
        return self._images.maxsize

    @property
    def hits(self) -> int:
        return self._images.hits

    @property
    def misses(self) -> int:
        return self._images.misses
