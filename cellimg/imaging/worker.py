"""Decodes incoming image bytes on a background thread pool."""

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Set

from cellimg.imaging.cache import ImageStore
from cellimg.imaging.codec import RasterCodec
from cellimg.imaging.decode import normalize
from cellimg.models import EncodedFile, ImageObject

log = logging.getLogger(__name__)


class DecodePool:
    """Runs normalize() off the caller's thread and interns the results.

    Each submission is tagged with the current generation. cancel_all()
    bumps the generation, so work queued before it is skipped and its
    future resolves to None instead of touching the store.
    """

    def __init__(
        self,
        store: ImageStore,
        max_workers: Optional[int] = None,
        max_input_bytes: Optional[int] = None,
        codec: Optional[RasterCodec] = None,
    ):
        self.store = store
        self.codec = codec
        self.max_input_bytes = max_input_bytes
        if max_workers is None:
            # Decoding is CPU bound
            max_workers = min(os.cpu_count() or 1, 8)
        self.executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="DecodePool",
        )
        self.generation = 0
        self._futures: Set[Future] = set()
        self._lock = threading.Lock()

    def submit(self, data: bytes) -> "Future[Optional[ImageObject]]":
        """Queues raw file bytes for decoding."""
        with self._lock:
            generation = self.generation
            future = self.executor.submit(self._decode_and_store, bytes(data), generation)
            self._futures.add(future)
        future.add_done_callback(self._discard_future)
        log.debug("Submitted %d bytes for decoding in generation %d", len(data), generation)
        return future

    def _discard_future(self, future: Future):
        with self._lock:
            self._futures.discard(future)

    def _decode_and_store(self, data: bytes, generation: int) -> Optional[ImageObject]:
        """The actual work done by the thread pool."""
        if generation != self.generation:
            log.debug("Skipping stale decode task (gen %d != %d)", generation, self.generation)
            return None

        payload = EncodedFile(data)
        if self.max_input_bytes is not None and len(data) > self.max_input_bytes:
            log.warning(
                "Input of %d bytes exceeds decode limit of %d bytes; storing it undecoded",
                len(data), self.max_input_bytes,
            )
        else:
            payload = normalize(payload, self.codec)

        # Re-check generation before storing
        if generation != self.generation:
            log.debug("Generation changed before storing decoded image. Skipping.")
            return None

        image = self.store.intern(payload)
        log.debug("Decoded %r into image %d", payload, image.id)
        return image

    def cancel_all(self):
        """Cancels pending decodes and invalidates running ones."""
        log.info("Cancelling all decode tasks.")
        with self._lock:
            self.generation += 1
            futures = list(self._futures)
        # Cancelling runs done callbacks, which take the lock
        for future in futures:
            future.cancel()

    def shutdown(self, wait: bool = True):
        """Shuts down the thread pool executor."""
        log.info("Shutting down decode pool.")
        self.cancel_all()
        self.executor.shutdown(wait=wait)
