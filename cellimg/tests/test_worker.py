import threading

import pytest

from cellimg.ids import IdAllocator
from cellimg.imaging.cache import ImageStore
from cellimg.imaging.codec import DecodedFrame, DetectedFormat
from cellimg.imaging.worker import DecodePool
from cellimg.models import EncodedFile, Still


class BlockingCodec:
    """Codec whose detection waits until the test releases it."""

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()

    def detect_format(self, data):
        self.started.set()
        self.release.wait(timeout=5)
        return DetectedFormat("PNG", False)

    def decode_still(self, data):
        return DecodedFrame(b"\x00" * 4, 1, 1)

    def decode_animated(self, data):
        raise AssertionError("not animated")


@pytest.fixture
def store():
    return ImageStore(max_bytes=10 * 1024**2, allocator=IdAllocator())


def test_submit_decodes_and_interns(store, png_bytes):
    pool = DecodePool(store, max_workers=2)
    try:
        image = pool.submit(png_bytes()).result(timeout=10)
        assert image.payload == Still(b"\xff" * 4, 1, 1)
        assert store.get(image.hash) is image

        again = pool.submit(png_bytes()).result(timeout=10)
        assert again is image
    finally:
        pool.shutdown()


def test_oversized_input_is_stored_undecoded(store, png_bytes):
    data = png_bytes(size=(16, 16))
    pool = DecodePool(store, max_workers=1, max_input_bytes=10)
    try:
        image = pool.submit(data).result(timeout=10)
        assert image.payload == EncodedFile(data)
    finally:
        pool.shutdown()


def test_stale_generation_is_skipped(store, png_bytes):
    pool = DecodePool(store, max_workers=1)
    try:
        pool.generation = 5
        assert pool._decode_and_store(png_bytes(), 4) is None
        assert len(store) == 0
    finally:
        pool.shutdown()


def test_cancel_all_invalidates_running_and_pending(store):
    codec = BlockingCodec()
    pool = DecodePool(store, max_workers=1, codec=codec)
    try:
        running = pool.submit(b"first")
        assert codec.started.wait(timeout=5)
        pending = pool.submit(b"second")

        pool.cancel_all()
        assert pending.cancelled()

        codec.release.set()
        assert running.result(timeout=10) is None
        assert len(store) == 0
        assert pool.generation == 1
    finally:
        codec.release.set()
        pool.shutdown()
