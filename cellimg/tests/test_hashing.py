"""Tests for content hashing and footprint estimates."""

import hashlib

import pytest

from cellimg.errors import EmptyAnimationError
from cellimg.imaging.hashing import compute_hash, footprint_bytes
from cellimg.models import Animated, EncodedFile, ImageObject, Still


def test_hash_is_sha256_of_buffer():
    assert compute_hash(EncodedFile(b"")) == bytes.fromhex(
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )
    assert compute_hash(Still(b"\x01\x02\x03\x04", 1, 1)) == hashlib.sha256(b"\x01\x02\x03\x04").digest()


def test_equal_bytes_hash_equal():
    data = bytes(range(64))
    assert compute_hash(EncodedFile(data)) == compute_hash(EncodedFile(bytes(data)))
    assert compute_hash(Still(data, 4, 4)) == compute_hash(Still(bytearray(data), 4, 4))


def test_different_bytes_hash_differently():
    assert compute_hash(EncodedFile(b"\x00\x00")) != compute_hash(EncodedFile(b"\x00\x01"))
    assert compute_hash(Still(b"\xff" * 4, 1, 1)) != compute_hash(Still(b"\xfe" * 4, 1, 1))


def test_geometry_does_not_contribute_to_hash():
    data = b"\x10" * 16
    assert compute_hash(Still(data, 2, 2)) == compute_hash(Still(data, 4, 1))


def test_animation_durations_do_not_contribute_to_hash():
    frames = [b"\x01" * 4, b"\x02" * 4, b"\x03" * 4]
    a = Animated(1, 1, [100, 100, 200], frames)
    b = Animated(1, 1, [10, 20, 30], frames)
    assert compute_hash(a) == compute_hash(b)
    assert compute_hash(a) == hashlib.sha256(b"".join(frames)).digest()


def test_animation_frame_order_matters():
    a = Animated(1, 1, [1, 1], [b"\x01" * 4, b"\x02" * 4])
    b = Animated(1, 1, [1, 1], [b"\x02" * 4, b"\x01" * 4])
    assert compute_hash(a) != compute_hash(b)


def test_image_object_hash_matches_payload():
    payload = Still(b"\x00\x10\x20\xff", 1, 1)
    assert ImageObject.create(payload).hash == compute_hash(payload)


def test_footprint_of_buffers():
    assert footprint_bytes(EncodedFile(b"12345")) == 5
    assert footprint_bytes(Still(b"\x00" * 16, 2, 2)) == 16


def test_footprint_of_animation_uses_first_frame_size():
    uniform = Animated(1, 1, [1, 1, 1], [b"\x00" * 4] * 3)
    assert footprint_bytes(uniform) == 12

    # Approximation: frames of uneven length are all counted at the first frame's size.
    uneven = Animated(2, 1, [1, 1], [b"\x00" * 8, b"\x00" * 4])
    assert footprint_bytes(uneven) == 16


def test_footprint_of_empty_animation_raises():
    empty = Animated(1, 1, [], [])
    with pytest.raises(EmptyAnimationError):
        footprint_bytes(empty)
    with pytest.raises(EmptyAnimationError):
        ImageObject.create(empty).footprint_bytes()
