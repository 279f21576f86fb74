"""Shared fixtures: in-memory image files built with Pillow."""

import io
import os
import tempfile

# Keep config and log files out of the real home directory.
os.environ.setdefault("CELLIMG_HOME", tempfile.mkdtemp(prefix="cellimg-test-"))

import pytest
from PIL import Image


@pytest.fixture
def png_bytes():
    """Returns a factory for PNG files of a single solid color."""
    def _create(color=(255, 255, 255), size=(1, 1), mode="RGB"):
        buf = io.BytesIO()
        Image.new(mode, size, color).save(buf, format="PNG")
        return buf.getvalue()
    return _create


@pytest.fixture
def gif_bytes():
    """Returns a factory for animated GIFs with one solid color per frame."""
    def _create(colors=((255, 0, 0), (0, 255, 0), (0, 0, 255)), durations=(100, 100, 200), size=(4, 4)):
        frames = [Image.new("RGB", size, color) for color in colors]
        buf = io.BytesIO()
        frames[0].save(
            buf,
            format="GIF",
            save_all=True,
            append_images=frames[1:],
            duration=list(durations),
            loop=0,
        )
        return buf.getvalue()
    return _create


@pytest.fixture
def apng_bytes():
    """Returns a factory for animated PNGs with one solid color per frame."""
    def _create(colors=((255, 0, 0, 255), (0, 0, 255, 255)), durations=(50, 150), size=(3, 2)):
        frames = [Image.new("RGBA", size, color) for color in colors]
        buf = io.BytesIO()
        frames[0].save(
            buf,
            format="PNG",
            save_all=True,
            append_images=frames[1:],
            duration=list(durations),
            loop=0,
        )
        return buf.getvalue()
    return _create
