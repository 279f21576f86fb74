"""Tests for the SnapshotManager."""

import json
from pathlib import Path

import pytest

from cellimg.errors import ValidationError
from cellimg.ids import IdAllocator
from cellimg.io.snapshot import SnapshotManager
from cellimg.models import Animated, CellImageRef, ImageObject, Snapshot, Still, ValidatedCoordinate
from cellimg.placement import slice_into_cells

@pytest.fixture
def snapshot_path(tmp_path: Path):
    return tmp_path / "screen.json"

@pytest.fixture
def image():
    return ImageObject.create(Animated(1, 1, [100, 200], [b"\x01" * 4, b"\x02" * 4]))

def test_load_non_existent(snapshot_path):
    """Tests loading when no snapshot file exists."""
    snapshot = SnapshotManager(snapshot_path).load()
    assert snapshot.version == 1
    assert snapshot.cells == []

def test_save_and_load_preserves_shared_images(snapshot_path, image):
    other = ImageObject.create(Still(b"\xff" * 4, 1, 1))
    cells = [cell for row in slice_into_cells(image, 2, 1, image_id=3, placement_id=1) for cell in row]
    cells.append(CellImageRef(ValidatedCoordinate(0, 0), ValidatedCoordinate(1, 1), other, z_index=-1))

    manager = SnapshotManager(snapshot_path, allocator=IdAllocator())
    assert manager.save(Snapshot(cells=cells))

    saved = json.loads(snapshot_path.read_text())
    assert len(saved["images"]) == 2
    assert len(saved["cells"]) == 3

    loaded = manager.load()
    assert loaded.cells == cells
    assert loaded.cells[0].image is loaded.cells[1].image
    assert loaded.cells[0].image is not loaded.cells[2].image
    assert not snapshot_path.with_suffix(".tmp").exists()

def test_load_corrupt_json_returns_empty(snapshot_path):
    snapshot_path.write_text("{ not json")
    assert SnapshotManager(snapshot_path).load().cells == []

def test_load_unknown_version_returns_empty(snapshot_path):
    snapshot_path.write_text(json.dumps({"version": 99, "images": [], "cells": []}))
    assert SnapshotManager(snapshot_path).load().cells == []

def test_load_nan_coordinate_raises(snapshot_path, image):
    manager = SnapshotManager(snapshot_path, allocator=IdAllocator())
    cell = CellImageRef(ValidatedCoordinate(0, 0), ValidatedCoordinate(1, 1), image)
    manager.save(Snapshot(cells=[cell]))

    text = snapshot_path.read_text().replace('"x": 0.0', '"x": NaN', 1)
    snapshot_path.write_text(text)
    with pytest.raises(ValidationError):
        manager.load()

def test_save_failure_returns_false(tmp_path, image):
    blocker = tmp_path / "file"
    blocker.write_text("")
    manager = SnapshotManager(blocker / "screen.json")
    assert manager.save(Snapshot()) is False
