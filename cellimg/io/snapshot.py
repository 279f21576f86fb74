"""Saves and restores the image cells of a screen as a JSON snapshot file."""

import json
import logging
import time
from pathlib import Path
from typing import Optional

from cellimg.errors import ValidationError
from cellimg.ids import IdAllocator
from cellimg.io.serialize import cell_from_dict, cell_to_dict, image_from_dict, image_to_dict
from cellimg.models import Snapshot

log = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class SnapshotManager:
    def __init__(self, path: Path, allocator: Optional[IdAllocator] = None):
        self.path = Path(path)
        self.allocator = allocator

    def load(self) -> Snapshot:
        """Loads a snapshot from disk, or returns an empty one if there is none.

        Unreadable or unparsable files are logged and treated as empty.
        Content that parses but fails validation raises ValidationError.
        """
        if not self.path.exists():
            log.info(f"No snapshot file found at {self.path}.")
            return Snapshot()
        try:
            t_start = time.perf_counter()
            with self.path.open("r") as f:
                data = json.load(f)
            log.debug(f"SnapshotManager.load: json.load() took {time.perf_counter() - t_start:.3f}s")
        except (OSError, json.JSONDecodeError) as e:
            log.error(f"Failed to load or parse snapshot file {self.path}: {e}")
            return Snapshot()

        if not isinstance(data, dict):
            raise ValidationError(f"Snapshot {self.path} is not a JSON object")
        if data.get("version") != SNAPSHOT_VERSION:
            log.warning("Unsupported snapshot version %r in %s. Starting fresh.", data.get("version"), self.path)
            return Snapshot()

        images = {}
        for entry in data.get("images", []):
            image = image_from_dict(entry, allocator=self.allocator)
            images[image.id] = image
        cells = [cell_from_dict(entry, images) for entry in data.get("cells", [])]
        log.info("Loaded %d cells over %d images from %s", len(cells), len(images), self.path)
        return Snapshot(version=SNAPSHOT_VERSION, cells=cells)

    def save(self, snapshot: Snapshot) -> bool:
        """Saves the snapshot to disk atomically. Returns False if writing failed."""
        temp_path = self.path.with_suffix(".tmp")
        serializable_data = {
            "version": snapshot.version,
            "images": [image_to_dict(image) for image in snapshot.images()],
            "cells": [cell_to_dict(cell) for cell in snapshot.cells],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open("w") as f:
                json.dump(serializable_data, f, indent=2)

            # Atomic rename
            temp_path.replace(self.path)
            log.debug(f"Saved snapshot file to {self.path}")
            return True
        except OSError as e:
            log.error(f"Failed to save snapshot file {self.path}: {e}")
            return False
