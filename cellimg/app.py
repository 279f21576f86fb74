"""Command-line inspector: decodes image files, stores them and optionally snapshots their cells."""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from cellimg.config import config
from cellimg.imaging.cache import ImageStore
from cellimg.imaging.worker import DecodePool
from cellimg.io.snapshot import SnapshotManager
from cellimg.logging_setup import setup_logging
from cellimg.models import Animated, EncodedFile, ImageObject, Snapshot, Still
from cellimg.placement import slice_into_cells

log = logging.getLogger(__name__)


def describe(image: ImageObject) -> str:
    """One-line summary of a stored image."""
    payload = image.payload
    if isinstance(payload, Still):
        shape = f"still {payload.width}x{payload.height}"
    elif isinstance(payload, Animated):
        total_ms = sum(payload.durations)
        shape = f"animated {payload.width}x{payload.height}, {len(payload.frames)} frames, {total_ms}ms"
    elif isinstance(payload, EncodedFile):
        shape = "encoded file"
    else:
        shape = type(payload).__name__
    return f"#{image.id} {image.hash_hex[:16]} {shape}, {image.footprint_bytes()} bytes"


def main(
    files: List[Path],
    columns: int = 0,
    rows: int = 0,
    snapshot_path: Optional[Path] = None,
    debug: bool = False,
) -> int:
    """Decodes each file and prints what was stored. Returns a process exit code."""
    t0 = time.perf_counter()
    setup_logging(debug, level=config.get("logging", "level", fallback="INFO"))
    log.info("Starting cellimg on %d files", len(files))

    store = ImageStore(config.store_max_bytes)
    pool = DecodePool(store, max_workers=config.decode_workers, max_input_bytes=config.max_input_bytes)
    exit_code = 0
    cells = []
    try:
        futures = []
        for path in files:
            try:
                data = path.read_bytes()
            except OSError as e:
                log.error("Cannot read %s: %s", path, e)
                print(f"{path}: cannot read ({e.strerror or e})", file=sys.stderr)
                exit_code = 1
                continue
            futures.append((path, pool.submit(data)))

        for placement_id, (path, future) in enumerate(futures, start=1):
            image = future.result()
            if image is None:
                continue
            print(f"{path}: {describe(image)}")
            if columns > 0 and rows > 0:
                for row in slice_into_cells(image, columns, rows, image_id=image.id, placement_id=placement_id):
                    cells.extend(row)
    finally:
        pool.shutdown()

    log.info(
        "Stored %d images (%d bytes, %d hits, %d misses) in %.3fs",
        len(store), store.currsize, store.hits, store.misses, time.perf_counter() - t0,
    )

    if snapshot_path is not None:
        if not SnapshotManager(snapshot_path).save(Snapshot(cells=cells)):
            print(f"Failed to write snapshot to {snapshot_path}", file=sys.stderr)
            return 1
        print(f"Wrote {len(cells)} cells to {snapshot_path}")
    return exit_code


def cli():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="cellimg - decode and inspect terminal cell images")
    parser.add_argument("files", nargs="+", type=Path, help="Image files to decode")
    parser.add_argument("--columns", type=int, default=0, help="Place each image over this many cell columns")
    parser.add_argument("--rows", type=int, default=0, help="Place each image over this many cell rows")
    parser.add_argument("--snapshot", type=Path, default=None, help="Write the placed cells to this JSON file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()
    sys.exit(main(args.files, columns=args.columns, rows=args.rows, snapshot_path=args.snapshot, debug=args.debug))

if __name__ == "__main__":
    cli()
