"""Carves an image into the per-cell slices that display it on the grid."""

from typing import List, Optional, Tuple

from cellimg.errors import ValidationError
from cellimg.models import CellImageRef, ImageObject, ValidatedCoordinate


def slice_into_cells(
    image: ImageObject,
    columns: int,
    rows: int,
    z_index: int = 0,
    display_offset: Tuple[int, int] = (0, 0),
    image_id: int = 0,
    placement_id: Optional[int] = None,
) -> List[List[CellImageRef]]:
    """Splits the unit texture square evenly over a rows x columns block of cells.

    Returns one list per row, left to right. The pixel display offset only
    applies to the top-left cell, where the image starts.
    """
    if columns <= 0 or rows <= 0:
        raise ValidationError(f"Cannot place an image over {columns}x{rows} cells")

    grid = []
    for row in range(rows):
        cells = []
        for col in range(columns):
            cells.append(CellImageRef(
                top_left=ValidatedCoordinate(col / columns, row / rows),
                bottom_right=ValidatedCoordinate((col + 1) / columns, (row + 1) / rows),
                image=image,
                z_index=z_index,
                display_offset=display_offset if (row, col) == (0, 0) else (0, 0),
                image_id=image_id,
                placement_id=placement_id,
            ))
        grid.append(cells)
    return grid
