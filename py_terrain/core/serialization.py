"""
Export and import of a terrain grid.

The export is a JSON list of rows, one object per cell, row-major. It is an
opaque snapshot with no version field. Imports also accept the keys and biome
names written by older exports of the map editor.
"""

import json
from typing import List

import numpy as np
import structlog
from pydantic import TypeAdapter, ValidationError

from .grid import TerrainGrid
from .models import LAND_COVER_NAMES, Cell, LandCover

logger = structlog.get_logger()

_ROWS = TypeAdapter(List[List[Cell]])


class GridFormatError(ValueError):
    """Raised when an imported blob is not a grid export."""


def serialize(grid: TerrainGrid) -> str:
    """Dump every cell of ``grid`` to JSON text."""
    names = [LAND_COVER_NAMES[LandCover(code)] for code in range(len(LandCover))]
    rows = []
    for y in range(grid.height):
        covers = grid.land_cover[y].tolist()
        elevations = grid.elevation[y].tolist()
        passable = grid.passable[y].tolist()
        peaks = grid.is_peak[y].tolist()
        valleys = grid.is_valley[y].tolist()
        rows.append(
            [
                {
                    "landCover": names[c],
                    "elevation": e,
                    "passable": p,
                    "isPeak": pk,
                    "isValley": v,
                }
                for c, e, p, pk, v in zip(covers, elevations, passable, peaks, valleys)
            ]
        )
    return json.dumps(rows, separators=(",", ":"))


def deserialize(text: str) -> TerrainGrid:
    """
    Restore a grid from JSON text.

    Stored passability and extrema flags are taken as-is, not re-derived.

    Raises:
        GridFormatError: The text is not JSON, not a rectangular list of rows,
            or contains cells that do not parse
    """
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        logger.error("Grid import failed", error=str(e))
        raise GridFormatError(f"Grid export is not valid JSON: {e}") from e

    if not isinstance(data, list) or not data:
        raise GridFormatError("Grid export must be a non-empty list of rows")
    if not all(isinstance(row, list) for row in data):
        raise GridFormatError("Every grid row must be a list of cells")
    width = len(data[0])
    if width == 0 or any(len(row) != width for row in data):
        raise GridFormatError("Grid rows must be non-empty and of equal length")

    try:
        rows = _ROWS.validate_python(data)
    except ValidationError as e:
        logger.error("Grid import failed", error=str(e))
        raise GridFormatError(f"Grid export contains invalid cells: {e}") from e

    cells = [cell for row in rows for cell in row]
    shape = (len(rows), width)
    grid = TerrainGrid(
        elevation=np.array([c.elevation for c in cells], dtype=np.float64).reshape(shape),
        land_cover=np.array([c.land_cover for c in cells], dtype=np.uint8).reshape(shape),
        passable=np.array([c.passable for c in cells], dtype=bool).reshape(shape),
        is_peak=np.array([c.is_peak for c in cells], dtype=bool).reshape(shape),
        is_valley=np.array([c.is_valley for c in cells], dtype=bool).reshape(shape),
    )
    logger.info("Grid imported", width=grid.width, height=grid.height)
    return grid
