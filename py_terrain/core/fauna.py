"""
Fauna placement by rejection sampling.

Foxes keep to forest edges and meadows. Hares keep to fields and meadows away
from the settlement and the dense forest. Each population gets ``count * 30``
random draws; whatever is placed within that budget is returned.
"""

from typing import Dict, List, Mapping, Optional

import numpy as np
import structlog
from scipy import ndimage

from ..config import settings
from ..utils.random import Seed, make_rng, uniform_int
from .grid import TerrainGrid
from .models import Animal, FaunaType, LandCover

logger = structlog.get_logger()

ATTEMPTS_PER_ANIMAL = 30
HARE_CLEARANCE = 3  # Chebyshev distance kept from settlement and dense forest


def default_counts() -> Dict[FaunaType, int]:
    return {
        FaunaType.FOX: settings.default_fox_count,
        FaunaType.HARE: settings.default_hare_count,
    }


def boundary_mask(land_cover: np.ndarray) -> np.ndarray:
    """Cells with at least one in-bounds 8-neighbour of a different cover."""
    footprint = np.ones((3, 3), dtype=bool)
    codes = land_cover.astype(np.int16)
    # Edge padding repeats in-bounds values, so off-grid positions never differ
    high = ndimage.maximum_filter(codes, footprint=footprint, mode="nearest")
    low = ndimage.minimum_filter(codes, footprint=footprint, mode="nearest")
    return (high != codes) | (low != codes)


class FaunaPlacer:
    """Samples animal positions over a finished grid."""

    def __init__(self, grid: TerrainGrid, rng: np.random.Generator):
        self.grid = grid
        self.rng = rng
        cover = grid.land_cover
        self.is_boundary = boundary_mask(cover)

        blocking = (cover == LandCover.SETTLEMENT) | (cover == LandCover.DENSE_FOREST)
        size = 2 * HARE_CLEARANCE + 1
        self.near_blocking = ndimage.binary_dilation(
            blocking, structure=np.ones((size, size), dtype=bool)
        )

    def accepts(self, kind: FaunaType, x: int, y: int) -> bool:
        cover = self.grid.land_cover[y, x]
        if kind == FaunaType.FOX:
            if cover == LandCover.MEADOW:
                return True
            return cover == LandCover.FOREST and bool(self.is_boundary[y, x])
        if kind == FaunaType.HARE:
            return (
                cover in (LandCover.FIELD, LandCover.MEADOW)
                and bool(self.grid.passable[y, x])
                and not self.near_blocking[y, x]
            )
        raise ValueError(f"Unknown fauna type: {kind}")

    def place(self, kind: FaunaType, count: int) -> List[Animal]:
        animals: List[Animal] = []
        tries = 0
        budget = count * ATTEMPTS_PER_ANIMAL
        while len(animals) < count and tries < budget:
            tries += 1
            x = uniform_int(self.rng, 0, self.grid.width)
            y = uniform_int(self.rng, 0, self.grid.height)
            if self.accepts(kind, x, y):
                animals.append(Animal(type=kind, x=x, y=y))

        if len(animals) < count:
            logger.debug(
                "Fauna shortfall", type=kind.value, requested=count, placed=len(animals)
            )
        return animals


def place_fauna(
    grid: TerrainGrid,
    counts: Optional[Mapping[FaunaType, int]] = None,
    seed: Seed = None,
) -> List[Animal]:
    """
    Scatter animals over a grid.

    Args:
        grid: Finished terrain grid
        counts: Target count per type; defaults from settings
        seed: Optional seed for reproducible placement

    Returns:
        Placed animals, foxes first; counts are upper bounds
    """
    counts = default_counts() if counts is None else counts
    placer = FaunaPlacer(grid, make_rng(seed))

    animals: List[Animal] = []
    for kind in (FaunaType.FOX, FaunaType.HARE):
        count = int(counts.get(kind, 0))
        if count < 0:
            raise ValueError(f"Fauna count must not be negative, got {count} for {kind.value}")
        if count:
            animals.extend(placer.place(kind, count))
    return animals
