"""
Grid assembly.

Merges the noise field and the land cover mask into the final per-cell
arrays, then flags strict local extrema. The grid is only handed out once it
is complete, and its arrays are read-only from then on.
"""

import time
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np
import structlog
from scipy import ndimage

from ..config import Settings, settings as default_settings
from ..utils.random import make_rng
from .biome_mask import BiomeMaskBuilder, MaskOptions
from .models import (
    IMPASSABLE_COVERS,
    MASK_TO_LAND_COVER,
    Cell,
    GenerationRequest,
    LandCover,
    MaskLabel,
)
from .noise_field import NoiseField

logger = structlog.get_logger()

# Lookup array from mask label code to land cover code
_LABEL_LOOKUP = np.zeros(len(MaskLabel), dtype=np.uint8)
for _label, _cover in MASK_TO_LAND_COVER.items():
    _LABEL_LOOKUP[_label] = _cover

_IMPASSABLE = np.zeros(len(LandCover), dtype=bool)
_IMPASSABLE[list(IMPASSABLE_COVERS)] = True

# 8-neighbourhood without the centre cell
_NEIGHBOURS = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=bool)


@dataclass(frozen=True, eq=False)
class TerrainGrid:
    """
    Assembled terrain, row-major with the origin at the top-left.

    All arrays have shape ``(height, width)`` and are read-only.
    """

    elevation: np.ndarray
    land_cover: np.ndarray
    passable: np.ndarray
    is_peak: np.ndarray
    is_valley: np.ndarray

    def __post_init__(self):
        shape = self.elevation.shape
        if len(shape) != 2 or shape[0] < 1 or shape[1] < 1:
            raise ValueError(f"Grid must be two-dimensional and non-empty, got {shape}")
        for name in ("land_cover", "passable", "is_peak", "is_valley"):
            if getattr(self, name).shape != shape:
                raise ValueError(f"{name} shape {getattr(self, name).shape} != {shape}")
        # Freeze private copies; the caller's buffers stay writeable
        for name in ("elevation", "land_cover", "passable", "is_peak", "is_valley"):
            frozen = np.array(getattr(self, name))
            frozen.flags.writeable = False
            object.__setattr__(self, name, frozen)

    @property
    def width(self) -> int:
        return self.elevation.shape[1]

    @property
    def height(self) -> int:
        return self.elevation.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.elevation.shape

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> Cell:
        """Cell at column ``x``, row ``y``."""
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell ({x}, {y}) outside {self.width}x{self.height} grid")
        return Cell(
            land_cover=LandCover(int(self.land_cover[y, x])),
            elevation=float(self.elevation[y, x]),
            passable=bool(self.passable[y, x]),
            is_peak=bool(self.is_peak[y, x]),
            is_valley=bool(self.is_valley[y, x]),
        )

    def rows(self) -> Iterator[List[Cell]]:
        """Yield each row of cells, top to bottom."""
        for y in range(self.height):
            yield [self.cell(x, y) for x in range(self.width)]

    def elevation_bounds(self) -> Tuple[float, float]:
        return float(self.elevation.min()), float(self.elevation.max())

    def cover_counts(self) -> dict:
        """Number of cells per land cover present in the grid."""
        codes, counts = np.unique(self.land_cover, return_counts=True)
        return {LandCover(int(c)): int(n) for c, n in zip(codes, counts)}

    def extent_meters(self, tile_size: Optional[float] = None) -> Tuple[float, float]:
        """Physical ``(width, height)`` of the map in meters."""
        size = default_settings.tile_size_meters if tile_size is None else tile_size
        return self.width * size, self.height * size

    def extent_km(self, tile_size: Optional[float] = None) -> Tuple[float, float]:
        w, h = self.extent_meters(tile_size)
        return w / 1000, h / 1000


def compute_extrema(elevation: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Flag strict local maxima and minima over the 8-neighbourhood.

    Border cells compare against the neighbours they have. A lone cell with
    no neighbours at all is neither a peak nor a valley.
    """
    elevation = np.asarray(elevation, dtype=np.float64)
    neighbour_max = ndimage.maximum_filter(
        elevation, footprint=_NEIGHBOURS, mode="constant", cval=-np.inf
    )
    neighbour_min = ndimage.minimum_filter(
        elevation, footprint=_NEIGHBOURS, mode="constant", cval=np.inf
    )
    has_neighbours = np.isfinite(neighbour_max)
    is_peak = has_neighbours & (elevation > neighbour_max)
    is_valley = has_neighbours & (elevation < neighbour_min)
    return is_peak, is_valley


def labels_to_land_cover(labels: np.ndarray) -> np.ndarray:
    """Map mask labels to land cover codes; every cell must be labelled."""
    if np.any(labels == MaskLabel.UNSET):
        raise ValueError("Mask still contains unclassified cells")
    return _LABEL_LOOKUP[labels]


def passability(land_cover: np.ndarray) -> np.ndarray:
    """Cells are impassable exactly when water, dense forest or settlement."""
    return ~_IMPASSABLE[land_cover]


def build_grid(elevation: np.ndarray, land_cover: np.ndarray) -> TerrainGrid:
    """Derive passability and extrema and freeze the result."""
    elevation = np.array(elevation, dtype=np.float64)
    land_cover = np.array(land_cover, dtype=np.uint8)
    is_peak, is_valley = compute_extrema(elevation)
    return TerrainGrid(
        elevation=elevation,
        land_cover=land_cover,
        passable=passability(land_cover),
        is_peak=is_peak,
        is_valley=is_valley,
    )


class GridAssembler:
    """Drives the noise field and the mask pipeline for one request."""

    def __init__(
        self,
        request: GenerationRequest,
        config: Optional[Settings] = None,
        mask_options: Optional[MaskOptions] = None,
    ):
        """
        Initialize the assembler.

        Args:
            request: Validated generation request
            config: Settings providing the size limits
            mask_options: Mask pipeline parameters
        """
        self.request = request
        self.config = config or default_settings
        self.mask_options = mask_options
        self.min_elevation, self.max_elevation = request.elevation_range()

    def _check_size(self) -> None:
        req = self.request
        if req.width > self.config.max_width or req.height > self.config.max_height:
            logger.error(
                "Requested grid too large",
                width=req.width,
                height=req.height,
                max_width=self.config.max_width,
                max_height=self.config.max_height,
            )
            raise ValueError(
                f"Grid {req.width}x{req.height} exceeds the maximum "
                f"{self.config.max_width}x{self.config.max_height}"
            )

    def assemble(self) -> TerrainGrid:
        """Generate elevation and land cover and return the finished grid."""
        self._check_size()
        req = self.request
        log = logger.bind(width=req.width, height=req.height, preset=req.preset, seed=req.seed)
        started = time.perf_counter()

        rng = make_rng(req.seed)
        noise = NoiseField(req.width, req.height, self.min_elevation, self.max_elevation, rng)
        log.debug("Building land cover mask")
        mask = BiomeMaskBuilder(req.width, req.height, rng, self.mask_options).build()

        log.debug("Sampling elevation")
        elevation = noise.sample_grid()
        grid = build_grid(elevation, labels_to_land_cover(mask.labels))

        log.info(
            "Terrain generated",
            fields=len(mask.fields),
            path_points=len(mask.path_graph.points),
            peaks=int(grid.is_peak.sum()),
            valleys=int(grid.is_valley.sum()),
            seconds=round(time.perf_counter() - started, 3),
        )
        return grid


def generate(request: Optional[GenerationRequest] = None, **kwargs) -> TerrainGrid:
    """
    Generate a terrain grid.

    Args:
        request: Generation request; keyword arguments build one when omitted

    Returns:
        The assembled, read-only grid
    """
    if request is None:
        request = GenerationRequest(**kwargs)
    elif kwargs:
        request = GenerationRequest(**{**request.model_dump(), **kwargs})
    return GridAssembler(request).assemble()
