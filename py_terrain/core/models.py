"""
Data structures shared by the generation pipeline.

This module holds:
- Land cover and preset enums with their lookup tables
- The public Cell, GenerationRequest, ContourSegment and Animal models
- Intermediate structures (FieldPlot, PathGraph) that only live during one
  generation call
"""

import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, NamedTuple, Optional, Set, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from ..config import settings


class LandCover(IntEnum):
    """Land cover classes stored per cell."""

    MEADOW = 0
    FIELD = 1
    FOREST = 2
    DENSE_FOREST = 3
    BUSH = 4
    WATER = 5
    ROAD = 6
    BUILDING = 7
    SETTLEMENT = 8
    # Only reachable through deserialization of older exports
    RIVER_SOURCE = 9
    RIVER_MOUTH = 10
    BEACH = 11


# Names used in serialized grids
LAND_COVER_NAMES = {
    LandCover.MEADOW: "meadow",
    LandCover.FIELD: "field",
    LandCover.FOREST: "forest",
    LandCover.DENSE_FOREST: "dense-forest",
    LandCover.BUSH: "bush",
    LandCover.WATER: "water",
    LandCover.ROAD: "road",
    LandCover.BUILDING: "building",
    LandCover.SETTLEMENT: "settlement",
    LandCover.RIVER_SOURCE: "river-source",
    LandCover.RIVER_MOUTH: "river-mouth",
    LandCover.BEACH: "beach",
}

LAND_COVER_BY_NAME = {name: cover for cover, name in LAND_COVER_NAMES.items()}

# Biome names written by older exports of the map editor
LEGACY_BIOME_NAMES = {
    "grass": LandCover.MEADOW,
    "reed": LandCover.BUSH,
    "lake": LandCover.WATER,
    "river": LandCover.ROAD,
    "village": LandCover.SETTLEMENT,
}

IMPASSABLE_COVERS = frozenset(
    {LandCover.WATER, LandCover.DENSE_FOREST, LandCover.SETTLEMENT}
)


def require_total(table, members, name: str) -> None:
    """Raise if a lookup table does not cover every member it must cover."""
    missing = set(members) - set(table)
    if missing:
        raise RuntimeError(f"{name} has no entry for {sorted(m.name for m in missing)}")


require_total(LAND_COVER_NAMES, LandCover, "LAND_COVER_NAMES")


def parse_land_cover(value) -> LandCover:
    """Resolve a land cover from its name, a legacy biome name or its code."""
    if isinstance(value, LandCover):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return LandCover(value)
    if isinstance(value, str):
        if value in LAND_COVER_BY_NAME:
            return LAND_COVER_BY_NAME[value]
        if value in LEGACY_BIOME_NAMES:
            return LEGACY_BIOME_NAMES[value]
    raise ValueError(f"Unknown land cover: {value!r}")


def is_passable(cover: LandCover) -> bool:
    """Water, dense forest and settlement block movement."""
    return cover not in IMPASSABLE_COVERS


class TerrainPreset(str, Enum):
    """Named default elevation ranges."""

    LOWLANDS = "lowlands"
    HILLS = "hills"
    MOUNTAINS = "mountains"


PRESET_ELEVATIONS = {
    TerrainPreset.LOWLANDS: (98.0, 105.0),
    TerrainPreset.HILLS: (120.0, 170.0),
    TerrainPreset.MOUNTAINS: (300.0, 500.0),
}

# Range used when neither a preset nor explicit bounds are given
DEFAULT_ELEVATION_RANGE = (100.0, 110.0)


class Cell(BaseModel):
    """One grid element. Serialized with camelCase keys."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    land_cover: LandCover = Field(
        validation_alias=AliasChoices("landCover", "land_cover", "biome"),
        serialization_alias="landCover",
        description="Land cover class",
    )
    elevation: float = Field(
        validation_alias=AliasChoices("elevation", "height"),
        description="Absolute elevation",
    )
    passable: bool = Field(
        validation_alias=AliasChoices("passable", "isPassable"),
        description="Whether units can enter the cell",
    )
    is_peak: bool = Field(
        default=False,
        validation_alias=AliasChoices("isPeak", "is_peak"),
        serialization_alias="isPeak",
        description="Strict local maximum",
    )
    is_valley: bool = Field(
        default=False,
        validation_alias=AliasChoices("isValley", "is_valley"),
        serialization_alias="isValley",
        description="Strict local minimum",
    )

    @field_validator("land_cover", mode="before")
    @classmethod
    def _parse_land_cover(cls, value):
        return parse_land_cover(value)

    @field_serializer("land_cover")
    def _land_cover_name(self, value: LandCover) -> str:
        return LAND_COVER_NAMES[value]


class GenerationRequest(BaseModel):
    """Parameters for one terrain generation call."""

    width: int = Field(
        default_factory=lambda: settings.default_width, ge=1, description="Grid width in cells"
    )
    height: int = Field(
        default_factory=lambda: settings.default_height, ge=1, description="Grid height in cells"
    )
    preset: Optional[TerrainPreset] = Field(None, description="Terrain preset")
    min_elevation: Optional[float] = Field(None, description="Overrides the preset minimum")
    max_elevation: Optional[float] = Field(None, description="Overrides the preset maximum")
    seed: Optional[str] = Field(None, description="Seed for reproducible generation")

    @model_validator(mode="after")
    def _check_range(self):
        low, high = self.elevation_range()
        if not (math.isfinite(low) and math.isfinite(high)):
            raise ValueError("Elevation bounds must be finite")
        if low > high:
            raise ValueError(
                f"min_elevation ({low}) must not exceed max_elevation ({high})"
            )
        return self

    def elevation_range(self) -> Tuple[float, float]:
        """Resolve ``(min, max)`` from the preset and explicit overrides."""
        if self.preset is not None:
            low, high = PRESET_ELEVATIONS[self.preset]
        else:
            low, high = DEFAULT_ELEVATION_RANGE
        if self.min_elevation is not None:
            low = self.min_elevation
        if self.max_elevation is not None:
            high = self.max_elevation
        return float(low), float(high)


class Edge(IntEnum):
    """Local edges of a field rectangle."""

    TOP = 0
    RIGHT = 1
    BOTTOM = 2
    LEFT = 3


@dataclass
class FieldPlot:
    """An oriented rectangle of farmland."""

    center_x: int
    center_y: int
    width: float
    height: float
    angle: float  # radians
    ditch_edge: Edge


@dataclass
class PathGraph:
    """Landmark points and the undirected edges between them."""

    points: List[Tuple[int, int]] = field(default_factory=list)
    edges: Set[Tuple[int, int]] = field(default_factory=set)

    def add_point(self, x: int, y: int) -> int:
        self.points.append((x, y))
        return len(self.points) - 1

    def add_edge(self, a: int, b: int) -> bool:
        """Add an undirected edge; returns False if it already existed."""
        key = (a, b) if a < b else (b, a)
        if a == b or key in self.edges:
            return False
        self.edges.add(key)
        return True

    def has_edge(self, a: int, b: int) -> bool:
        return ((a, b) if a < b else (b, a)) in self.edges

    def adjacency(self) -> Dict[int, List[int]]:
        adj: Dict[int, List[int]] = {i: [] for i in range(len(self.points))}
        for a, b in self.edges:
            adj[a].append(b)
            adj[b].append(a)
        return adj

    def reachable_from(self, start: int = 0) -> Set[int]:
        """Breadth-first traversal from ``start``."""
        if not self.points:
            return set()
        adj = self.adjacency()
        seen = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbor in adj[current]:
                if neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(neighbor)
        return seen

    def is_connected(self) -> bool:
        return len(self.reachable_from(0)) == len(self.points)


class Window(NamedTuple):
    """Cell range ``[min_x, max_x) x [min_y, max_y)``."""

    min_x: int
    min_y: int
    max_x: int
    max_y: int


class ContourSegment(NamedTuple):
    """One isoline segment in grid coordinates."""

    x1: float
    y1: float
    x2: float
    y2: float
    isovalue: float


class FaunaType(str, Enum):
    """Animal populations scattered over a finished grid."""

    FOX = "fox"
    HARE = "hare"


class Animal(BaseModel):
    """A placed animal."""

    type: FaunaType
    x: int
    y: int


class Landmark(NamedTuple):
    """A labelled peak or valley."""

    x: int
    y: int
    elevation: float


class MaskLabel(IntEnum):
    """Transient per-cell label painted by the mask pipeline."""

    UNSET = 0
    DENSE_FOREST = 1
    SETTLEMENT = 2
    FIELD = 3
    DITCH = 4
    ROAD = 5
    FOREST = 6
    MEADOW = 7
    BUSH = 8


# Total mapping from final mask labels to public land cover
MASK_TO_LAND_COVER = {
    MaskLabel.DENSE_FOREST: LandCover.DENSE_FOREST,
    MaskLabel.SETTLEMENT: LandCover.SETTLEMENT,
    MaskLabel.FIELD: LandCover.FIELD,
    MaskLabel.DITCH: LandCover.WATER,
    MaskLabel.ROAD: LandCover.ROAD,
    MaskLabel.FOREST: LandCover.FOREST,
    MaskLabel.MEADOW: LandCover.MEADOW,
    MaskLabel.BUSH: LandCover.BUSH,
}

require_total(
    MASK_TO_LAND_COVER, set(MaskLabel) - {MaskLabel.UNSET}, "MASK_TO_LAND_COVER"
)
