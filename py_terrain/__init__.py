"""
Synthetic terrain generation.

Entry points:
- generate() - build a terrain grid from a GenerationRequest
- extract_contours() - marching-squares isolines over a window
- place_fauna() - rejection-sampled foxes and hares
- serialize() / deserialize() - JSON snapshot of a grid
"""

from .config import settings
from .core import (
    Animal,
    Cell,
    ContourSegment,
    FaunaType,
    GenerationRequest,
    GridFormatError,
    LandCover,
    Landmark,
    Landmarks,
    TerrainGrid,
    TerrainPreset,
    Window,
    deserialize,
    extract_contours,
    find_landmarks,
    generate,
    place_fauna,
    serialize,
    zoom_window,
)

__version__ = "0.1.0"

__all__ = [
    "settings",
    "Animal",
    "Cell",
    "ContourSegment",
    "FaunaType",
    "GenerationRequest",
    "GridFormatError",
    "LandCover",
    "Landmark",
    "Landmarks",
    "TerrainGrid",
    "TerrainPreset",
    "Window",
    "deserialize",
    "extract_contours",
    "find_landmarks",
    "generate",
    "place_fauna",
    "serialize",
    "zoom_window",
]
