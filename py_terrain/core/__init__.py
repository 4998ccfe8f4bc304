"""
Core terrain generation and analysis functionality.
"""

from .models import (
    Animal,
    Cell,
    ContourSegment,
    FaunaType,
    GenerationRequest,
    LandCover,
    Landmark,
    TerrainPreset,
    Window,
)
from .noise_field import NoiseField
from .biome_mask import BiomeMask, BiomeMaskBuilder, MaskOptions
from .path_network import PathNetworkBuilder, PathOptions
from .grid import GridAssembler, TerrainGrid, generate
from .contours import ContourExtractor, extract_contours
from .fauna import place_fauna
from .serialization import GridFormatError, deserialize, serialize
from .terrain_analysis import Landmarks, find_landmarks, zoom_window

__all__ = ['Animal', 'Cell', 'ContourSegment', 'FaunaType', 'GenerationRequest',
           'LandCover', 'Landmark', 'TerrainPreset', 'Window',
           'NoiseField', 'BiomeMask', 'BiomeMaskBuilder', 'MaskOptions',
           'PathNetworkBuilder', 'PathOptions', 'GridAssembler', 'TerrainGrid', 'generate',
           'ContourExtractor', 'extract_contours', 'place_fauna',
           'GridFormatError', 'deserialize', 'serialize',
           'Landmarks', 'find_landmarks', 'zoom_window']
