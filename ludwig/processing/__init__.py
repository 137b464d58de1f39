"""Processing layer - Note-level post-processing.

This layer refines transcribed notes:
- Quantization (snap to grid, merge overlapping duplicates)
- Difficulty rating
"""

from .quantize import Quantizer
from .difficulty import DifficultyRater, DifficultyReport

__all__ = [
    "Quantizer",
    "DifficultyRater",
    "DifficultyReport",
]
