"""Inference layer - Musical understanding from notes.

- Key detection (tonal center, relative and parallel keys)
"""

from .key import KeyDetector, KeyInfo, KeyCandidate

__all__ = [
    "KeyDetector",
    "KeyInfo",
    "KeyCandidate",
]
