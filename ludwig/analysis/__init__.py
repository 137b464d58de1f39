"""Analysis layer - Low-level signal analysis.

This layer extracts features from raw audio:
- Frame segmentation
- Per-frame pitch and onset strength
- Onset picking
- Tempo and meter
"""

from .frames import Frame, FrameSegmenter
from .pitch import FrameAnalyzer, FrameEstimate
from .onsets import OnsetEvent, OnsetPicker
from .tempo import TempoAnalyzer, TempoInfo

__all__ = [
    "Frame",
    "FrameSegmenter",
    "FrameAnalyzer",
    "FrameEstimate",
    "OnsetEvent",
    "OnsetPicker",
    "TempoAnalyzer",
    "TempoInfo",
]
