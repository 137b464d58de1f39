"""Ludwig - Audio to Sheet Music Transcription.

Architecture Layers:
    1. input/         - Audio loading and preprocessing
    2. analysis/      - Low-level signal analysis (frames, pitch, onsets, tempo)
    3. transcription/ - Note assembly and the end-to-end pipeline
    4. inference/     - Musical understanding (key)
    5. processing/    - Note post-processing (quantize, difficulty)
    6. playback/      - Active notes for a playback clock
    7. output/        - Export (MIDI, JSON)
"""

__version__ = "0.3.0"

# Core types
from .core import (
    Note,
    Transcription,
    TranscriptionConfig,
    CancellationToken,
    LudwigError,
    InvalidInput,
    AnalysisError,
    Cancelled,
)

# Input layer
from .input import AudioLoader

# Analysis layer
from .analysis import FrameSegmenter, FrameAnalyzer, OnsetPicker, TempoAnalyzer

# Transcription layer
from .transcription import NoteAssembler, LudwigTranscriber, transcribe

# Inference layer
from .inference import KeyDetector

# Processing layer
from .processing import Quantizer, DifficultyRater

# Playback layer
from .playback import PlaybackSynchronizer, ActiveNoteWatcher

# Output layer
from .output import MIDIExporter, JSONExporter

__all__ = [
    # Core
    "Note",
    "Transcription",
    "TranscriptionConfig",
    "CancellationToken",
    "LudwigError",
    "InvalidInput",
    "AnalysisError",
    "Cancelled",
    # Input
    "AudioLoader",
    # Analysis
    "FrameSegmenter",
    "FrameAnalyzer",
    "OnsetPicker",
    "TempoAnalyzer",
    # Transcription
    "NoteAssembler",
    "LudwigTranscriber",
    "transcribe",
    # Inference
    "KeyDetector",
    # Processing
    "Quantizer",
    "DifficultyRater",
    # Playback
    "PlaybackSynchronizer",
    "ActiveNoteWatcher",
    # Output
    "MIDIExporter",
    "JSONExporter",
]
