"""Core types and constants for Ludwig."""

from .note import Note
from .transcription import Transcription
from .errors import LudwigError, InvalidInput, AnalysisError, Cancelled
from .cancel import CancellationToken
from .config import (
    AnalysisConfig,
    OnsetConfig,
    AssemblyConfig,
    TempoConfig,
    DifficultyThresholds,
    TranscriptionConfig,
)
from .constants import (
    PITCH_NAMES,
    DEFAULT_SR,
    DEFAULT_HOP_LENGTH,
    DEFAULT_TEMPO,
)

__all__ = [
    "Note",
    "Transcription",
    "LudwigError",
    "InvalidInput",
    "AnalysisError",
    "Cancelled",
    "CancellationToken",
    "AnalysisConfig",
    "OnsetConfig",
    "AssemblyConfig",
    "TempoConfig",
    "DifficultyThresholds",
    "TranscriptionConfig",
    "PITCH_NAMES",
    "DEFAULT_SR",
    "DEFAULT_HOP_LENGTH",
    "DEFAULT_TEMPO",
]
