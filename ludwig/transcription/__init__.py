"""Transcription layer - Note-level detection from audio.

This layer converts audio signals into discrete note events:
- Note assembly from per-frame estimates (monophonic tracker)
- The full pipeline producing a Transcription
"""

from .base import Transcriber
from .assembler import NoteAssembler
from .pipeline import LudwigTranscriber, transcribe

__all__ = [
    "Transcriber",
    "NoteAssembler",
    "LudwigTranscriber",
    "transcribe",
]
