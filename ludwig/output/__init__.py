"""Output layer - Export to various formats.

This layer handles exporting transcriptions to:
- MIDI files
- JSON (for score renderers and scripting)
"""

from .midi import MIDIExporter
from .json_export import JSONExporter

__all__ = [
    "MIDIExporter",
    "JSONExporter",
]
