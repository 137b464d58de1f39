"""Playback layer - Keep a score in step with an audio clock."""

from .synchronizer import ActiveNoteWatcher, ActiveNotesChange, PlaybackSynchronizer

__all__ = [
    "PlaybackSynchronizer",
    "ActiveNoteWatcher",
    "ActiveNotesChange",
]
