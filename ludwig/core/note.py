"""Note data class - the fundamental unit of musical transcription."""

from dataclasses import dataclass

from .constants import PITCH_NAMES


@dataclass(frozen=True)
class Note:
    """Represents a musical note."""

    pitch: int  # MIDI pitch (0-127)
    start: float  # Start time in seconds
    duration: float  # Length in seconds
    velocity: int = 64  # MIDI velocity (0-127)
    confidence: float = 1.0  # Mean pitch confidence (0-1)

    @property
    def end(self) -> float:
        """Time the note stops sounding, in seconds."""
        return self.start + self.duration

    @property
    def pitch_class(self) -> str:
        """Get pitch class name (e.g., 'A', 'C#')."""
        return PITCH_NAMES[self.pitch % 12]

    @property
    def pitch_class_index(self) -> int:
        """Get pitch class (0-11, where 0=C)."""
        return self.pitch % 12

    @property
    def octave(self) -> int:
        """Scientific pitch notation octave (A4 = 440 Hz)."""
        return (self.pitch // 12) - 1

    @property
    def pitch_name(self) -> str:
        """Get note name (e.g., 'C4', 'A#3')."""
        return f"{self.pitch_class}{self.octave}"

    def with_timing(self, start: float, duration: float) -> "Note":
        """Copy of this note moved to a new start and duration."""
        return Note(
            pitch=self.pitch,
            start=start,
            duration=duration,
            velocity=self.velocity,
            confidence=self.confidence,
        )

    def to_dict(self) -> dict:
        return {
            "note": self.pitch_class,
            "octave": self.octave,
            "pitch": self.pitch,
            "time": self.start,
            "duration": self.duration,
            "velocity": self.velocity,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Note":
        """Inverse of to_dict(); the name fields are derived from ``pitch``."""
        return cls(
            pitch=int(data["pitch"]),
            start=float(data["time"]),
            duration=float(data["duration"]),
            velocity=int(data.get("velocity", 64)),
            confidence=float(data.get("confidence", 1.0)),
        )
