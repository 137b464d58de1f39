"""Transcription - the immutable result of one transcription run."""

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from .errors import InvalidInput
from .note import Note

# Slack allowed between a note's end and the buffer duration
END_TOLERANCE = 1e-9
# Slack, in grid units, for note starts and the grid/tempo ratio
GRID_TOLERANCE = 1e-6


@dataclass(frozen=True)
class Transcription:
    """Key, tempo, meter, difficulty and the quantized notes of a recording.

    Notes are sorted by start time, every note lies inside ``[0, duration]``
    and every start is a multiple of ``grid_unit``, which divides a whole note
    at ``tempo``. The object is shared read-only between the renderer and
    the playback synchronizer.
    """

    key: str  # Tonic, e.g. "C", "F#"
    mode: str  # "major" or "minor"
    tempo: float  # BPM
    time_signature: Tuple[int, int]
    difficulty: str
    notes: Tuple[Note, ...]
    duration: float  # Seconds
    grid_unit: float  # Quantization step in seconds
    tempo_confidence: float = 0.0
    key_confidence: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        # Accept any sequence but store a tuple
        object.__setattr__(self, "notes", tuple(self.notes))

        if self.tempo <= 0:
            raise InvalidInput(f"tempo must be positive, got {self.tempo}")
        if self.duration < 0:
            raise InvalidInput(f"duration must be non-negative, got {self.duration}")
        numerator, denominator = self.time_signature
        if numerator <= 0 or denominator <= 0:
            raise InvalidInput(f"invalid time signature {self.time_signature}")
        if self.grid_unit <= 0:
            raise InvalidInput(f"grid_unit must be positive, got {self.grid_unit}")
        # A whole note (four beats) must hold a whole number of grid units
        units_per_whole = 240.0 / (self.tempo * self.grid_unit)
        nearest = round(units_per_whole)
        if nearest < 1 or abs(units_per_whole - nearest) > GRID_TOLERANCE * units_per_whole:
            raise InvalidInput(
                f"grid_unit {self.grid_unit}s does not match a tempo of {self.tempo} BPM"
            )

        previous_start = 0.0
        for note in self.notes:
            if note.start < previous_start:
                raise InvalidInput("notes must be sorted by start time")
            if note.duration <= 0:
                raise InvalidInput(f"note at {note.start:.3f}s has non-positive duration")
            units = note.start / self.grid_unit
            if abs(units - round(units)) > GRID_TOLERANCE:
                raise InvalidInput(
                    f"note at {note.start:.4f}s is not on the {self.grid_unit:.4f}s grid"
                )
            if note.end > self.duration + END_TOLERANCE:
                raise InvalidInput(
                    f"note at {note.start:.3f}s ends after the recording ({self.duration:.3f}s)"
                )
            previous_start = note.start

    @property
    def key_name(self) -> str:
        """Display name of the key, e.g. 'C Major'."""
        return f"{self.key} {self.mode.capitalize()}"

    @property
    def time_signature_name(self) -> str:
        return f"{self.time_signature[0]}/{self.time_signature[1]}"

    def to_dict(self) -> Dict[str, Any]:
        """Plain, JSON-serializable representation."""
        notes = []
        for i, note in enumerate(self.notes):
            entry = {"id": i}
            entry.update(note.to_dict())
            notes.append(entry)

        return {
            "key": self.key_name,
            "tempo": self.tempo,
            "timeSignature": self.time_signature_name,
            "difficulty": self.difficulty,
            "notes": notes,
            "duration": self.duration,
            "gridUnit": self.grid_unit,
            "tempoConfidence": self.tempo_confidence,
            "keyConfidence": self.key_confidence,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transcription":
        """
        Rebuild a Transcription from to_dict() output.

        Raises:
            InvalidInput: If fields are missing or malformed
        """
        try:
            key, mode = data["key"].split(" ", 1)
            numerator, denominator = data["timeSignature"].split("/")
            return cls(
                key=key,
                mode=mode.lower(),
                tempo=float(data["tempo"]),
                time_signature=(int(numerator), int(denominator)),
                difficulty=data["difficulty"],
                notes=tuple(Note.from_dict(n) for n in data["notes"]),
                duration=float(data["duration"]),
                grid_unit=float(data["gridUnit"]),
                tempo_confidence=float(data.get("tempoConfidence", 0.0)),
                key_confidence=float(data.get("keyConfidence", 0.0)),
            )
        except (KeyError, AttributeError, TypeError, ValueError) as e:
            if isinstance(e, InvalidInput):
                raise
            raise InvalidInput(f"malformed transcription data: {e}") from e
